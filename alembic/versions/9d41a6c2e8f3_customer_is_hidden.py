"""customer is_hidden flag

Revision ID: 9d41a6c2e8f3
Revises: 5b2f0c9e7a14
Create Date: 2026-10-19 16:40:07.218845

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '9d41a6c2e8f3'
down_revision: Union[str, Sequence[str], None] = '5b2f0c9e7a14'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.add_column(
        'customers',
        sa.Column('is_hidden', sa.Boolean, nullable=False, server_default=sa.text('false'))
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_column('customers', 'is_hidden')
