"""initial booking schema

Revision ID: 5b2f0c9e7a14
Revises:
Create Date: 2026-10-19 10:12:44.512309

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '5b2f0c9e7a14'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # 1. Staff accounts
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True)
    )
    op.create_index('ix_users_email', 'users', ['email'])

    # 2. Businesses
    op.create_table(
        'businesses',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('owner_user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('name', sa.String(200), nullable=True),
        sa.Column('business_type', sa.String(100), nullable=True),
        sa.Column('phone', sa.String(40), nullable=True),
        sa.Column('address', sa.String(200), nullable=True),
        sa.Column('slug', sa.String(100), nullable=True),
        sa.Column('public_id', sa.String(5), nullable=True),
        sa.Column('timezone', sa.String(50), nullable=False, server_default='UTC'),
        sa.Column('currency', sa.String(8), nullable=False, server_default='USD'),
        sa.Column('limit_customer_to_one_upcoming_appointment', sa.Boolean, nullable=False, server_default=sa.text('false')),
        sa.Column('prevent_same_service_same_day', sa.Boolean, nullable=False, server_default=sa.text('false')),
        sa.Column('onboarding_completed', sa.Boolean, nullable=False, server_default=sa.text('false')),
        sa.Column('onboarding_completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.text('true'))
    )
    op.create_index('ix_businesses_slug', 'businesses', ['slug'], unique=True)
    op.create_index('ix_businesses_public_id', 'businesses', ['public_id'], unique=True)

    # 3. Weekly availability, one row per weekday (0=Sunday)
    op.create_table(
        'availability_days',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day', sa.Integer, nullable=False),
        sa.Column('enabled', sa.Boolean, nullable=False, server_default=sa.text('false')),
        sa.Column('windows', sa.JSON, nullable=False),
        sa.UniqueConstraint('business_id', 'day', name='uq_availability_business_day')
    )
    op.create_index('ix_availability_days_business_id', 'availability_days', ['business_id'])

    # 4. Services
    op.create_table(
        'services',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(80), nullable=False),
        sa.Column('duration_minutes', sa.Integer, nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.text('true')),
        sa.Column('display_order', sa.Integer, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'))
    )
    op.create_index('ix_services_business_id', 'services', ['business_id'])
    op.create_index('ix_services_is_active', 'services', ['is_active'])

    # 5. Customers, unique by email within a business
    op.create_table(
        'customers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(32), nullable=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='ACTIVE'),
        sa.Column('pending_email', sa.String(255), nullable=True),
        sa.Column('pending_email_requested_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('last_appointment_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('business_id', 'email', name='uq_customers_business_email')
    )
    op.create_index('ix_customers_business_id', 'customers', ['business_id'])

    # 6. Appointments
    op.create_table(
        'appointments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('customers.id'), nullable=True),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('service_name', sa.String(80), nullable=False),
        sa.Column('duration_minutes', sa.Integer, nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('currency', sa.String(8), nullable=False),
        sa.Column('date', sa.String(10), nullable=False),
        sa.Column('start_time', sa.String(5), nullable=False),
        sa.Column('end_time', sa.String(5), nullable=False),
        sa.Column('customer_full_name', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(32), nullable=True),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('status', sa.String(16), nullable=False, server_default='BOOKED'),
        sa.Column('created_by', sa.String(16), nullable=False, server_default='CUSTOMER'),
        sa.Column('cancelled_by', sa.String(16), nullable=True),
        sa.Column('idempotency_key', sa.String(128), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rescheduled_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('business_id', 'idempotency_key', name='uq_appointments_idempotency_key')
    )
    op.create_index('ix_appointments_customer_id', 'appointments', ['customer_id'])
    op.create_index('ix_appointments_business_date', 'appointments', ['business_id', 'date'])

    # At most one BOOKED appointment per business slot start
    op.create_index(
        'uq_appointments_booked_slot',
        'appointments',
        ['business_id', 'date', 'start_time'],
        unique=True,
        postgresql_where=sa.text("status = 'BOOKED'")
    )

    # 7. One-time codes
    op.create_table(
        'otp_codes',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('key', sa.String(320), nullable=False),
        sa.Column('purpose', sa.String(32), nullable=False),
        sa.Column('code_hash', sa.String(64), nullable=False),
        sa.Column('attempts', sa.Integer, nullable=False, server_default='0'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('key', 'purpose', name='uq_otp_codes_key_purpose')
    )
    op.create_index('ix_otp_codes_key', 'otp_codes', ['key'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_otp_codes_key', table_name='otp_codes')
    op.drop_table('otp_codes')

    op.drop_index('uq_appointments_booked_slot', table_name='appointments')
    op.drop_index('ix_appointments_business_date', table_name='appointments')
    op.drop_index('ix_appointments_customer_id', table_name='appointments')
    op.drop_table('appointments')

    op.drop_index('ix_customers_business_id', table_name='customers')
    op.drop_table('customers')

    op.drop_index('ix_services_is_active', table_name='services')
    op.drop_index('ix_services_business_id', table_name='services')
    op.drop_table('services')

    op.drop_index('ix_availability_days_business_id', table_name='availability_days')
    op.drop_table('availability_days')

    op.drop_index('ix_businesses_public_id', table_name='businesses')
    op.drop_index('ix_businesses_slug', table_name='businesses')
    op.drop_table('businesses')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
