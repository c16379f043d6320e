# ============================================================================
# FILE: bookwell/models/otp_code.py
# One-time code model used by every email OTP flow (staff and customers)
# ============================================================================
from sqlalchemy import Column, String, Integer, DateTime, UniqueConstraint, Uuid
from sqlalchemy.sql import func
from datetime import datetime, timedelta, timezone
import enum
import uuid

from bookwell.models.base import Base
from bookwell.utils.timeutils import as_utc


class OtpPurpose(str, enum.Enum):
    STAFF_LOGIN = "staff_login"
    BOOKING_VERIFY = "booking_verify"
    EMAIL_CHANGE = "email_change"


class OtpCode(Base):
    """
    Model for storing hashed one-time codes.
    One live code per (key, purpose); requesting a new code replaces the old one.
    """
    __tablename__ = "otp_codes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Normalized email (optionally scoped, e.g. "<business_id>:<email>")
    key = Column(String(320), nullable=False, index=True)
    purpose = Column(String(32), nullable=False)

    code_hash = Column(String(64), nullable=False)
    attempts = Column(Integer, default=0, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (UniqueConstraint("key", "purpose", name="uq_otp_codes_key_purpose"),)

    def is_expired(self, now: datetime = None) -> bool:
        """Check if the code is past its expiry"""
        now = now or datetime.now(timezone.utc)
        return now > as_utc(self.expires_at)

    def seconds_since_sent(self, now: datetime = None) -> float:
        now = now or datetime.now(timezone.utc)
        return (now - as_utc(self.sent_at)).total_seconds()

    def refresh(self, code_hash: str, ttl_minutes: int, now: datetime = None):
        """Replace the code with a freshly issued one"""
        now = now or datetime.now(timezone.utc)
        self.code_hash = code_hash
        self.attempts = 0
        self.sent_at = now
        self.expires_at = now + timedelta(minutes=ttl_minutes)

    def __repr__(self):
        return f"<OtpCode {self.purpose} key={self.key}>"
