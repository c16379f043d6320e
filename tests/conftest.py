"""
Pytest configuration and fixtures.

Tests run against an in-memory SQLite database with Celery in eager mode and
the Redis availability cache switched off, so no external services are needed.
The environment must be set before anything from bookwell is imported.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["AVAILABILITY_CACHE_ENABLED"] = "false"
os.environ["PUBLIC_OTP_REQUESTS_PER_MINUTE"] = "1000"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["OTP_SECRET"] = "test-otp-secret"

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

import bookwell.models  # noqa: F401
from bookwell.config.database import engine, SessionLocal
from bookwell.main import app
from bookwell.models.base import Base
from bookwell.models.business import Business, AvailabilityDay
from bookwell.models.service import Service
from bookwell.models.user import User
from bookwell.services.auth.otp_service import OtpService
from bookwell.services.auth.token_service import TokenService
from bookwell.services.email.email_service import EmailService

TEST_CODE = "123456"
OWNER_EMAIL = "owner@studio-nine.example.com"
PUBLIC_ID = "24680"


def future_date(days: int = 14) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Capture outgoing mail instead of talking to SMTP"""
    sent = []

    def fake_send_email(to_email, subject, html_content, plain_text=None, cc=None):
        sent.append({"to": to_email, "subject": subject, "text": plain_text})
        return True

    monkeypatch.setattr(EmailService, "send_email", staticmethod(fake_send_email))
    return sent


@pytest.fixture(autouse=True)
def fixed_otp(monkeypatch):
    monkeypatch.setattr(OtpService, "generate_code", staticmethod(lambda length=None: TEST_CODE))
    return TEST_CODE


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def owner(db):
    user = User(email=OWNER_EMAIL, full_name="Olivia Owner")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def business(db, owner):
    """Published business open every day 09:00-17:00 UTC"""
    business = Business(
        owner_user_id=owner.id,
        name="Studio Nine",
        business_type="salon",
        slug="studio-nine",
        public_id=PUBLIC_ID,
        timezone="UTC",
        currency="USD",
        onboarding_completed=True,
    )
    for day in range(7):
        business.availability_days.append(
            AvailabilityDay(day=day, enabled=True, windows=[{"start": "09:00", "end": "17:00"}])
        )
    db.add(business)
    db.commit()
    db.refresh(business)
    return business


@pytest.fixture
def service(db, business):
    service = Service(business_id=business.id, name="Haircut", duration_minutes=60, price=40, display_order=0)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def short_service(db, business):
    service = Service(business_id=business.id, name="Beard trim", duration_minutes=30, price=15, display_order=1)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def auth_headers(owner):
    return {"Authorization": f"Bearer {TokenService.create_access_token(owner.id)}"}
