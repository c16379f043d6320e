# ===== bookwell/services/business/business_service.py =====
"""
Business lookup, public identifiers and the public profile payload
"""
import random
import re
import unicodedata
from typing import Dict, Any, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from bookwell.config.settings import get_settings
from bookwell.core.errors import BusinessNotFound, NotFoundError
from bookwell.models.business import Business
from bookwell.models.service import Service
from bookwell.models.user import User

logger = logging.getLogger(__name__)

PUBLIC_ID_RE = re.compile(r"^\d{5}$")
PUBLIC_ID_ATTEMPTS = 25


def generate_slug(name: str) -> str:
    """
    URL-safe slug from a business name.

        "Bella's Salon" -> "bellas-salon"
        "Café Beauté"   -> "cafe-beaute"
    """
    normalized = unicodedata.normalize("NFKD", name or "")
    ascii_str = normalized.encode("ascii", "ignore").decode("ascii")
    ascii_str = ascii_str.replace("'", "")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_str.lower()).strip("-")
    return slug[:100].rstrip("-")


def normalize_slug(value: str) -> str:
    value = (value or "").strip().lower()
    value = re.sub(r"\s+", "-", value)
    value = re.sub(r"[^a-z0-9-]", "", value)
    return re.sub(r"-+", "-", value).strip("-")


def is_valid_public_id(value: Optional[str]) -> bool:
    return bool(value) and bool(PUBLIC_ID_RE.match(value.strip()))


class BusinessService:

    @staticmethod
    def unique_slug(db: Session, name: str, business_id: Optional[UUID] = None) -> str:
        """Slug from name, suffixed -2, -3, ... until unused by another business"""
        base = generate_slug(name) or "business"
        candidate = base
        counter = 2
        while True:
            query = db.query(Business.id).filter(Business.slug == candidate)
            if business_id is not None:
                query = query.filter(Business.id != business_id)
            if query.first() is None:
                return candidate
            suffix = f"-{counter}"
            candidate = f"{base[:100 - len(suffix)]}{suffix}"
            counter += 1

    @staticmethod
    def ensure_public_id(db: Session, business: Business) -> str:
        """Assign a random unused 5-digit public id (10000-99999) if missing"""
        if is_valid_public_id(business.public_id):
            return business.public_id

        for _ in range(PUBLIC_ID_ATTEMPTS):
            candidate = str(random.randint(10000, 99999))
            taken = db.query(Business.id).filter(Business.public_id == candidate).first()
            if taken is None:
                business.public_id = candidate
                return candidate

        raise RuntimeError("Could not allocate a business public id")

    @staticmethod
    def get_for_user(db: Session, user: User) -> Business:
        business = db.query(Business).filter(Business.owner_user_id == user.id).first()
        if business is None:
            raise BusinessNotFound()
        return business

    @staticmethod
    def get_or_create_for_user(db: Session, user: User) -> Business:
        business = db.query(Business).filter(Business.owner_user_id == user.id).first()
        if business is None:
            settings = get_settings()
            business = Business(
                owner_user_id=user.id,
                timezone=settings.DEFAULT_TIMEZONE,
                currency=settings.DEFAULT_CURRENCY,
            )
            db.add(business)
            db.flush()
            logger.info(f"Created business {business.id} for user {user.email}")
        return business

    @staticmethod
    def find_public(db: Session, slug_or_id: str) -> Business:
        """
        Resolve a published business by public id (5 digits), slug or UUID.

        Raises:
            BusinessNotFound
        """
        raw = (slug_or_id or "").strip()
        query = db.query(Business).filter(
            Business.onboarding_completed.is_(True),
            Business.is_active.is_(True)
        )

        business = None
        if is_valid_public_id(raw):
            business = query.filter(Business.public_id == raw).first()

        if business is None:
            slug = normalize_slug(raw)
            if slug:
                business = query.filter(Business.slug == slug).first()

        if business is None:
            try:
                business_uuid = UUID(raw)
            except ValueError:
                business_uuid = None
            if business_uuid is not None:
                business = query.filter(Business.id == business_uuid).first()

        if business is None:
            raise BusinessNotFound()
        return business

    @staticmethod
    def find_by_public_id(db: Session, public_id: str) -> Business:
        if not is_valid_public_id(public_id):
            raise BusinessNotFound()
        return BusinessService.find_public(db, public_id)

    @staticmethod
    def lock(db: Session, business_id: UUID) -> Business:
        """
        Take the row lock that serializes every booking mutation of a business.
        Held until the surrounding transaction commits or rolls back.
        """
        business = db.query(Business).filter(Business.id == business_id).with_for_update().first()
        if business is None:
            raise BusinessNotFound()
        return business

    @staticmethod
    def get_service(db: Session, business: Business, service_id: UUID, active_only: bool = True) -> Service:
        query = db.query(Service).filter(Service.id == service_id, Service.business_id == business.id)
        if active_only:
            query = query.filter(Service.is_active.is_(True))
        service = query.first()
        if service is None:
            raise NotFoundError("Service not found")
        return service

    @staticmethod
    def availability_payload(business: Business) -> Dict[str, Any]:
        return {
            "timezone": business.timezone,
            "days": [
                {"day": day.day, "enabled": day.enabled, "windows": list(day.windows or [])}
                for day in business.availability_days
            ],
        }

    @staticmethod
    def public_profile(business: Business) -> Dict[str, Any]:
        """Everything the booking page needs to render a business"""
        return {
            "ok": True,
            "business": {
                "id": str(business.id),
                "publicId": business.public_id,
                "slug": business.slug,
                "name": business.name or "",
                "businessType": business.business_type,
                "phone": business.phone or "",
                "address": business.address or "",
            },
            "services": [s.to_dict() for s in business.services if s.is_active],
            "availability": BusinessService.availability_payload(business),
            "currency": {"code": business.currency or "USD"},
            "bookingRules": {
                "limitCustomerToOneUpcomingAppointment": business.limit_customer_to_one_upcoming_appointment,
                "preventSameServiceSameDay": business.prevent_same_service_same_day,
            },
        }
