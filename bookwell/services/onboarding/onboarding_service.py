# ===== bookwell/services/onboarding/onboarding_service.py =====
from datetime import datetime, timezone
from typing import Dict, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from sqlalchemy.orm import Session

from bookwell.core.errors import ValidationFailed
from bookwell.models.business import Business, AvailabilityDay
from bookwell.models.service import Service
from bookwell.models.user import User
from bookwell.schemas.onboarding import OnboardingUpdateRequest
from bookwell.services.availability.availability_cache import AvailabilityCache
from bookwell.services.business.business_service import BusinessService

logger = logging.getLogger(__name__)


class OnboardingService:
    """Business configuration captured by the onboarding wizard"""

    @staticmethod
    def serialize(business: Business) -> Dict[str, Any]:
        return {
            "onboardingCompleted": business.onboarding_completed,
            "onboarding": {
                "businessType": business.business_type,
                "currency": business.currency,
                "business": {
                    "name": business.name or "",
                    "phone": business.phone or "",
                    "address": business.address or "",
                    "slug": business.slug,
                    "publicId": business.public_id,
                },
                "availability": BusinessService.availability_payload(business),
                "services": [s.to_dict() for s in business.services],
                "bookingRules": {
                    "limitCustomerToOneUpcomingAppointment": business.limit_customer_to_one_upcoming_appointment,
                    "preventSameServiceSameDay": business.prevent_same_service_same_day,
                },
            },
        }

    @staticmethod
    def get(db: Session, user: User) -> Dict[str, Any]:
        business = BusinessService.get_or_create_for_user(db, user)
        db.commit()
        return OnboardingService.serialize(business)

    @staticmethod
    def update(db: Session, user: User, data: OnboardingUpdateRequest) -> Dict[str, Any]:
        """Apply the fields present in the request; absent fields stay as they are"""
        business = BusinessService.get_or_create_for_user(db, user)

        if data.business_type is not None:
            business.business_type = data.business_type
        if data.currency is not None:
            business.currency = data.currency

        if data.business is not None:
            if data.business.name is not None:
                business.name = data.business.name
            if data.business.phone is not None:
                business.phone = data.business.phone
            if data.business.address is not None:
                business.address = data.business.address

        if data.booking_rules is not None:
            rules = data.booking_rules
            if rules.limit_customer_to_one_upcoming_appointment is not None:
                business.limit_customer_to_one_upcoming_appointment = rules.limit_customer_to_one_upcoming_appointment
            if rules.prevent_same_service_same_day is not None:
                business.prevent_same_service_same_day = rules.prevent_same_service_same_day

        if data.availability is not None:
            if data.availability.timezone is not None:
                try:
                    ZoneInfo(data.availability.timezone)
                except (ZoneInfoNotFoundError, ValueError):
                    raise ValidationFailed("Invalid time zone")
                business.timezone = data.availability.timezone
            if data.availability.days is not None:
                OnboardingService._apply_days(business, data.availability.days)

        if data.services is not None:
            OnboardingService._apply_services(db, business, data.services)

        db.commit()
        db.refresh(business)
        AvailabilityCache.invalidate_business(business.id)
        logger.info(f"Updated onboarding for business {business.id}")

        result = OnboardingService.serialize(business)
        result["ok"] = True
        return result

    @staticmethod
    def _apply_days(business: Business, days):
        existing = {d.day: d for d in business.availability_days}
        for day in days:
            row = existing.get(day.day)
            if row is None:
                row = AvailabilityDay(day=day.day)
                business.availability_days.append(row)
            row.enabled = day.enabled
            row.windows = day.resolved_windows()

    @staticmethod
    def _apply_services(db: Session, business: Business, services):
        """
        The list replaces the catalogue. Services left out are deactivated,
        never deleted, since appointments keep referring to them.
        """
        existing = {s.id: s for s in business.services}
        kept = set()

        for order, item in enumerate(services):
            service = existing.get(item.id) if item.id is not None else None
            if service is None:
                service = Service(business_id=business.id)
                business.services.append(service)
            service.name = item.name
            service.duration_minutes = item.duration_minutes
            service.price = item.price
            service.is_active = item.is_active
            service.display_order = order
            if service.id is not None:
                kept.add(service.id)

        for service_id, service in existing.items():
            if service_id not in kept:
                service.is_active = False

    @staticmethod
    def complete(db: Session, user: User) -> Dict[str, Any]:
        """Publish the business: assign slug and public id and open the booking page"""
        business = BusinessService.get_or_create_for_user(db, user)

        if not (business.name or "").strip():
            raise ValidationFailed("Business name is required")
        if not any(s.is_active for s in business.services):
            raise ValidationFailed("Service is required")

        if not business.slug:
            business.slug = BusinessService.unique_slug(db, business.name, business.id)
        BusinessService.ensure_public_id(db, business)

        if not business.onboarding_completed:
            business.onboarding_completed = True
            business.onboarding_completed_at = datetime.now(timezone.utc)

        db.commit()
        db.refresh(business)
        logger.info(f"Business {business.id} completed onboarding as /{business.slug} ({business.public_id})")

        return {
            "ok": True,
            "onboardingCompleted": True,
            "business": {"slug": business.slug, "publicId": business.public_id},
        }
