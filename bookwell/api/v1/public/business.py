# ============================================================================
# FILE: bookwell/api/v1/public/business.py
# Booking page: business profile and open slots
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.orm import Session
from uuid import UUID

from bookwell.config.database import get_db
from bookwell.schemas.appointment import DATE_PATTERN
from bookwell.services.availability.slot_service import AvailabilityService
from bookwell.services.business.business_service import BusinessService

router = APIRouter(prefix="/public/business", tags=["public"])


@router.get("/{slug_or_id}")
def get_public_business(
        slug_or_id: str = Path(..., description="Public id, slug or business id"),
        db: Session = Depends(get_db)
):
    business = BusinessService.find_public(db, slug_or_id)
    return BusinessService.public_profile(business)


@router.get("/{slug_or_id}/availability")
def get_public_availability(
        slug_or_id: str = Path(...),
        date: str = Query(..., pattern=DATE_PATTERN),
        service_id: UUID = Query(..., alias="serviceId"),
        db: Session = Depends(get_db)
):
    """Open start times for one service on one day"""
    business = BusinessService.find_public(db, slug_or_id)
    service = BusinessService.get_service(db, business, service_id)
    slots = AvailabilityService.get_available_slots(db, business, service, date)
    return {
        "ok": True,
        "date": date,
        "timezone": business.timezone,
        "serviceId": str(service.id),
        "durationMinutes": service.duration_minutes,
        "slots": slots,
    }
