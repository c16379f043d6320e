# ============================================================================
# FILE: bookwell/api/v1/dashboard/appointments.py
# Staff calendar endpoints - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from bookwell.api.dependencies import get_current_business, get_idempotency_key
from bookwell.config.database import get_db
from bookwell.models.appointment import CancelledBy, CreatedBy
from bookwell.models.business import Business
from bookwell.schemas.appointment import (
    CreateAppointmentRequest,
    StatusUpdateRequest,
    CancelRequest,
    RescheduleRequest,
    DATE_PATTERN,
)
from bookwell.services.appointment.appointment_query_service import AppointmentQueryService
from bookwell.services.availability.slot_service import AvailabilityService
from bookwell.services.booking.booking_service import BookingService, BookingRequest
from bookwell.services.booking.status_service import StatusService
from bookwell.services.business.business_service import BusinessService

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.get("")
def list_appointments(
        date: str = Query(..., pattern=DATE_PATTERN, description="Day to list (YYYY-MM-DD)"),
        business: Business = Depends(get_current_business),
        db: Session = Depends(get_db)
):
    """All appointments of one day, every status."""
    return AppointmentQueryService.list_for_date(db, business.id, date)


@router.post("/create")
def create_appointment(
        body: CreateAppointmentRequest,
        idempotency_key: Optional[str] = Depends(get_idempotency_key),
        business: Business = Depends(get_current_business),
        db: Session = Depends(get_db)
):
    """
    Book an appointment on behalf of a customer.
    Slot rules apply; per-customer limits do not.
    """
    request = BookingRequest(
        business_id=business.id,
        service_id=body.service_id,
        date=body.date,
        start_time=body.start_time,
        customer_full_name=body.customer_full_name,
        customer_email=body.customer_email,
        customer_phone=body.customer_phone,
        notes=body.notes,
        created_by=CreatedBy.BUSINESS,
        idempotency_key=idempotency_key or body.idempotency_key,
    )
    return BookingService.create_booking(db, request)


@router.get("/available-times")
def available_times(
        date: str = Query(..., pattern=DATE_PATTERN),
        service_id: UUID = Query(..., alias="serviceId"),
        business: Business = Depends(get_current_business),
        db: Session = Depends(get_db)
):
    service = BusinessService.get_service(db, business, service_id)
    slots = AvailabilityService.get_available_slots(db, business, service, date)
    return {"date": date, "serviceId": str(service.id), "slots": slots}


@router.get("/{appointment_id}/available-times")
def available_times_for_reschedule(
        appointment_id: UUID = Path(...),
        date: str = Query(..., pattern=DATE_PATTERN),
        business: Business = Depends(get_current_business),
        db: Session = Depends(get_db)
):
    """Free slots for moving an appointment; its own slot counts as free."""
    appointment = AppointmentQueryService.get(db, business.id, appointment_id)
    slots = AvailabilityService.free_slots(
        db, business, appointment.duration_minutes, date,
        exclude_appointment_id=appointment.id
    )
    return {"date": date, "appointmentId": str(appointment.id), "slots": slots}


@router.post("/{appointment_id}/status")
def update_status(
        body: StatusUpdateRequest,
        appointment_id: UUID = Path(...),
        business: Business = Depends(get_current_business),
        db: Session = Depends(get_db)
):
    return StatusService.change_status(
        db, business.id, appointment_id, body.status,
        confirm=body.confirm,
        notify_customer=body.notify_customer
    )


@router.post("/{appointment_id}/cancel")
def cancel_appointment(
        body: Optional[CancelRequest] = None,
        appointment_id: UUID = Path(...),
        business: Business = Depends(get_current_business),
        db: Session = Depends(get_db)
):
    notify = body.notify_customer if body is not None else False
    return StatusService.cancel(db, business.id, appointment_id, CancelledBy.BUSINESS, notify_customer=notify)


@router.post("/{appointment_id}/reschedule")
def reschedule_appointment(
        body: RescheduleRequest,
        appointment_id: UUID = Path(...),
        business: Business = Depends(get_current_business),
        db: Session = Depends(get_db)
):
    return BookingService.reschedule(
        db, business.id, appointment_id, body.date, body.start_time,
        notify_customer=body.notify_customer
    )
