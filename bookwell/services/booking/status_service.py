# ===== bookwell/services/booking/status_service.py =====
"""
Appointment lifecycle.

    BOOKED    -> COMPLETED | NO_SHOW | CANCELED
    COMPLETED -> CANCELED | NO_SHOW
    CANCELED  -> COMPLETED | NO_SHOW
    NO_SHOW   -> COMPLETED | CANCELED

BOOKED is only ever entered at creation. Moves between the other states are
corrections and are always allowed.
"""
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from bookwell.core.errors import BookingError, ErrorCodes
from bookwell.models.appointment import Appointment, AppointmentStatus, CancelledBy
from bookwell.services.appointment.appointment_query_service import AppointmentQueryService
from bookwell.services.availability.availability_cache import AvailabilityCache
from bookwell.services.business.business_service import BusinessService
from bookwell.services.notification.notification_service import NotificationService
from bookwell.utils.timeutils import is_incoming

logger = logging.getLogger(__name__)

S = AppointmentStatus

ALLOWED_TRANSITIONS = {
    S.BOOKED: {S.COMPLETED, S.NO_SHOW, S.CANCELED},
    S.COMPLETED: {S.CANCELED, S.NO_SHOW},
    S.CANCELED: {S.COMPLETED, S.NO_SHOW},
    S.NO_SHOW: {S.COMPLETED, S.CANCELED},
}


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


class StatusService:

    @staticmethod
    def _apply(appointment: Appointment, target: AppointmentStatus, cancelled_by: Optional[CancelledBy]):
        appointment.status = target.value
        if target == S.CANCELED:
            appointment.cancelled_by = (cancelled_by or CancelledBy.BUSINESS).value
            appointment.cancelled_at = datetime.now(timezone.utc)
        else:
            appointment.cancelled_by = None
            appointment.cancelled_at = None

    @staticmethod
    def change_status(
            db: Session,
            business_id: UUID,
            appointment_id: UUID,
            target: AppointmentStatus,
            confirm: bool = False,
            notify_customer: bool = False,
            now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Staff status change.

        Canceling an incoming appointment (future, or today and not yet over)
        needs confirm=True, otherwise CONFIRMATION_REQUIRED is raised.

        Raises:
            BookingError INVALID_TRANSITION / CONFIRMATION_REQUIRED (409)
        """
        try:
            business = BusinessService.lock(db, business_id)
            appointment = AppointmentQueryService.get(db, business.id, appointment_id)
            current = AppointmentStatus(appointment.status)

            if current == target:
                db.rollback()
                return {
                    "ok": True,
                    "unchanged": True,
                    "appointment": AppointmentQueryService.serialize(appointment),
                }

            if not can_transition(current, target):
                raise BookingError(
                    f"Cannot change status from {current.value} to {target.value}",
                    code=ErrorCodes.INVALID_TRANSITION,
                    status_code=409,
                    extra={"from": current.value, "to": target.value}
                )

            incoming = is_incoming(appointment.date, appointment.end_time, business.timezone, now)
            if target == S.CANCELED and incoming and not confirm:
                raise BookingError(
                    "Canceling an upcoming appointment must be confirmed",
                    code=ErrorCodes.CONFIRMATION_REQUIRED,
                    status_code=409,
                    extra={"appointment": AppointmentQueryService.serialize(appointment)}
                )

            StatusService._apply(appointment, target, CancelledBy.BUSINESS)
            db.commit()

        except BookingError:
            db.rollback()
            raise

        db.refresh(appointment)
        if current == S.BOOKED:
            AvailabilityCache.invalidate(business.id, appointment.date)
        logger.info(f"Appointment {appointment.id}: {current.value} -> {target.value}")

        response = {"ok": True, "appointment": AppointmentQueryService.serialize(appointment)}
        if target == S.CANCELED:
            response["email"] = StatusService._cancel_email(appointment, business, notify_customer and incoming)
        return response

    @staticmethod
    def cancel(
            db: Session,
            business_id: UUID,
            appointment_id: UUID,
            cancelled_by: CancelledBy,
            notify_customer: bool = False
    ) -> Dict[str, Any]:
        """
        Confirmed cancel. Canceling an already canceled appointment succeeds
        with alreadyCanceled=True and changes nothing.
        """
        try:
            business = BusinessService.lock(db, business_id)
            appointment = AppointmentQueryService.get(db, business.id, appointment_id)
            current = AppointmentStatus(appointment.status)

            if current == S.CANCELED:
                db.rollback()
                return {
                    "ok": True,
                    "alreadyCanceled": True,
                    "appointment": AppointmentQueryService.serialize(appointment),
                    "email": NotificationService.not_requested(),
                }

            if cancelled_by == CancelledBy.CUSTOMER and current != S.BOOKED:
                raise BookingError(
                    "This appointment can no longer be canceled",
                    code=ErrorCodes.INVALID_TRANSITION,
                    status_code=409
                )

            StatusService._apply(appointment, S.CANCELED, cancelled_by)
            db.commit()

        except BookingError:
            db.rollback()
            raise

        db.refresh(appointment)
        if current == S.BOOKED:
            AvailabilityCache.invalidate(business.id, appointment.date)
        logger.info(f"Appointment {appointment.id} canceled by {cancelled_by.value}")

        return {
            "ok": True,
            "appointment": AppointmentQueryService.serialize(appointment),
            "email": StatusService._cancel_email(appointment, business, notify_customer),
        }

    @staticmethod
    def _cancel_email(appointment, business, notify: bool) -> Dict[str, Any]:
        if not notify:
            return NotificationService.not_requested()
        return NotificationService.appointment_email("canceled", appointment, business)
