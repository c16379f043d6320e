# ===== bookwell/services/booking/booking_service.py =====
"""
Booking admission and rescheduling.

Every mutation runs in one transaction that starts by locking the business
row, so two requests for the same business are decided one after the other.
The partial unique index on BOOKED (business, date, start) rows backs this up
on databases without row locks.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Tuple
from uuid import UUID
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookwell.core.errors import (
    BookingError,
    BookingConflict,
    ErrorCodes,
    SlotUnavailable,
    ValidationFailed,
)
from bookwell.models.appointment import Appointment, AppointmentStatus, CreatedBy
from bookwell.models.business import Business
from bookwell.services.appointment.appointment_query_service import AppointmentQueryService
from bookwell.services.availability.availability_cache import AvailabilityCache
from bookwell.services.availability.slot_service import AvailabilityService
from bookwell.services.business.business_service import BusinessService
from bookwell.services.customer.customer_service import CustomerService
from bookwell.services.notification.notification_service import NotificationService
from bookwell.services.auth.token_service import TokenService
from bookwell.utils.contact import normalize_email, normalize_phone, is_valid_email
from bookwell.utils.timeutils import parse_date, parse_hhmm, format_minutes

logger = logging.getLogger(__name__)

# Postgres reports the constraint name, SQLite the constrained columns
SLOT_TAKEN_MARKERS = ("uq_appointments_booked_slot", "appointments.start_time")
CUSTOMER_EXISTS_MARKERS = ("uq_customers_business_email", "customers.email")


def violates(error: IntegrityError, markers) -> bool:
    message = str(error.orig)
    return any(marker in message for marker in markers)


@dataclass
class BookingRequest:
    business_id: UUID
    service_id: UUID
    date: str
    start_time: str
    customer_full_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    created_by: CreatedBy = CreatedBy.CUSTOMER
    idempotency_key: Optional[str] = None

    @property
    def enforces_customer_rules(self) -> bool:
        """Staff bookings skip the per-customer limits"""
        return self.created_by == CreatedBy.CUSTOMER


class BookingService:

    @staticmethod
    def admit_booking(
            db: Session,
            request: BookingRequest,
            now: Optional[datetime] = None,
            _retried: bool = False
    ) -> Tuple[Appointment, bool]:
        """
        Decide a booking request and insert it when admitted.

        Rules, first violation wins:
            1. ACTIVE_APPOINTMENT_EXISTS - one upcoming appointment per customer
            2. SAME_SERVICE_SAME_DAY_EXISTS - one booking of a service per day
            3. SLOT_NO_LONGER_AVAILABLE - slot taken, past or outside the windows

        Returns:
            (appointment, replayed) where replayed is True when the
            idempotency key matched an earlier booking

        Raises:
            BookingConflict, SlotUnavailable, CustomerBlocked, NotFoundError
        """
        if parse_date(request.date) is None:
            raise ValidationFailed("Invalid date")
        start_minutes = parse_hhmm(request.start_time)
        if start_minutes is None:
            raise ValidationFailed("Invalid startTime")

        email = normalize_email(request.customer_email)
        if email and not is_valid_email(email):
            raise ValidationFailed("Please enter a valid email address")

        try:
            business = BusinessService.lock(db, request.business_id)

            replay = AppointmentQueryService.find_by_idempotency_key(db, business.id, request.idempotency_key)
            if replay is not None:
                logger.info(f"Idempotent replay of appointment {replay.id}")
                db.rollback()
                return replay, True

            service = BusinessService.get_service(db, business, request.service_id)

            customer = None
            if email:
                customer = CustomerService.upsert(
                    db, business.id, email,
                    full_name=request.customer_full_name,
                    phone=request.customer_phone
                )

            if request.enforces_customer_rules and customer is not None:
                CustomerService.ensure_can_book(business, customer)
                BookingService._check_customer_rules(db, business, customer.id, request, now)

            if not AvailabilityService.is_slot_available(
                    db, business, service.duration_minutes, request.date, request.start_time, now=now
            ):
                raise SlotUnavailable()

            appointment = Appointment(
                business_id=business.id,
                customer_id=customer.id if customer else None,
                service_id=service.id,
                service_name=service.name,
                duration_minutes=service.duration_minutes,
                price=service.price,
                currency=business.currency,
                date=request.date,
                start_time=format_minutes(start_minutes),
                end_time=format_minutes(start_minutes + service.duration_minutes),
                customer_full_name=request.customer_full_name.strip(),
                customer_phone=normalize_phone(request.customer_phone) or None,
                customer_email=email or None,
                notes=(request.notes or "").strip() or None,
                status=AppointmentStatus.BOOKED.value,
                created_by=request.created_by.value,
                idempotency_key=request.idempotency_key or None,
            )
            db.add(appointment)
            CustomerService.touch_last_appointment(customer)
            db.flush()
            db.commit()

        except IntegrityError as e:
            db.rollback()
            replay = AppointmentQueryService.find_by_idempotency_key(db, request.business_id, request.idempotency_key)
            if replay is not None:
                return replay, True
            if violates(e, CUSTOMER_EXISTS_MARKERS) and not _retried:
                # Customer row inserted concurrently, found by the second pass
                logger.info(f"Customer {request.customer_email} created concurrently, retrying admission")
                return BookingService.admit_booking(db, request, now, _retried=True)
            if violates(e, SLOT_TAKEN_MARKERS):
                logger.info(f"Slot {request.date} {request.start_time} taken concurrently for business {request.business_id}")
                raise SlotUnavailable()
            raise
        except BookingError:
            db.rollback()
            raise

        db.refresh(appointment)
        AvailabilityCache.invalidate(business.id, appointment.date)
        logger.info(
            f"Booked appointment {appointment.id} for business {business.id} "
            f"on {appointment.date} {appointment.start_time} ({appointment.created_by})"
        )
        return appointment, False

    @staticmethod
    def _check_customer_rules(
            db: Session,
            business: Business,
            customer_id: UUID,
            request: BookingRequest,
            now: Optional[datetime] = None
    ):
        if business.limit_customer_to_one_upcoming_appointment:
            upcoming = AppointmentQueryService.upcoming_for_customer(db, business, customer_id, now)
            if upcoming:
                raise BookingConflict(
                    ErrorCodes.ACTIVE_APPOINTMENT_EXISTS,
                    "You already have an upcoming appointment with this business.",
                    [AppointmentQueryService.serialize(a) for a in upcoming],
                )

        if business.prevent_same_service_same_day:
            same_day = AppointmentQueryService.same_service_same_day(
                db, business.id, customer_id, request.service_id, request.date
            )
            if same_day:
                raise BookingConflict(
                    ErrorCodes.SAME_SERVICE_SAME_DAY_EXISTS,
                    "You already booked this service on this day.",
                    [AppointmentQueryService.serialize(a) for a in same_day],
                )

    @staticmethod
    def create_booking(
            db: Session,
            request: BookingRequest,
            with_cancel_token: bool = False
    ) -> Dict[str, Any]:
        """
        Admit a booking and queue the confirmation email.
        Email problems are reported in the response and never undo the booking.
        """
        appointment, replayed = BookingService.admit_booking(db, request)
        business = db.query(Business).filter(Business.id == appointment.business_id).first()

        cancel_token = None
        if with_cancel_token:
            cancel_token = TokenService.create_cancel_token(appointment.id, appointment.customer_email)

        if replayed:
            email_status = NotificationService.not_requested()
        else:
            email_status = NotificationService.appointment_email("booked", appointment, business, cancel_token)

        response = {
            "ok": True,
            "appointment": AppointmentQueryService.serialize(appointment),
            "email": email_status,
        }
        if replayed:
            response["replayed"] = True
        if cancel_token:
            response["cancelToken"] = cancel_token
        return response

    @staticmethod
    def reschedule(
            db: Session,
            business_id: UUID,
            appointment_id: UUID,
            date: str,
            start_time: str,
            notify_customer: bool = True,
            now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Move a BOOKED appointment to another free slot of the same length.

        Raises:
            BookingError INVALID_TRANSITION: appointment is not BOOKED
            SlotUnavailable: target slot is taken, past or outside the windows
        """
        if parse_date(date) is None:
            raise ValidationFailed("Invalid date")
        start_minutes = parse_hhmm(start_time)
        if start_minutes is None:
            raise ValidationFailed("Invalid startTime")

        try:
            business = BusinessService.lock(db, business_id)
            appointment = AppointmentQueryService.get(db, business.id, appointment_id)

            if appointment.status != AppointmentStatus.BOOKED.value:
                raise BookingError(
                    "Only booked appointments can be rescheduled",
                    code=ErrorCodes.INVALID_TRANSITION,
                    status_code=409
                )

            previous_date, previous_start = appointment.date, appointment.start_time
            if previous_date == date and previous_start == format_minutes(start_minutes):
                db.rollback()
                return {
                    "ok": True,
                    "unchanged": True,
                    "appointment": AppointmentQueryService.serialize(appointment),
                    "email": NotificationService.not_requested(),
                }

            if not AvailabilityService.is_slot_available(
                    db, business, appointment.duration_minutes, date, format_minutes(start_minutes),
                    exclude_appointment_id=appointment.id, now=now
            ):
                raise SlotUnavailable()

            appointment.date = date
            appointment.start_time = format_minutes(start_minutes)
            appointment.end_time = format_minutes(start_minutes + appointment.duration_minutes)
            appointment.rescheduled_at = datetime.now(timezone.utc)
            db.flush()
            db.commit()

        except IntegrityError as e:
            db.rollback()
            if violates(e, SLOT_TAKEN_MARKERS):
                raise SlotUnavailable()
            raise
        except BookingError:
            db.rollback()
            raise

        db.refresh(appointment)
        AvailabilityCache.invalidate(business.id, previous_date, appointment.date)
        logger.info(
            f"Rescheduled appointment {appointment.id} from {previous_date} {previous_start} "
            f"to {appointment.date} {appointment.start_time}"
        )

        if notify_customer:
            email_status = NotificationService.appointment_email(
                "rescheduled", appointment, business,
                previousDate=previous_date, previousStartTime=previous_start
            )
        else:
            email_status = NotificationService.not_requested()

        return {
            "ok": True,
            "appointment": AppointmentQueryService.serialize(appointment),
            "email": email_status,
        }
