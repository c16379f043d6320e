# ============================================================================
# FILE: bookwell/services/appointment/appointment_query_service.py
# Read side of appointments - no FastAPI dependencies, fully testable
# ============================================================================
from sqlalchemy.orm import Session
from sqlalchemy import or_, and_
from datetime import datetime
from typing import Optional, Dict, Any, List
from uuid import UUID

from bookwell.core.errors import NotFoundError
from bookwell.models.appointment import Appointment, AppointmentStatus
from bookwell.models.business import Business
from bookwell.utils.timeutils import now_in_zone


class AppointmentQueryService:
    """Queries and serialization of appointments."""

    @staticmethod
    def serialize(appointment: Appointment) -> Dict[str, Any]:
        """Convert an appointment into its camelCase API shape"""
        return {
            "id": str(appointment.id),
            "date": appointment.date,
            "startTime": appointment.start_time,
            "endTime": appointment.end_time,
            "serviceId": str(appointment.service_id),
            "serviceName": appointment.service_name,
            "durationMinutes": appointment.duration_minutes,
            "price": float(appointment.price) if appointment.price is not None else 0.0,
            "currency": appointment.currency,
            "customer": {
                "id": str(appointment.customer_id) if appointment.customer_id else None,
                "fullName": appointment.customer_full_name,
                "phone": appointment.customer_phone,
                "email": appointment.customer_email,
            },
            "status": appointment.status,
            "cancelledBy": appointment.cancelled_by,
            "createdBy": appointment.created_by,
            "notes": appointment.notes,
            "createdAt": appointment.created_at.isoformat() if appointment.created_at else None,
            "cancelledAt": appointment.cancelled_at.isoformat() if appointment.cancelled_at else None,
        }

    @staticmethod
    def list_for_date(db: Session, business_id: UUID, date: str) -> Dict[str, Any]:
        """All appointments of a day, every status, ordered by start time."""
        appointments = db.query(Appointment).filter(
            Appointment.business_id == business_id,
            Appointment.date == date
        ).order_by(Appointment.start_time.asc(), Appointment.created_at.asc()).all()

        return {
            "date": date,
            "appointments": [AppointmentQueryService.serialize(a) for a in appointments],
        }

    @staticmethod
    def get(db: Session, business_id: UUID, appointment_id: UUID) -> Appointment:
        appointment = db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.business_id == business_id
        ).first()
        if appointment is None:
            raise NotFoundError("Appointment not found")
        return appointment

    @staticmethod
    def find_by_idempotency_key(db: Session, business_id: UUID, key: Optional[str]) -> Optional[Appointment]:
        if not key:
            return None
        return db.query(Appointment).filter(
            Appointment.business_id == business_id,
            Appointment.idempotency_key == key
        ).first()

    @staticmethod
    def upcoming_for_customer(
            db: Session,
            business: Business,
            customer_id: UUID,
            now: Optional[datetime] = None,
            exclude_appointment_id: Optional[UUID] = None
    ) -> List[Appointment]:
        """BOOKED appointments of a customer that start after now (business time)."""
        local_now = now_in_zone(business.timezone, now)
        today = local_now.date().isoformat()
        now_hhmm = local_now.strftime("%H:%M")

        query = db.query(Appointment).filter(
            Appointment.business_id == business.id,
            Appointment.customer_id == customer_id,
            Appointment.status == AppointmentStatus.BOOKED.value,
            or_(
                Appointment.date > today,
                and_(Appointment.date == today, Appointment.start_time > now_hhmm)
            )
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)
        return query.order_by(Appointment.date.asc(), Appointment.start_time.asc()).all()

    @staticmethod
    def same_service_same_day(
            db: Session,
            business_id: UUID,
            customer_id: UUID,
            service_id: UUID,
            date: str,
            exclude_appointment_id: Optional[UUID] = None
    ) -> List[Appointment]:
        query = db.query(Appointment).filter(
            Appointment.business_id == business_id,
            Appointment.customer_id == customer_id,
            Appointment.service_id == service_id,
            Appointment.date == date,
            Appointment.status == AppointmentStatus.BOOKED.value
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)
        return query.order_by(Appointment.start_time.asc()).all()

    @staticmethod
    def for_customer(
            db: Session,
            business: Business,
            customer_id: UUID,
            date: Optional[str] = None,
            future_only: bool = False,
            now: Optional[datetime] = None,
            limit: int = 50
    ) -> List[Appointment]:
        """
        A customer's own view: upcoming BOOKED appointments, or the BOOKED and
        COMPLETED appointments of one day.
        """
        if future_only:
            local_now = now_in_zone(business.timezone, now)
            today = local_now.date().isoformat()
            now_hhmm = local_now.strftime("%H:%M")
            query = db.query(Appointment).filter(
                Appointment.business_id == business.id,
                Appointment.customer_id == customer_id,
                Appointment.status == AppointmentStatus.BOOKED.value,
                or_(
                    Appointment.date > today,
                    and_(Appointment.date == today, Appointment.end_time > now_hhmm)
                )
            )
        else:
            query = db.query(Appointment).filter(
                Appointment.business_id == business.id,
                Appointment.customer_id == customer_id,
                Appointment.date == date,
                Appointment.status.in_([AppointmentStatus.BOOKED.value, AppointmentStatus.COMPLETED.value])
            )
        return query.order_by(Appointment.date.asc(), Appointment.start_time.asc()).limit(limit).all()

    @staticmethod
    def for_customer_history(
            db: Session,
            business: Business,
            customer_id: UUID,
            page: int = 1,
            page_size: int = 10,
            now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Paged booking history of one customer, newest first.

        A BOOKED appointment whose start has passed is reported as COMPLETED.
        Out of range page numbers are clamped, pageSize is kept within 1..50.
        """
        page_size = min(50, max(1, page_size))
        query = db.query(Appointment).filter(
            Appointment.business_id == business.id,
            Appointment.customer_id == customer_id
        )

        total = query.count()
        total_pages = max(1, (total + page_size - 1) // page_size)
        page = min(max(1, page), total_pages)

        appointments = query.order_by(
            Appointment.date.desc(),
            Appointment.start_time.desc(),
            Appointment.created_at.desc()
        ).offset((page - 1) * page_size).limit(page_size).all()

        local_now = now_in_zone(business.timezone, now)
        today = local_now.date().isoformat()
        now_hhmm = local_now.strftime("%H:%M")

        bookings = []
        for appointment in appointments:
            status = appointment.status
            if status == AppointmentStatus.BOOKED.value and (
                    appointment.date < today
                    or (appointment.date == today and appointment.start_time <= now_hhmm)
            ):
                status = AppointmentStatus.COMPLETED.value
            bookings.append({
                "id": str(appointment.id),
                "serviceName": appointment.service_name,
                "date": appointment.date,
                "startTime": appointment.start_time,
                "endTime": appointment.end_time,
                "status": status,
                "cancelledBy": appointment.cancelled_by,
            })

        return {
            "ok": True,
            "bookings": bookings,
            "bookingsPagination": {
                "page": page,
                "pageSize": page_size,
                "totalPages": total_pages,
                "totalBookingsCount": total,
            },
        }
