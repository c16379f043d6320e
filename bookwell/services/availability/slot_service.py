# ===== bookwell/services/availability/slot_service.py =====
"""
Slot generation from weekly opening windows.

All arithmetic is in wall-clock minutes of the business time zone, so DST
changes never shift or duplicate slots. Start times that do not exist on a
spring-forward night are skipped.
"""
from typing import List, Dict, Optional, Iterable, Tuple, Any
from datetime import datetime
from uuid import UUID
from sqlalchemy.orm import Session
import logging

from bookwell.models.appointment import Appointment, AppointmentStatus
from bookwell.models.business import Business
from bookwell.models.service import Service
from bookwell.services.availability.availability_cache import AvailabilityCache
from bookwell.utils.timeutils import (
    parse_hhmm,
    format_minutes,
    parse_date,
    sunday_weekday,
    now_in_zone,
    wall_time_exists,
)

logger = logging.getLogger(__name__)


def _field(obj: Any, name: str, default=None):
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open interval overlap"""
    return a_start < b_end and b_start < a_end


def compute_slots(
        availability_days: Iterable[Any],
        duration_minutes: int,
        date: str,
        booked: Iterable[Tuple[str, str]] = (),
        timezone: Optional[str] = "UTC",
        now: Optional[datetime] = None
) -> List[Dict[str, str]]:
    """
    Free slots for one service on one civil date.

    Args:
        availability_days: AvailabilityDay rows or dicts with day/enabled/windows
        duration_minutes: Service length, also the step between slot starts
        date: "YYYY-MM-DD" in the business time zone
        booked: (startTime, endTime) pairs of BOOKED appointments that day
        timezone: IANA zone of the business
        now: Override of the current instant (tests)

    Returns:
        Ascending list of {"startTime", "endTime"}; empty when nothing is free
    """
    day = parse_date(date)
    if day is None or not duration_minutes or duration_minutes <= 0:
        return []

    local_now = now_in_zone(timezone, now)
    today = local_now.date()
    if day < today:
        return []
    now_minutes = local_now.hour * 60 + local_now.minute if day == today else None

    weekday = sunday_weekday(day)
    schedule = next((d for d in availability_days if _field(d, "day") == weekday), None)
    if schedule is None or not _field(schedule, "enabled", False):
        return []

    busy = []
    for start_time, end_time in booked:
        b_start, b_end = parse_hhmm(start_time), parse_hhmm(end_time)
        if b_start is None or b_end is None:
            continue
        busy.append((b_start, b_end))

    starts = set()
    for window in _field(schedule, "windows") or []:
        w_start = parse_hhmm(_field(window, "start"))
        w_end = parse_hhmm(_field(window, "end"))
        if w_start is None or w_end is None or w_end <= w_start:
            continue

        cursor = w_start
        while cursor + duration_minutes <= w_end:
            slot_end = cursor + duration_minutes
            if now_minutes is not None and cursor <= now_minutes:
                cursor += duration_minutes
                continue
            if any(overlaps(cursor, slot_end, b_start, b_end) for b_start, b_end in busy):
                cursor += duration_minutes
                continue
            if not wall_time_exists(day, cursor, timezone):
                cursor += duration_minutes
                continue
            starts.add(cursor)
            cursor += duration_minutes

    # Overlapping windows can yield slots that overlap each other; keep the earliest
    slots = []
    last_end = None
    for start in sorted(starts):
        if last_end is not None and start < last_end:
            continue
        last_end = start + duration_minutes
        slots.append({"startTime": format_minutes(start), "endTime": format_minutes(last_end)})
    return slots


class AvailabilityService:
    """Loads what compute_slots needs from the database"""

    @staticmethod
    def booked_intervals(
            db: Session,
            business_id: UUID,
            date: str,
            exclude_appointment_id: Optional[UUID] = None
    ) -> List[Tuple[str, str]]:
        query = db.query(Appointment.start_time, Appointment.end_time).filter(
            Appointment.business_id == business_id,
            Appointment.date == date,
            Appointment.status == AppointmentStatus.BOOKED.value
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)
        return [(row.start_time, row.end_time) for row in query.all()]

    @staticmethod
    def free_slots(
            db: Session,
            business: Business,
            duration_minutes: int,
            date: str,
            exclude_appointment_id: Optional[UUID] = None,
            now: Optional[datetime] = None
    ) -> List[Dict[str, str]]:
        """Uncached slot computation straight from the database"""
        booked = AvailabilityService.booked_intervals(db, business.id, date, exclude_appointment_id)
        return compute_slots(
            business.availability_days,
            duration_minutes,
            date,
            booked=booked,
            timezone=business.timezone,
            now=now
        )

    @staticmethod
    def get_available_slots(
            db: Session,
            business: Business,
            service: Service,
            date: str,
            exclude_appointment_id: Optional[UUID] = None
    ) -> List[Dict[str, str]]:
        """
        Free slots for a service as shown to users. Goes through the short-TTL
        cache unless an appointment is being excluded (reschedule view).
        """
        cacheable = exclude_appointment_id is None

        if cacheable:
            cached = AvailabilityCache.get(business.id, date, service.id)
            if cached is not None:
                return cached

        slots = AvailabilityService.free_slots(
            db, business, service.duration_minutes, date, exclude_appointment_id
        )

        if cacheable:
            AvailabilityCache.set(business.id, date, service.id, slots)

        logger.debug(f"Computed {len(slots)} slots for business {business.id} on {date}")
        return slots

    @staticmethod
    def is_slot_available(
            db: Session,
            business: Business,
            duration_minutes: int,
            date: str,
            start_time: str,
            exclude_appointment_id: Optional[UUID] = None,
            now: Optional[datetime] = None
    ) -> bool:
        """Fresh check used under the business lock; never cached"""
        slots = AvailabilityService.free_slots(
            db, business, duration_minutes, date, exclude_appointment_id, now
        )
        return any(slot["startTime"] == start_time for slot in slots)
