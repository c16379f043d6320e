# bookwell/utils/timeutils.py
"""
Civil date/time helpers.

Appointments are stored as wall-clock strings ("YYYY-MM-DD", "HH:MM") in the
business time zone. Everything here converts between those strings, minutes
since midnight and aware datetimes.
"""
import logging
import re
from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_hhmm(value) -> Optional[int]:
    """Parse "HH:MM" into minutes since midnight. Returns None when invalid."""
    if not isinstance(value, str):
        return None
    match = _HHMM_RE.match(value.strip())
    if not match:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as "HH:MM" """
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_date(value) -> Optional[date]:
    """Parse "YYYY-MM-DD". Returns None when invalid."""
    if not isinstance(value, str) or not _DATE_RE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def sunday_weekday(day: date) -> int:
    """Weekday index with 0=Sunday ... 6=Saturday"""
    return (day.weekday() + 1) % 7


def get_zone(tz_name: Optional[str]) -> ZoneInfo:
    """Resolve an IANA zone name, falling back to UTC"""
    try:
        return ZoneInfo(tz_name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown time zone {tz_name!r}, falling back to UTC")
        return ZoneInfo("UTC")


def now_in_zone(tz_name: Optional[str], now: Optional[datetime] = None) -> datetime:
    """Current aware datetime in the given zone"""
    now = now or datetime.now(timezone.utc)
    return as_utc(now).astimezone(get_zone(tz_name))


def today_in_zone(tz_name: Optional[str], now: Optional[datetime] = None) -> date:
    return now_in_zone(tz_name, now).date()


def wall_time_exists(day: date, minutes: int, tz_name: Optional[str]) -> bool:
    """
    False when the wall-clock time falls into a DST gap on that day
    (e.g. 02:30 on a spring-forward night).
    """
    zone = get_zone(tz_name)
    naive = datetime.combine(day, time(minutes // 60, minutes % 60))
    local = naive.replace(tzinfo=zone)
    round_trip = local.astimezone(timezone.utc).astimezone(zone)
    return round_trip.replace(tzinfo=None) == naive


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (as returned by SQLite) as UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_incoming(date_str: str, end_time: str, tz_name: Optional[str], now: Optional[datetime] = None) -> bool:
    """
    An appointment is incoming while its date is in the future, or it is
    today and its end time has not passed yet.
    """
    local_now = now_in_zone(tz_name, now)
    today = local_now.date().isoformat()
    if date_str > today:
        return True
    if date_str < today:
        return False
    end_minutes = parse_hhmm(end_time)
    if end_minutes is None:
        return False
    return end_minutes > local_now.hour * 60 + local_now.minute
