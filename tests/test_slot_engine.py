"""Slot generation from weekly windows, without a database"""
from datetime import datetime, timezone

from bookwell.services.availability.slot_service import compute_slots, overlaps

# 2030-01-07 is a Monday (weekday index 1 with Sunday=0)
MONDAY = "2030-01-07"
NEW_YEAR = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)


def monday(*windows, enabled=True):
    return [{"day": 1, "enabled": enabled, "windows": [{"start": s, "end": e} for s, e in windows]}]


def starts(slots):
    return [s["startTime"] for s in slots]


def test_overlaps_is_half_open():
    assert overlaps(60, 120, 90, 150)
    assert not overlaps(60, 120, 120, 180)
    assert not overlaps(120, 180, 60, 120)


def test_window_is_cut_into_service_length_slots():
    slots = compute_slots(monday(("09:00", "12:00")), 60, MONDAY, now=NEW_YEAR)
    assert slots == [
        {"startTime": "09:00", "endTime": "10:00"},
        {"startTime": "10:00", "endTime": "11:00"},
        {"startTime": "11:00", "endTime": "12:00"},
    ]


def test_slot_must_fit_inside_the_window():
    assert starts(compute_slots(monday(("09:00", "11:30")), 60, MONDAY, now=NEW_YEAR)) == ["09:00", "10:00"]


def test_booked_interval_removes_overlapping_slots():
    slots = compute_slots(monday(("09:00", "13:00")), 60, MONDAY, booked=[("10:30", "11:00")], now=NEW_YEAR)
    assert starts(slots) == ["09:00", "11:00", "12:00"]


def test_adjacent_booking_does_not_block():
    slots = compute_slots(monday(("09:00", "12:00")), 60, MONDAY, booked=[("10:00", "11:00")], now=NEW_YEAR)
    assert starts(slots) == ["09:00", "11:00"]


def test_disabled_or_missing_day_has_no_slots():
    assert compute_slots(monday(("09:00", "12:00"), enabled=False), 60, MONDAY, now=NEW_YEAR) == []
    # 2030-01-08 is a Tuesday with no row at all
    assert compute_slots(monday(("09:00", "12:00")), 60, "2030-01-08", now=NEW_YEAR) == []


def test_past_date_has_no_slots():
    later = datetime(2030, 2, 1, tzinfo=timezone.utc)
    assert compute_slots(monday(("09:00", "12:00")), 60, MONDAY, now=later) == []


def test_today_skips_slots_that_already_started():
    now = datetime(2030, 1, 7, 10, 0, tzinfo=timezone.utc)
    slots = compute_slots(monday(("09:00", "13:00")), 60, MONDAY, now=now)
    assert starts(slots) == ["11:00", "12:00"]


def test_today_is_taken_from_the_business_time_zone():
    # 15:30 UTC is 10:30 in New York
    now = datetime(2030, 1, 7, 15, 30, tzinfo=timezone.utc)
    slots = compute_slots(monday(("09:00", "13:00")), 60, MONDAY, timezone="America/New_York", now=now)
    assert starts(slots) == ["11:00", "12:00"]


def test_spring_forward_gap_is_skipped():
    # Clocks jump 02:00 -> 03:00 in New York on Sunday 2030-03-10
    days = [{"day": 0, "enabled": True, "windows": [{"start": "01:00", "end": "04:00"}]}]
    slots = compute_slots(days, 30, "2030-03-10", timezone="America/New_York", now=NEW_YEAR)
    assert starts(slots) == ["01:00", "01:30", "03:00", "03:30"]


def test_fall_back_repeated_hour_gives_each_slot_once():
    # Clocks go 02:00 -> 01:00 in New York on Sunday 2026-11-01
    days = [{"day": 0, "enabled": True, "windows": [{"start": "00:00", "end": "04:00"}]}]
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    slots = compute_slots(days, 60, "2026-11-01", timezone="America/New_York", now=now)
    assert starts(slots) == ["00:00", "01:00", "02:00", "03:00"]


def test_overlapping_windows_do_not_produce_overlapping_slots():
    slots = compute_slots(monday(("09:00", "11:00"), ("09:30", "11:30")), 60, MONDAY, now=NEW_YEAR)
    assert starts(slots) == ["09:00", "10:00"]


def test_invalid_input_yields_nothing():
    assert compute_slots(monday(("09:00", "12:00")), 60, "2030-02-30", now=NEW_YEAR) == []
    assert compute_slots(monday(("09:00", "12:00")), 0, MONDAY, now=NEW_YEAR) == []
    assert compute_slots(monday(("12:00", "09:00")), 60, MONDAY, now=NEW_YEAR) == []


def test_unknown_time_zone_falls_back_to_utc():
    slots = compute_slots(monday(("09:00", "10:00")), 60, MONDAY, timezone="Mars/Olympus", now=NEW_YEAR)
    assert starts(slots) == ["09:00"]


def test_full_working_day_in_half_hours():
    slots = compute_slots(monday(("09:00", "17:00")), 30, MONDAY, now=NEW_YEAR)
    assert len(slots) == 16
    assert slots[0]["startTime"] == "09:00"
    assert slots[-1] == {"startTime": "16:30", "endTime": "17:00"}


def test_slots_stay_inside_windows_and_never_overlap():
    days = monday(("08:10", "11:55"), ("11:00", "14:20"), ("16:00", "16:40"))
    slots = compute_slots(days, 25, MONDAY, booked=[("12:00", "12:30")], now=NEW_YEAR)

    windows = [("08:10", "11:55"), ("11:00", "14:20"), ("16:00", "16:40")]
    for slot in slots:
        assert any(start <= slot["startTime"] and slot["endTime"] <= end for start, end in windows)
        assert not overlaps_text(slot, ("12:00", "12:30"))
    for earlier, later in zip(slots, slots[1:]):
        assert earlier["endTime"] <= later["startTime"]


def overlaps_text(slot, booked):
    return slot["startTime"] < booked[1] and booked[0] < slot["endTime"]
