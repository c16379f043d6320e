"""Appointment lifecycle changes made by staff and customers"""
from datetime import date, timedelta

import pytest

from bookwell.core.errors import BookingError, ErrorCodes
from bookwell.models.appointment import Appointment, AppointmentStatus, CancelledBy
from bookwell.services.booking.booking_service import BookingService, BookingRequest
from bookwell.services.booking.status_service import StatusService, can_transition

from conftest import future_date

S = AppointmentStatus


@pytest.mark.parametrize("current,target,allowed", [
    (S.BOOKED, S.COMPLETED, True),
    (S.BOOKED, S.NO_SHOW, True),
    (S.BOOKED, S.CANCELED, True),
    (S.COMPLETED, S.NO_SHOW, True),
    (S.CANCELED, S.COMPLETED, True),
    (S.NO_SHOW, S.CANCELED, True),
    (S.COMPLETED, S.BOOKED, False),
    (S.CANCELED, S.BOOKED, False),
    (S.NO_SHOW, S.BOOKED, False),
])
def test_transition_table(current, target, allowed):
    assert can_transition(current, target) is allowed


@pytest.fixture
def appointment(db, business, service):
    request = BookingRequest(
        business_id=business.id,
        service_id=service.id,
        date=future_date(),
        start_time="10:00",
        customer_full_name="Dana Levi",
        customer_email="dana@example.com",
    )
    appointment, _ = BookingService.admit_booking(db, request)
    return appointment


@pytest.fixture
def past_appointment(db, business, service):
    appointment = Appointment(
        business_id=business.id,
        service_id=service.id,
        service_name=service.name,
        duration_minutes=60,
        price=40,
        currency="USD",
        date=(date.today() - timedelta(days=3)).isoformat(),
        start_time="10:00",
        end_time="11:00",
        customer_full_name="Dana Levi",
        customer_email="dana@example.com",
        status=S.BOOKED.value,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def test_complete_then_no_show(db, business, appointment):
    result = StatusService.change_status(db, business.id, appointment.id, S.COMPLETED)
    assert result["appointment"]["status"] == "COMPLETED"

    result = StatusService.change_status(db, business.id, appointment.id, S.NO_SHOW)
    assert result["appointment"]["status"] == "NO_SHOW"


def test_back_to_booked_is_rejected(db, business, appointment):
    StatusService.change_status(db, business.id, appointment.id, S.COMPLETED)

    with pytest.raises(BookingError) as exc:
        StatusService.change_status(db, business.id, appointment.id, S.BOOKED)
    assert exc.value.code == ErrorCodes.INVALID_TRANSITION
    assert exc.value.status_code == 409


def test_same_status_is_a_no_op(db, business, appointment):
    result = StatusService.change_status(db, business.id, appointment.id, S.BOOKED)
    assert result["unchanged"] is True


def test_canceling_upcoming_appointment_needs_confirmation(db, business, appointment):
    with pytest.raises(BookingError) as exc:
        StatusService.change_status(db, business.id, appointment.id, S.CANCELED)
    assert exc.value.code == ErrorCodes.CONFIRMATION_REQUIRED

    result = StatusService.change_status(db, business.id, appointment.id, S.CANCELED, confirm=True)
    assert result["appointment"]["status"] == "CANCELED"
    assert result["appointment"]["cancelledBy"] == "BUSINESS"
    assert result["email"]["skipped"] is True


def test_canceling_past_appointment_needs_no_confirmation(db, business, past_appointment):
    result = StatusService.change_status(db, business.id, past_appointment.id, S.CANCELED)
    assert result["appointment"]["status"] == "CANCELED"


def test_cancel_notifies_customer_when_asked(db, business, appointment, sent_emails):
    result = StatusService.cancel(db, business.id, appointment.id, CancelledBy.BUSINESS, notify_customer=True)

    assert result["email"]["sent"] is True
    assert sent_emails[-1]["subject"].startswith("Appointment canceled")


def test_cancel_twice_reports_already_canceled(db, business, appointment, sent_emails):
    StatusService.cancel(db, business.id, appointment.id, CancelledBy.BUSINESS, notify_customer=True)
    count = len(sent_emails)

    result = StatusService.cancel(db, business.id, appointment.id, CancelledBy.BUSINESS, notify_customer=True)
    assert result["alreadyCanceled"] is True
    assert len(sent_emails) == count


def test_customer_can_only_cancel_booked(db, business, appointment):
    StatusService.change_status(db, business.id, appointment.id, S.COMPLETED)

    with pytest.raises(BookingError) as exc:
        StatusService.cancel(db, business.id, appointment.id, CancelledBy.CUSTOMER)
    assert exc.value.code == ErrorCodes.INVALID_TRANSITION


def test_uncancel_clears_cancellation_fields(db, business, appointment):
    StatusService.cancel(db, business.id, appointment.id, CancelledBy.CUSTOMER)
    result = StatusService.change_status(db, business.id, appointment.id, S.COMPLETED)

    assert result["appointment"]["cancelledBy"] is None
    assert result["appointment"]["cancelledAt"] is None
