"""Staff calendar, customers and sign-in over HTTP"""
from datetime import date, timedelta
from uuid import UUID

from bookwell.models.appointment import Appointment

from conftest import future_date, OWNER_EMAIL, TEST_CODE

DAY = future_date()


def create(client, headers, service, start_time="10:00", email="dana@example.com", extra_headers=None, **body):
    payload = {
        "date": DAY,
        "serviceId": str(service.id),
        "startTime": start_time,
        "customerFullName": "Dana Levi",
        "customerPhone": "+1 555 123 4567",
        "customerEmail": email,
    }
    payload.update(body)
    return client.post("/api/appointments/create", json=payload, headers={**headers, **(extra_headers or {})})


def test_requires_bearer_token(client):
    response = client.get(f"/api/appointments?date={DAY}")
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_rejects_garbage_token(client):
    response = client.get(f"/api/appointments?date={DAY}", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_create_and_list(client, auth_headers, service):
    response = create(client, auth_headers, service)
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["appointment"]["startTime"] == "10:00"
    assert body["appointment"]["createdBy"] == "BUSINESS"
    assert body["email"]["sent"] is True

    listing = client.get(f"/api/appointments?date={DAY}", headers=auth_headers).json()
    assert listing["date"] == DAY
    assert [a["id"] for a in listing["appointments"]] == [body["appointment"]["id"]]


def test_invalid_body_maps_to_validation_error(client, auth_headers, service):
    response = create(client, auth_headers, service, start_time="25:00")
    assert response.status_code == 400
    body = response.json()
    assert body["ok"] is False
    assert body["code"] == "VALIDATION_ERROR"
    assert "startTime" in body["error"]


def test_available_times_hide_booked_slot(client, auth_headers, service):
    before = client.get(
        f"/api/appointments/available-times?date={DAY}&serviceId={service.id}", headers=auth_headers
    ).json()
    assert before["slots"][0] == {"startTime": "09:00", "endTime": "10:00"}
    assert len(before["slots"]) == 8

    create(client, auth_headers, service, start_time="10:00")

    after = client.get(
        f"/api/appointments/available-times?date={DAY}&serviceId={service.id}", headers=auth_headers
    ).json()
    assert "10:00" not in [s["startTime"] for s in after["slots"]]
    assert len(after["slots"]) == 7


def test_double_booking_conflict(client, auth_headers, service):
    assert create(client, auth_headers, service).status_code == 200

    response = create(client, auth_headers, service, email="other@example.com")
    assert response.status_code == 409
    assert response.json()["code"] == "SLOT_NO_LONGER_AVAILABLE"


def test_idempotency_key_header(client, auth_headers, service, sent_emails):
    key = {"Idempotency-Key": "create-1"}
    first = create(client, auth_headers, service, extra_headers=key).json()
    second = create(client, auth_headers, service, extra_headers=key).json()

    assert second["replayed"] is True
    assert second["appointment"]["id"] == first["appointment"]["id"]
    assert len(sent_emails) == 1
    listing = client.get(f"/api/appointments?date={DAY}", headers=auth_headers).json()
    assert len(listing["appointments"]) == 1


def test_status_change_flow(client, auth_headers, service):
    appointment_id = create(client, auth_headers, service).json()["appointment"]["id"]

    unconfirmed = client.post(
        f"/api/appointments/{appointment_id}/status", json={"status": "CANCELED"}, headers=auth_headers
    )
    assert unconfirmed.status_code == 409
    assert unconfirmed.json()["code"] == "CONFIRMATION_REQUIRED"

    confirmed = client.post(
        f"/api/appointments/{appointment_id}/status",
        json={"status": "CANCELED", "confirm": True, "notifyCustomer": True},
        headers=auth_headers,
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["appointment"]["status"] == "CANCELED"
    assert confirmed.json()["email"]["sent"] is True


def test_unknown_status_value(client, auth_headers, service):
    appointment_id = create(client, auth_headers, service).json()["appointment"]["id"]
    response = client.post(
        f"/api/appointments/{appointment_id}/status", json={"status": "LOST"}, headers=auth_headers
    )
    assert response.status_code == 400


def test_cancel_endpoint_is_idempotent(client, auth_headers, service):
    appointment_id = create(client, auth_headers, service).json()["appointment"]["id"]

    first = client.post(f"/api/appointments/{appointment_id}/cancel", json={"notifyCustomer": False}, headers=auth_headers)
    assert first.status_code == 200
    assert first.json()["appointment"]["cancelledBy"] == "BUSINESS"
    assert first.json()["email"]["skipped"] is True

    second = client.post(f"/api/appointments/{appointment_id}/cancel", json={}, headers=auth_headers)
    assert second.json()["alreadyCanceled"] is True


def test_reschedule(client, auth_headers, service, sent_emails):
    appointment_id = create(client, auth_headers, service).json()["appointment"]["id"]

    own = client.get(f"/api/appointments/{appointment_id}/available-times?date={DAY}", headers=auth_headers).json()
    assert "10:00" in [s["startTime"] for s in own["slots"]]

    response = client.post(
        f"/api/appointments/{appointment_id}/reschedule",
        json={"date": DAY, "startTime": "15:00"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["appointment"]["startTime"] == "15:00"
    assert sent_emails[-1]["subject"].startswith("Appointment rescheduled")


def test_reschedule_onto_taken_slot(client, auth_headers, service):
    appointment_id = create(client, auth_headers, service).json()["appointment"]["id"]
    create(client, auth_headers, service, start_time="12:00", email="b@example.com")

    response = client.post(
        f"/api/appointments/{appointment_id}/reschedule",
        json={"date": DAY, "startTime": "12:00"},
        headers=auth_headers,
    )
    assert response.status_code == 409
    assert response.json()["code"] == "SLOT_NO_LONGER_AVAILABLE"


def test_unknown_appointment(client, auth_headers, business):
    response = client.post(
        "/api/appointments/6c1d3f1e-0b55-4f57-9d59-0c9c3d1a2b7e/cancel", json={}, headers=auth_headers
    )
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_customers_list_and_block(client, auth_headers, service):
    create(client, auth_headers, service)

    customers = client.get("/api/customers", headers=auth_headers).json()
    assert customers["total"] == 1
    customer = customers["customers"][0]
    assert customer["email"] == "dana@example.com"
    assert customer["phone"] == "+15551234567"
    assert customer["bookedAppointments"] == 1

    response = client.post(f"/api/customers/{customer['id']}/status", json={"status": "BLOCKED"}, headers=auth_headers)
    assert response.json()["customer"]["status"] == "BLOCKED"


def test_hide_and_unhide_customer(client, auth_headers, service):
    create(client, auth_headers, service)
    customer_id = client.get("/api/customers", headers=auth_headers).json()["customers"][0]["id"]

    response = client.patch(f"/api/customers/{customer_id}", json={"action": "hide"}, headers=auth_headers)
    assert response.json()["customer"]["isHidden"] is True
    assert client.get("/api/customers", headers=auth_headers).json()["total"] == 0
    assert client.get("/api/customers?includeHidden=true", headers=auth_headers).json()["total"] == 1

    response = client.patch(f"/api/customers/{customer_id}", json={"action": "unhide"}, headers=auth_headers)
    assert response.json()["customer"]["isHidden"] is False

    response = client.patch(f"/api/customers/{customer_id}", json={"action": "block"}, headers=auth_headers)
    assert response.json()["customer"]["status"] == "BLOCKED"

    response = client.patch(f"/api/customers/{customer_id}", json={"action": "archive"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_booking_again_unhides_customer(client, auth_headers, service):
    create(client, auth_headers, service)
    customer_id = client.get("/api/customers", headers=auth_headers).json()["customers"][0]["id"]
    client.patch(f"/api/customers/{customer_id}", json={"action": "hide"}, headers=auth_headers)

    create(client, auth_headers, service, start_time="14:00")

    customers = client.get("/api/customers", headers=auth_headers).json()["customers"]
    assert [c["id"] for c in customers] == [customer_id]
    assert customers[0]["isHidden"] is False


def test_customer_booking_history(client, db, auth_headers, business, service):
    first = create(client, auth_headers, service, start_time="10:00").json()["appointment"]
    create(client, auth_headers, service, start_time="12:00")
    create(client, auth_headers, service, start_time="09:00", date=future_date(20))
    client.post(f"/api/appointments/{first['id']}/cancel", json={}, headers=auth_headers)

    customer_id = first["customer"]["id"]
    last_week = (date.today() - timedelta(days=7)).isoformat()
    db.add(Appointment(
        business_id=business.id, customer_id=UUID(customer_id), service_id=service.id,
        service_name="Haircut", duration_minutes=60, price=40, currency="USD",
        date=last_week, start_time="11:00", end_time="12:00", customer_full_name="Dana Levi",
    ))
    db.commit()

    url = f"/api/customers/{customer_id}/appointments"
    first_page = client.get(f"{url}?page=1&pageSize=2", headers=auth_headers).json()
    assert first_page["bookingsPagination"] == {
        "page": 1, "pageSize": 2, "totalPages": 2, "totalBookingsCount": 4,
    }
    assert [(b["date"], b["startTime"], b["status"]) for b in first_page["bookings"]] == [
        (future_date(20), "09:00", "BOOKED"),
        (DAY, "12:00", "BOOKED"),
    ]

    # Out of range pages are clamped to the last one
    last_page = client.get(f"{url}?page=9&pageSize=2", headers=auth_headers).json()
    assert last_page["bookingsPagination"]["page"] == 2
    assert [(b["date"], b["status"]) for b in last_page["bookings"]] == [
        (DAY, "CANCELED"),
        (last_week, "COMPLETED"),
    ]
    assert last_page["bookings"][0]["cancelledBy"] == "BUSINESS"


def test_history_of_unknown_customer(client, auth_headers, business):
    response = client.get(
        "/api/customers/6c1d3f1e-0b55-4f57-9d59-0c9c3d1a2b7e/appointments", headers=auth_headers
    )
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_staff_sign_in(client, sent_emails):
    assert client.post("/api/auth/send-otp", json={"email": "New.Owner@Example.com"}).json() == {"ok": True}
    assert sent_emails[-1]["to"] == "new.owner@example.com"

    wrong = client.post("/api/auth/verify-otp", json={"email": "new.owner@example.com", "code": "999999"})
    assert wrong.status_code == 401
    assert wrong.json()["code"] == "INVALID_CODE"

    response = client.post(
        "/api/auth/verify-otp",
        json={"email": "new.owner@example.com", "code": TEST_CODE, "fullName": "New Owner"},
    )
    body = response.json()
    assert response.status_code == 200
    assert body["user"]["fullName"] == "New Owner"
    assert body["onboardingCompleted"] is False

    onboarding = client.get("/api/onboarding", headers={"Authorization": f"Bearer {body['accessToken']}"})
    assert onboarding.status_code == 200
    assert onboarding.json()["onboardingCompleted"] is False


def test_existing_owner_signs_in_to_own_business(client, business):
    client.post("/api/auth/send-otp", json={"email": OWNER_EMAIL})
    body = client.post("/api/auth/verify-otp", json={"email": OWNER_EMAIL, "code": TEST_CODE}).json()
    assert body["onboardingCompleted"] is True


def test_send_otp_cooldown(client):
    client.post("/api/auth/send-otp", json={"email": "owner2@example.com"})
    response = client.post("/api/auth/send-otp", json={"email": "owner2@example.com"})

    assert response.status_code == 429
    assert response.json()["code"] == "RATE_LIMITED"
    assert int(response.headers["Retry-After"]) > 0


def test_health(client):
    assert client.get("/health/").status_code == 200
