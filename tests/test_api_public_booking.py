"""Customer booking page flows over HTTP"""
from datetime import timedelta

from bookwell.config.settings import get_settings
from bookwell.services.auth.token_service import TokenService, TokenType

from conftest import future_date, PUBLIC_ID, TEST_CODE

DAY = future_date()
EMAIL = "dana@example.com"


def booking_session(client, email=EMAIL, **extra):
    assert client.post("/api/public/booking/request-otp", json={"email": email}).status_code == 200
    response = client.post("/api/public/booking/verify-otp", json={"email": email, "code": TEST_CODE, **extra})
    assert response.status_code == 200, response.json()
    return response.json()["bookingSessionId"]


def confirm(client, service, session_id=None, start_time="10:00", date=DAY, **extra):
    payload = {
        "businessSlugOrId": "studio-nine",
        "serviceId": str(service.id),
        "date": date,
        "startTime": start_time,
        "customerFullName": "Dana Levi",
        "customerPhone": "+1 (555) 123-4567",
    }
    if session_id:
        payload["bookingSessionId"] = session_id
    payload.update(extra)
    return client.post("/api/public/booking/confirm", json=payload)


def login(client, email=EMAIL):
    client.post("/api/public/booking/request-otp", json={"email": email, "businessPublicId": PUBLIC_ID})
    response = client.post(
        "/api/public/booking/login/verify-otp",
        json={"email": email, "code": TEST_CODE, "businessPublicId": PUBLIC_ID},
    )
    assert response.status_code == 200, response.json()
    return response


def test_public_business_by_slug_and_public_id(client, business, service):
    by_slug = client.get("/api/public/business/studio-nine").json()
    by_id = client.get(f"/api/public/business/{PUBLIC_ID}").json()

    assert by_slug["business"]["id"] == by_id["business"]["id"]
    assert by_slug["services"][0]["name"] == "Haircut"
    assert len(by_slug["availability"]["days"]) == 7


def test_unknown_business(client, business):
    response = client.get("/api/public/business/nowhere")
    assert response.status_code == 404
    assert response.json()["code"] == "BUSINESS_NOT_FOUND"


def test_unpublished_business_is_hidden(client, db, business):
    business.onboarding_completed = False
    db.commit()
    assert client.get("/api/public/business/studio-nine").status_code == 404


def test_public_availability(client, business, service):
    body = client.get(f"/api/public/business/{PUBLIC_ID}/availability?date={DAY}&serviceId={service.id}").json()
    assert body["durationMinutes"] == 60
    assert body["slots"][0]["startTime"] == "09:00"


def test_book_with_verified_email(client, business, service, sent_emails):
    session_id = booking_session(client)

    response = confirm(client, service, session_id)
    assert response.status_code == 200
    body = response.json()
    assert body["appointment"]["customer"]["email"] == EMAIL
    assert body["appointment"]["customer"]["phone"] == "+15551234567"
    assert body["appointment"]["createdBy"] == "CUSTOMER"
    assert body["cancelToken"]
    assert sent_emails[-1]["to"] == EMAIL


def test_confirm_requires_verification(client, business, service):
    response = confirm(client, service)
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_expired_booking_session(client, business, service):
    expired = TokenService._encode({"sub": EMAIL}, TokenType.BOOKING_SESSION, timedelta(minutes=-1))
    response = confirm(client, service, expired)
    assert response.status_code == 401
    assert response.json()["code"] == "SESSION_EXPIRED"


def test_confirm_rejects_bad_phone(client, business, service):
    session_id = booking_session(client)
    response = confirm(client, service, session_id, customerPhone="12")
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_taken_slot(client, business, service):
    assert confirm(client, service, booking_session(client)).status_code == 200

    response = confirm(client, service, booking_session(client, "other@example.com"))
    assert response.status_code == 409
    assert response.json()["code"] == "SLOT_NO_LONGER_AVAILABLE"


def test_confirm_idempotency_key(client, business, service):
    session_id = booking_session(client)
    first = confirm(client, service, session_id, idempotencyKey="page-load-1").json()
    second = confirm(client, service, session_id, idempotencyKey="page-load-1").json()

    assert second["replayed"] is True
    assert second["appointment"]["id"] == first["appointment"]["id"]


def test_active_appointment_reported_at_verification(client, db, business, service):
    business.limit_customer_to_one_upcoming_appointment = True
    db.commit()
    assert confirm(client, service, booking_session(client)).status_code == 200

    client.post("/api/public/booking/request-otp", json={"email": EMAIL})
    response = client.post(
        "/api/public/booking/verify-otp",
        json={"email": EMAIL, "code": TEST_CODE, "businessPublicId": PUBLIC_ID},
    )
    body = response.json()
    assert response.status_code == 409
    assert body["code"] == "ACTIVE_APPOINTMENT_EXISTS"
    assert body["existingAppointment"]["startTime"] == "10:00"
    assert body["bookingSessionId"]

    # The session in the conflict body is enough to cancel the existing appointment
    cancel = client.post(
        "/api/public/booking/cancel",
        json={"appointmentId": body["existingAppointment"]["id"], "bookingSessionId": body["bookingSessionId"]},
    )
    assert cancel.json()["appointment"]["status"] == "CANCELED"


def test_active_appointment_rejected_at_confirm(client, db, business, service):
    business.limit_customer_to_one_upcoming_appointment = True
    db.commit()
    session_id = booking_session(client)
    assert confirm(client, service, session_id).status_code == 200

    response = confirm(client, service, session_id, start_time="14:00", date=future_date(20))
    assert response.status_code == 409
    assert response.json()["code"] == "ACTIVE_APPOINTMENT_EXISTS"


def test_unknown_business_keeps_the_code_usable(client, business):
    client.post("/api/public/booking/request-otp", json={"email": EMAIL})

    response = client.post(
        "/api/public/booking/verify-otp",
        json={"email": EMAIL, "code": TEST_CODE, "businessPublicId": "99999"},
    )
    assert response.status_code == 404
    assert response.json()["code"] == "BUSINESS_NOT_FOUND"

    response = client.post(
        "/api/public/booking/verify-otp",
        json={"email": EMAIL, "code": TEST_CODE, "businessPublicId": PUBLIC_ID},
    )
    assert response.status_code == 200
    assert response.json()["bookingSessionId"]


def test_cancel_with_emailed_token(client, business, service, sent_emails):
    token = confirm(client, service, booking_session(client)).json()["cancelToken"]

    response = client.post("/api/public/booking/cancel", json={"cancelToken": token})
    assert response.status_code == 200
    assert response.json()["appointment"]["cancelledBy"] == "CUSTOMER"
    assert sent_emails[-1]["subject"].startswith("Appointment canceled")

    again = client.post("/api/public/booking/cancel", json={"cancelToken": token})
    assert again.json()["alreadyCanceled"] is True


def test_cannot_cancel_someone_elses_appointment(client, business, service):
    appointment_id = confirm(client, service, booking_session(client)).json()["appointment"]["id"]
    intruder = booking_session(client, "mallory@example.com")

    response = client.post(
        "/api/public/booking/cancel", json={"appointmentId": appointment_id, "bookingSessionId": intruder}
    )
    assert response.status_code == 401


def test_cancel_needs_token_or_id(client, business):
    response = client.post("/api/public/booking/cancel", json={})
    assert response.status_code == 400


def test_blocked_customer_cannot_sign_in(client, business, service, auth_headers):
    confirm(client, service, booking_session(client))
    customer = client.get("/api/customers", headers=auth_headers).json()["customers"][0]
    client.post(f"/api/customers/{customer['id']}/status", json={"status": "BLOCKED"}, headers=auth_headers)

    client.post("/api/public/booking/request-otp", json={"email": EMAIL, "businessPublicId": PUBLIC_ID})
    response = client.post(
        "/api/public/booking/login/verify-otp",
        json={"email": EMAIL, "code": TEST_CODE, "businessPublicId": PUBLIC_ID},
    )
    assert response.status_code == 403
    assert response.json()["code"] == "CUSTOMER_BLOCKED"


def test_login_me_and_disconnect(client, business, service):
    confirm(client, service, booking_session(client))

    response = login(client)
    cookie_name = get_settings().CUSTOMER_ACCESS_COOKIE_NAME
    assert cookie_name in response.cookies
    assert "_accessToken" not in response.json()

    me = client.get(f"/api/public/booking/me?businessPublicId={PUBLIC_ID}&scope=future").json()
    assert me["loggedIn"] is True
    assert me["customer"]["fullName"] == "Dana Levi"
    assert [a["startTime"] for a in me["appointments"]] == ["10:00"]

    client.post("/api/public/booking/disconnect")
    assert client.get(f"/api/public/booking/me?businessPublicId={PUBLIC_ID}").json()["loggedIn"] is False


def test_signed_in_customer_books_without_session(client, business, service):
    login(client)
    response = confirm(client, service)
    assert response.status_code == 200
    assert response.json()["appointment"]["customer"]["email"] == EMAIL


def test_profile_email_change(client, business, service, sent_emails):
    confirm(client, service, booking_session(client))
    login(client)

    response = client.post("/api/public/booking/profile/update", json={
        "businessPublicId": PUBLIC_ID,
        "fullName": "Dana Cohen",
        "phone": "+15557654321",
        "currentEmail": EMAIL,
        "newEmail": "dana.cohen@example.com",
    })
    body = response.json()
    assert body["requiresVerification"] is True
    assert sent_emails[-1]["to"] == "dana.cohen@example.com"

    verified = client.post("/api/public/booking/profile/verify-email", json={
        "businessPublicId": PUBLIC_ID,
        "currentEmail": EMAIL,
        "newEmail": "dana.cohen@example.com",
        "code": TEST_CODE,
    })
    assert verified.status_code == 200
    assert verified.json()["customer"]["email"] == "dana.cohen@example.com"

    me = client.get(f"/api/public/booking/me?businessPublicId={PUBLIC_ID}&scope=future").json()
    assert me["customer"]["email"] == "dana.cohen@example.com"
    assert me["customer"]["fullName"] == "Dana Cohen"
    assert len(me["appointments"]) == 1


def test_profile_email_taken_by_other_customer(client, business, service):
    confirm(client, service, booking_session(client, "taken@example.com"))
    login(client)

    response = client.post("/api/public/booking/profile/update", json={
        "businessPublicId": PUBLIC_ID,
        "fullName": "Dana Levi",
        "phone": "+15551234567",
        "currentEmail": EMAIL,
        "newEmail": "taken@example.com",
    })
    assert response.status_code == 409
    assert response.json()["code"] == "EMAIL_ALREADY_EXISTS"


def test_request_otp_cooldown(client, business):
    client.post("/api/public/booking/request-otp", json={"email": EMAIL})
    response = client.post("/api/public/booking/request-otp", json={"email": EMAIL})
    assert response.status_code == 429
    assert response.json()["retryAfterSeconds"] > 0
