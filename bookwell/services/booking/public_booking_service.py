# ===== bookwell/services/booking/public_booking_service.py =====
"""
Customer side of booking: email verification, sign-in, confirm, cancel and
the customer's own profile. Customers never hold a password; they prove an
email with a one-time code and then carry a short booking session or a
long-lived access cookie.
"""
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from bookwell.core.errors import (
    BookingError,
    BookingConflict,
    ErrorCodes,
    ForbiddenError,
    NotFoundError,
    Unauthorized,
    ValidationFailed,
)
from bookwell.models.appointment import Appointment, CancelledBy, CreatedBy
from bookwell.models.business import Business
from bookwell.models.otp_code import OtpPurpose
from bookwell.schemas.booking import (
    ConfirmBookingRequest,
    PublicCancelRequest,
    ProfileUpdateRequest,
    ProfileVerifyEmailRequest,
)
from bookwell.services.appointment.appointment_query_service import AppointmentQueryService
from bookwell.services.auth.auth_service import AuthService
from bookwell.services.auth.otp_service import OtpService
from bookwell.services.auth.token_service import TokenService, TokenType
from bookwell.services.booking.booking_service import BookingService, BookingRequest
from bookwell.services.booking.status_service import StatusService
from bookwell.services.business.business_service import BusinessService
from bookwell.services.customer.customer_service import CustomerService
from bookwell.utils.contact import normalize_email, normalize_phone, is_valid_phone
from bookwell.utils.timeutils import parse_date, today_in_zone

logger = logging.getLogger(__name__)


class CustomerIdentity:
    """A verified customer email, optionally bound to one business"""

    def __init__(self, email: str, business_id: Optional[UUID] = None):
        self.email = normalize_email(email)
        self.business_id = business_id

    def matches_business(self, business: Business) -> bool:
        return self.business_id is None or self.business_id == business.id


class PublicBookingService:

    # ---- identity -------------------------------------------------------

    @staticmethod
    def identity_from_session(booking_session_id: Optional[str]) -> CustomerIdentity:
        claims = TokenService.decode(booking_session_id, TokenType.BOOKING_SESSION)
        return CustomerIdentity(claims["sub"])

    @staticmethod
    def identity_from_cookie(access_token: Optional[str]) -> CustomerIdentity:
        claims = TokenService.decode(access_token, TokenType.CUSTOMER_ACCESS)
        try:
            business_id = UUID(claims.get("bid", ""))
        except ValueError:
            raise Unauthorized("Invalid token")
        return CustomerIdentity(claims["sub"], business_id)

    @staticmethod
    def resolve_identity(
            booking_session_id: Optional[str],
            access_token: Optional[str],
            business: Optional[Business] = None
    ) -> CustomerIdentity:
        """
        Booking session first, then the sign-in cookie.

        Raises:
            SessionExpired / Unauthorized
        """
        if booking_session_id:
            return PublicBookingService.identity_from_session(booking_session_id)
        if access_token:
            identity = PublicBookingService.identity_from_cookie(access_token)
            if business is not None and not identity.matches_business(business):
                raise Unauthorized("Not logged in to this business")
            return identity
        raise Unauthorized("Email verification required")

    # ---- codes ----------------------------------------------------------

    @staticmethod
    def request_otp(db: Session, email: str, business_public_id: Optional[str] = None) -> Dict[str, Any]:
        """Send a booking code. The same code serves booking verification and sign-in."""
        if business_public_id:
            BusinessService.find_by_public_id(db, business_public_id)
        AuthService.send_code(db, email, OtpPurpose.BOOKING_VERIFY)
        return {"ok": True}

    @staticmethod
    def verify_otp(
            db: Session,
            email: str,
            code: str,
            business_public_id: Optional[str] = None,
            now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Exchange a code for a booking session.

        With a business given, a customer already holding an upcoming
        appointment under the one-appointment rule is told right away
        (409 ACTIVE_APPOINTMENT_EXISTS, session included so they can cancel).
        """
        email = normalize_email(email)
        business = BusinessService.find_by_public_id(db, business_public_id) if business_public_id else None

        OtpService.verify(db, email, OtpPurpose.BOOKING_VERIFY.value, code)
        booking_session_id = TokenService.create_booking_session(email)

        if business is not None:
            customer = CustomerService.find(db, business.id, email)
            CustomerService.ensure_can_book(business, customer)
            if customer is not None and business.limit_customer_to_one_upcoming_appointment:
                upcoming = AppointmentQueryService.upcoming_for_customer(db, business, customer.id, now)
                if upcoming:
                    raise BookingConflict(
                        ErrorCodes.ACTIVE_APPOINTMENT_EXISTS,
                        "You already have an upcoming appointment with this business.",
                        [AppointmentQueryService.serialize(a) for a in upcoming],
                        bookingSessionId=booking_session_id,
                    )

        return {"ok": True, "bookingSessionId": booking_session_id}

    @staticmethod
    def login_verify_otp(db: Session, email: str, code: str, business_public_id: str) -> Dict[str, Any]:
        """
        Sign a customer in to one business.

        Returns:
            Response body plus "_accessToken" for the router to put in the cookie
        """
        email = normalize_email(email)
        OtpService.verify(db, email, OtpPurpose.BOOKING_VERIFY.value, code, consume=False)

        business = BusinessService.find_by_public_id(db, business_public_id)
        customer = CustomerService.find(db, business.id, email)
        CustomerService.ensure_can_book(business, customer)

        OtpService.discard(db, email, OtpPurpose.BOOKING_VERIFY.value)
        access_token = TokenService.create_customer_access_token(business.id, email)
        logger.info(f"Customer {email} signed in to business {business.id}")

        return {
            "ok": True,
            "customer": {
                "email": email,
                "fullName": customer.full_name if customer else None,
                "phone": customer.phone if customer else None,
            },
            "_accessToken": access_token,
        }

    # ---- booking --------------------------------------------------------

    @staticmethod
    def confirm(
            db: Session,
            data: ConfirmBookingRequest,
            access_token: Optional[str] = None,
            idempotency_key: Optional[str] = None
    ) -> Dict[str, Any]:
        business = BusinessService.find_public(db, data.business_slug_or_id)
        identity = PublicBookingService.resolve_identity(data.booking_session_id, access_token, business)

        phone = normalize_phone(data.customer_phone)
        if not is_valid_phone(phone):
            raise ValidationFailed("Please enter a valid phone number")

        request = BookingRequest(
            business_id=business.id,
            service_id=data.service_id,
            date=data.date,
            start_time=data.start_time,
            customer_full_name=data.customer_full_name,
            customer_email=identity.email,
            customer_phone=phone,
            notes=data.notes,
            created_by=CreatedBy.CUSTOMER,
            idempotency_key=idempotency_key or data.idempotency_key,
        )
        return BookingService.create_booking(db, request, with_cancel_token=True)

    @staticmethod
    def cancel(db: Session, data: PublicCancelRequest, access_token: Optional[str] = None) -> Dict[str, Any]:
        """
        Cancel by emailed cancel token, or by appointment id with a booking
        session or sign-in cookie. Only the customer who booked may cancel.
        """
        if data.cancel_token:
            claims = TokenService.decode(data.cancel_token, TokenType.CANCEL)
            try:
                appointment_id = UUID(claims["sub"])
            except ValueError:
                raise Unauthorized("Invalid token")
            email = normalize_email(claims.get("email"))
            business_id = None
        elif data.appointment_id is not None:
            identity = PublicBookingService.resolve_identity(data.booking_session_id, access_token)
            appointment_id = data.appointment_id
            email = identity.email
            business_id = identity.business_id
        else:
            raise ValidationFailed("cancelToken or appointmentId is required")

        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if appointment is None:
            raise NotFoundError("Appointment not found")
        if business_id is not None and appointment.business_id != business_id:
            raise NotFoundError("Appointment not found")
        if not email or normalize_email(appointment.customer_email) != email:
            raise Unauthorized()

        return StatusService.cancel(
            db, appointment.business_id, appointment.id,
            cancelled_by=CancelledBy.CUSTOMER,
            notify_customer=True
        )

    # ---- signed-in customer ---------------------------------------------

    @staticmethod
    def me(
            db: Session,
            business_public_id: str,
            access_token: Optional[str],
            scope: Optional[str] = None,
            date: Optional[str] = None
    ) -> Dict[str, Any]:
        """The signed-in customer and their appointments; loggedIn=False when no valid cookie"""
        business = BusinessService.find_by_public_id(db, business_public_id)

        if not access_token:
            return {"ok": True, "loggedIn": False}
        try:
            identity = PublicBookingService.identity_from_cookie(access_token)
        except BookingError:
            return {"ok": True, "loggedIn": False}
        if not identity.matches_business(business):
            return {"ok": True, "loggedIn": False}

        future = (scope or "").strip().lower() == "future"
        today = today_in_zone(business.timezone).isoformat()
        day = date if parse_date(date) is not None else today

        customer = CustomerService.find(db, business.id, identity.email)
        appointments = []
        if customer is not None:
            appointments = AppointmentQueryService.for_customer(
                db, business, customer.id, date=day, future_only=future
            )

        return {
            "ok": True,
            "loggedIn": True,
            "date": today if future else day,
            "scope": "future" if future else "day",
            "customer": {
                "email": identity.email,
                "fullName": customer.full_name if customer else None,
                "phone": customer.phone if customer else None,
            },
            "appointments": [
                {
                    "id": str(a.id),
                    "date": a.date,
                    "startTime": a.start_time,
                    "endTime": a.end_time,
                    "serviceName": a.service_name,
                    "status": a.status,
                    "cancelledBy": a.cancelled_by,
                }
                for a in appointments
            ],
        }

    @staticmethod
    def _signed_in(db: Session, business_public_id: str, access_token: Optional[str], current_email: str):
        business = BusinessService.find_by_public_id(db, business_public_id)
        if not access_token:
            raise Unauthorized("Not logged in")
        identity = PublicBookingService.identity_from_cookie(access_token)
        if not identity.matches_business(business):
            raise Unauthorized("Not logged in")
        if identity.email != normalize_email(current_email):
            raise ForbiddenError("Not authorized", code=ErrorCodes.UNAUTHORIZED)
        return business, identity

    @staticmethod
    def _sync_appointments(db: Session, business_id: UUID, customer) -> None:
        """Keep the contact snapshot on the customer's appointments in line with the profile"""
        db.query(Appointment).filter(
            Appointment.business_id == business_id,
            Appointment.customer_id == customer.id
        ).update({
            Appointment.customer_full_name: customer.full_name,
            Appointment.customer_phone: customer.phone,
            Appointment.customer_email: customer.email,
        }, synchronize_session=False)

    @staticmethod
    def profile_update(db: Session, data: ProfileUpdateRequest, access_token: Optional[str]) -> Dict[str, Any]:
        """
        Update name and phone. A different newEmail is not applied yet: a code
        goes to the new address and profile/verify-email finishes the change.
        """
        business, identity = PublicBookingService._signed_in(
            db, data.business_public_id, access_token, data.current_email
        )

        phone = normalize_phone(data.phone)
        if not is_valid_phone(phone):
            raise ValidationFailed("Please enter a valid phone number")

        customer = CustomerService.upsert(db, business.id, identity.email, data.full_name, phone)
        PublicBookingService._sync_appointments(db, business.id, customer)

        new_email = normalize_email(data.new_email) if data.new_email else ""
        if not new_email or new_email == identity.email:
            db.commit()
            return {
                "ok": True,
                "customer": {"fullName": customer.full_name, "phone": customer.phone, "email": customer.email},
            }

        other = CustomerService.find(db, business.id, new_email)
        if other is not None and other.id != customer.id:
            db.rollback()
            raise BookingError(
                "This email is already used by another customer.",
                code=ErrorCodes.EMAIL_ALREADY_EXISTS,
                status_code=409
            )

        customer.pending_email = new_email
        customer.pending_email_requested_at = datetime.now(timezone.utc)
        db.commit()

        AuthService.send_code(
            db, new_email, OtpPurpose.EMAIL_CHANGE,
            key=PublicBookingService._email_change_key(business.id, new_email)
        )
        return {"ok": True, "requiresVerification": True, "pendingEmail": new_email}

    @staticmethod
    def _email_change_key(business_id: UUID, new_email: str) -> str:
        return f"{business_id}:{new_email}"

    @staticmethod
    def profile_verify_email(
            db: Session,
            data: ProfileVerifyEmailRequest,
            access_token: Optional[str]
    ) -> Dict[str, Any]:
        """
        Finish an email change.

        Returns:
            Response body plus "_accessToken" re-issued for the new email
        """
        business, identity = PublicBookingService._signed_in(
            db, data.business_public_id, access_token, data.current_email
        )
        new_email = normalize_email(data.new_email)

        customer = CustomerService.find(db, business.id, identity.email)
        if customer is None:
            raise NotFoundError("Customer not found")
        if normalize_email(customer.pending_email) != new_email:
            raise ValidationFailed("No pending email change for this account")

        other = CustomerService.find(db, business.id, new_email)
        if other is not None and other.id != customer.id:
            raise BookingError(
                "This email is already used by another customer.",
                code=ErrorCodes.EMAIL_ALREADY_EXISTS,
                status_code=409
            )

        OtpService.verify(
            db, PublicBookingService._email_change_key(business.id, new_email),
            OtpPurpose.EMAIL_CHANGE.value, data.code
        )

        customer.email = new_email
        customer.pending_email = None
        customer.pending_email_requested_at = None
        PublicBookingService._sync_appointments(db, business.id, customer)
        db.commit()
        logger.info(f"Customer {customer.id} changed email for business {business.id}")

        return {
            "ok": True,
            "customer": {"fullName": customer.full_name, "phone": customer.phone, "email": new_email},
            "_accessToken": TokenService.create_customer_access_token(business.id, new_email),
        }
