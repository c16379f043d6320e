# ===== bookwell/services/notification/notification_service.py =====
"""
Hands emails to the Celery queue.

Booking emails never fail the operation that triggered them: the outcome is
reported back as an EmailStatus. OTP emails are the exception, since a code
nobody receives is useless; their enqueue failure raises DeliveryFailed.
"""
from typing import Dict, Any, Optional
import logging

from bookwell.config.settings import get_settings
from bookwell.core.errors import DeliveryFailed
from bookwell.models.appointment import Appointment
from bookwell.models.business import Business
from bookwell.schemas.appointment import EmailStatus
from bookwell.tasks.email_tasks import send_otp_email, send_appointment_email

logger = logging.getLogger(__name__)


class NotificationService:

    @staticmethod
    def send_otp(email: str, code: str, purpose: str):
        try:
            send_otp_email.delay(email, code, purpose)
        except Exception as e:
            logger.error(f"Could not enqueue {purpose} code for {email}: {e}")
            raise DeliveryFailed("Failed to send verification code. Please try again.")

    @staticmethod
    def appointment_details(
            appointment: Appointment,
            business: Business,
            cancel_token: Optional[str] = None,
            **extra
    ) -> Dict[str, Any]:
        """Snapshot passed to the email task; JSON-serializable"""
        details = {
            "id": str(appointment.id),
            "businessName": business.name,
            "customerName": appointment.customer_full_name,
            "serviceName": appointment.service_name,
            "date": appointment.date,
            "startTime": appointment.start_time,
            "endTime": appointment.end_time,
        }
        if cancel_token:
            details["cancelUrl"] = f"{get_settings().FRONTEND_URL}/b/cancel?token={cancel_token}"
        details.update(extra)
        return details

    @staticmethod
    def appointment_email(
            kind: str,
            appointment: Appointment,
            business: Business,
            cancel_token: Optional[str] = None,
            **extra
    ) -> Dict[str, Any]:
        """
        Queue a booked / canceled / rescheduled email.

        Returns:
            EmailStatus as a camelCase dict
        """
        if not appointment.customer_email:
            return EmailStatus(sent=False, skipped=True, error="Customer has no email").model_dump(by_alias=True)

        details = NotificationService.appointment_details(appointment, business, cancel_token, **extra)
        try:
            send_appointment_email.delay(kind, appointment.customer_email, details)
        except Exception as e:
            logger.error(f"Could not enqueue {kind} email for appointment {appointment.id}: {e}")
            return EmailStatus(sent=False, error=str(e) or "Email dispatch failed").model_dump(by_alias=True)

        return EmailStatus(sent=True).model_dump(by_alias=True)

    @staticmethod
    def not_requested() -> Dict[str, Any]:
        return EmailStatus(sent=False, skipped=True).model_dump(by_alias=True)
