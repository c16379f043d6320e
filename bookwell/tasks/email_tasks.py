# ===== bookwell/tasks/email_tasks.py =====
from typing import Dict, Any
import logging

from bookwell.config.celery_config import celery_app
from bookwell.services.email.email_service import EmailService

logger = logging.getLogger(__name__)

APPOINTMENT_EMAILS = {
    "booked": "send_booking_confirmation",
    "canceled": "send_cancellation",
    "rescheduled": "send_reschedule",
}


@celery_app.task(bind=True, max_retries=3)
def send_otp_email(self, email: str, code: str, purpose: str):
    """
    Send a one-time code.

    Codes expire quickly, so retries back off in seconds rather than minutes.
    """
    try:
        logger.info(f"Sending {purpose} code to {email}")
        EmailService.send_otp_email(email=email, code=code, purpose=purpose)
        return {"status": "success", "email": email}

    except Exception as exc:
        logger.error(f"Failed to send {purpose} code to {email}: {exc}")

        # 10s, 20s, 40s
        raise self.retry(exc=exc, countdown=10 * (2 ** self.request.retries))


@celery_app.task(bind=True, max_retries=3)
def send_appointment_email(self, kind: str, email: str, details: Dict[str, Any]):
    """
    Send a booked / canceled / rescheduled notification

    Args:
        kind: One of "booked", "canceled", "rescheduled"
        email: Customer email
        details: Appointment snapshot (camelCase keys)
    """
    method_name = APPOINTMENT_EMAILS.get(kind)
    if method_name is None:
        logger.error(f"Unknown appointment email kind: {kind}")
        return {"status": "skipped", "email": email}

    try:
        logger.info(f"Sending {kind} email for appointment {details.get('id')} to {email}")
        getattr(EmailService, method_name)(email, details)
        return {"status": "success", "email": email, "kind": kind}

    except Exception as exc:
        logger.error(f"Failed to send {kind} email to {email}: {exc}")

        # Retry with exponential backoff: 1min, 2min, 4min
        raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))
