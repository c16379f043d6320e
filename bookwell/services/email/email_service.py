# ===== bookwell/services/email/email_service.py =====
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import List, Optional, Dict, Any
import logging

from bookwell.config.settings import settings

logger = logging.getLogger(__name__)

OTP_SUBJECTS = {
    "staff_login": "Your sign-in code",
    "booking_verify": "Verify your email to book",
    "email_change": "Verify your new email",
}


class EmailService:
    """Service for sending emails via SMTP"""

    @staticmethod
    def _get_smtp_connection():
        """Create and return SMTP connection"""
        try:
            if settings.EMAIL_USE_TLS:
                server = smtplib.SMTP(settings.EMAIL_HOST, settings.EMAIL_PORT, timeout=15)
                server.starttls()
            else:
                server = smtplib.SMTP_SSL(settings.EMAIL_HOST, settings.EMAIL_PORT, timeout=15)

            if settings.EMAIL_USERNAME and settings.EMAIL_PASSWORD:
                server.login(settings.EMAIL_USERNAME, settings.EMAIL_PASSWORD)

            return server
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to connect to SMTP server: {e}")
            raise

    @staticmethod
    def send_email(
            to_email: str,
            subject: str,
            html_content: str,
            plain_text: Optional[str] = None,
            cc: Optional[List[str]] = None
    ) -> bool:
        """
        Send an email using SMTP

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML content of the email
            plain_text: Plain text version (fallback for non-HTML clients)
            cc: List of CC email addresses

        Returns:
            bool: True if the email was handed to the SMTP server

        Raises:
            smtplib.SMTPException / OSError on delivery failure
        """
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
        msg['To'] = to_email
        if cc:
            msg['Cc'] = ', '.join(cc)

        msg.attach(MIMEText(plain_text or subject, 'plain'))
        msg.attach(MIMEText(html_content, 'html'))

        recipients = [to_email] + list(cc or [])

        try:
            server = EmailService._get_smtp_connection()
            try:
                server.sendmail(settings.EMAIL_FROM_ADDRESS, recipients, msg.as_string())
            finally:
                server.quit()
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise

        logger.info(f"Email sent successfully to {to_email}")
        return True

    @staticmethod
    def _layout(title: str, body_html: str) -> str:
        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="UTF-8">
            <meta name="viewport" content="width=device-width, initial-scale=1.0">
        </head>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
            <div style="background-color: #1f2937; padding: 24px; text-align: center; border-radius: 10px 10px 0 0;">
                <h1 style="color: white; margin: 0; font-size: 24px;">{escape(title)}</h1>
            </div>
            <div style="background-color: #ffffff; padding: 30px; border: 1px solid #e0e0e0; border-top: none; border-radius: 0 0 10px 10px;">
                {body_html}
            </div>
            <p style="font-size: 12px; color: #999; text-align: center; margin-top: 20px;">
                Sent by {escape(settings.APP_NAME)}
            </p>
        </body>
        </html>
        """

    @staticmethod
    def send_otp_email(email: str, code: str, purpose: str) -> bool:
        """Send a one-time code"""
        subject = OTP_SUBJECTS.get(purpose, "Your verification code")
        minutes = settings.OTP_TTL_MINUTES

        body = f"""
                <p style="font-size: 16px; color: #555;">Use this code to continue:</p>
                <div style="text-align: center; margin: 30px 0;">
                    <span style="font-size: 32px; letter-spacing: 8px; font-weight: bold;">{escape(code)}</span>
                </div>
                <p style="font-size: 14px; color: #777;">The code expires in {minutes} minutes.
                If you did not ask for it, you can ignore this email.</p>
        """
        plain_text = f"Your code is {code}. It expires in {minutes} minutes."

        return EmailService.send_email(email, subject, EmailService._layout(subject, body), plain_text)

    @staticmethod
    def _appointment_lines(details: Dict[str, Any]) -> str:
        rows = [
            ("Service", details.get("serviceName")),
            ("Date", details.get("date")),
            ("Time", f"{details.get('startTime')} - {details.get('endTime')}"),
        ]
        return "".join(
            f'<p style="font-size: 16px; color: #555; margin: 4px 0;"><strong>{label}:</strong> {escape(str(value or ""))}</p>'
            for label, value in rows
        )

    @staticmethod
    def send_booking_confirmation(email: str, details: Dict[str, Any]) -> bool:
        """Appointment booked"""
        business_name = details.get("businessName") or "your appointment"
        subject = f"Appointment confirmed - {business_name}"
        cancel_url = details.get("cancelUrl")

        body = f"""
                <h2 style="color: #333; margin-top: 0;">Hi {escape(details.get("customerName") or "there")}!</h2>
                <p style="font-size: 16px; color: #555;">Your appointment with {escape(business_name)} is confirmed.</p>
                {EmailService._appointment_lines(details)}
        """
        if cancel_url:
            body += f"""
                <p style="font-size: 14px; color: #777; margin-top: 30px;">
                    Need to cancel? <a href="{escape(cancel_url)}">Cancel this appointment</a>
                </p>
            """

        plain_text = (
            f"Your appointment with {business_name} is confirmed: "
            f"{details.get('serviceName')} on {details.get('date')} at {details.get('startTime')}."
        )
        if cancel_url:
            plain_text += f"\nCancel: {cancel_url}"

        return EmailService.send_email(email, subject, EmailService._layout("Appointment confirmed", body), plain_text)

    @staticmethod
    def send_cancellation(email: str, details: Dict[str, Any]) -> bool:
        """Appointment canceled"""
        business_name = details.get("businessName") or "the business"
        subject = f"Appointment canceled - {business_name}"

        body = f"""
                <h2 style="color: #333; margin-top: 0;">Hi {escape(details.get("customerName") or "there")},</h2>
                <p style="font-size: 16px; color: #555;">Your appointment with {escape(business_name)} was canceled.</p>
                {EmailService._appointment_lines(details)}
        """
        plain_text = (
            f"Your appointment with {business_name} on {details.get('date')} "
            f"at {details.get('startTime')} was canceled."
        )

        return EmailService.send_email(email, subject, EmailService._layout("Appointment canceled", body), plain_text)

    @staticmethod
    def send_reschedule(email: str, details: Dict[str, Any]) -> bool:
        """Appointment moved; details carry previousDate/previousStartTime"""
        business_name = details.get("businessName") or "the business"
        subject = f"Appointment rescheduled - {business_name}"
        previous = f"{details.get('previousDate')} {details.get('previousStartTime')}"

        body = f"""
                <h2 style="color: #333; margin-top: 0;">Hi {escape(details.get("customerName") or "there")},</h2>
                <p style="font-size: 16px; color: #555;">Your appointment with {escape(business_name)}
                was moved from {escape(previous)} to:</p>
                {EmailService._appointment_lines(details)}
        """
        plain_text = (
            f"Your appointment with {business_name} was moved from {previous} "
            f"to {details.get('date')} {details.get('startTime')}."
        )

        return EmailService.send_email(email, subject, EmailService._layout("Appointment rescheduled", body), plain_text)
