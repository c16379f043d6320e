# bookwell/schemas/__init__.py
from .base import CamelModel
from .appointment import (
    CreateAppointmentRequest,
    StatusUpdateRequest,
    CancelRequest,
    RescheduleRequest,
    EmailStatus,
)
from .booking import (
    RequestOtpRequest,
    VerifyBookingOtpRequest,
    LoginVerifyOtpRequest,
    ConfirmBookingRequest,
    PublicCancelRequest,
    ProfileUpdateRequest,
    ProfileVerifyEmailRequest,
)
from .onboarding import OnboardingUpdateRequest
from .auth import SendOtpRequest, VerifyOtpRequest
from .customer import CustomerStatusRequest
