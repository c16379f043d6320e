# bookwell/api/v1/dashboard/onboarding.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bookwell.api.dependencies import get_current_user
from bookwell.config.database import get_db
from bookwell.models.user import User
from bookwell.schemas.onboarding import OnboardingUpdateRequest
from bookwell.services.onboarding.onboarding_service import OnboardingService

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


@router.get("")
def get_onboarding(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    return OnboardingService.get(db, current_user)


@router.patch("")
def update_onboarding(
        body: OnboardingUpdateRequest,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """Partial update; only the sections present in the body change."""
    return OnboardingService.update(db, current_user, body)


@router.post("/complete")
def complete_onboarding(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    return OnboardingService.complete(db, current_user)
