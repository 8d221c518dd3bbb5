"""
Profile onboarding for company and candidate accounts.

Posting again updates the existing profile.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_user_obj
from app.db.models.user import User, UserType
from app.schemas.auth import (
    CompanyOnboardingRequest,
    CandidateOnboardingRequest,
    CompanyResponse,
    CandidateResponse,
)
from app.services.profile_service import save_company_profile, save_candidate_profile

router = APIRouter(prefix="/onboarding", tags=["Onboarding"])


@router.post("/company", response_model=CompanyResponse)
def onboard_company(
    payload: CompanyOnboardingRequest,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    if user.user_type != UserType.COMPANY:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Company accounts only")

    company = save_company_profile(db, user, payload.model_dump())
    return CompanyResponse.model_validate(company)


@router.post("/candidate", response_model=CandidateResponse)
def onboard_candidate(
    payload: CandidateOnboardingRequest,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    if user.user_type != UserType.CANDIDATE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Candidate accounts only")

    candidate = save_candidate_profile(db, user, payload.model_dump())
    return CandidateResponse.model_validate(candidate)
