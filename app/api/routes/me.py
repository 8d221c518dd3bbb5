from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, require_company, require_candidate
from app.db.models.application import Application
from app.db.models.user import User
from app.schemas.auth import (
    CompanyOnboardingRequest,
    CandidateOnboardingRequest,
    CompanyResponse,
    CandidateResponse,
)
from app.schemas.application import CandidateApplicationResponse
from app.services.profile_service import save_company_profile, save_candidate_profile

router = APIRouter(prefix="/me", tags=["Me"])


@router.get("/company", response_model=CompanyResponse)
def my_company(user: User = Depends(require_company)):
    return CompanyResponse.model_validate(user.company)


@router.put("/company", response_model=CompanyResponse)
def update_my_company(
    payload: CompanyOnboardingRequest,
    user: User = Depends(require_company),
    db: Session = Depends(get_db)
):
    company = save_company_profile(db, user, payload.model_dump())
    return CompanyResponse.model_validate(company)


@router.get("/candidate", response_model=CandidateResponse)
def my_candidate(user: User = Depends(require_candidate)):
    return CandidateResponse.model_validate(user.candidate)


@router.put("/candidate", response_model=CandidateResponse)
def update_my_candidate(
    payload: CandidateOnboardingRequest,
    user: User = Depends(require_candidate),
    db: Session = Depends(get_db)
):
    candidate = save_candidate_profile(db, user, payload.model_dump())
    return CandidateResponse.model_validate(candidate)


@router.get("/applications", response_model=list[CandidateApplicationResponse])
def my_applications(
    user: User = Depends(require_candidate),
    db: Session = Depends(get_db)
):
    """Applications sent by the current candidate. AI scores stay private to the company."""
    applications = db.query(Application).filter(
        Application.candidate_id == user.candidate.id
    ).order_by(Application.created_at.desc(), Application.id.desc()).all()

    return [
        CandidateApplicationResponse(
            id=application.id,
            job_title=application.job_offer.title,
            company_name=application.job_offer.company.company_name,
            status=application.status,
            created_at=application.created_at,
        )
        for application in applications
    ]
