"""
Application review endpoints for company accounts.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, require_company
from app.core.entitlement_guard import require_ai_quota, limit_reached
from app.db.models.application import Application, ApplicationStatus
from app.db.models.job_offer import JobOffer
from app.db.models.user import User
from app.schemas.application import (
    ApplicationResponse,
    ApplicationListResponse,
    ApplicationStatusUpdate,
)
from app.services import application_service
from app.services.application_service import ApplicationError, ApplicationLimitError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])


def to_application_response(application: Application) -> ApplicationResponse:
    return ApplicationResponse(
        id=application.id,
        job_offer_id=application.job_offer_id,
        job_title=application.job_offer.title,
        candidate_id=application.candidate_id,
        applicant_name=application.applicant_name,
        applicant_email=application.applicant_email,
        guest_phone=application.guest_phone,
        linkedin_url=application.linkedin_url,
        motivation_letter=application.motivation_letter,
        cv_file_name=application.cv_file_name,
        cv_file_size=application.cv_file_size,
        status=application.status,
        ai_score=application.ai_score,
        ai_analysis=application.ai_analysis,
        ai_processed_at=application.ai_processed_at,
        ai_error=application.ai_error,
        data_retention_until=application.data_retention_until,
        created_at=application.created_at,
    )


def get_owned_application(db: Session, user: User, application_id: int) -> Application:
    try:
        return application_service.get_company_application(db, user.company.id, application_id)
    except ApplicationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=ApplicationListResponse)
def list_applications(
    job_id: Optional[int] = Query(None, description="Only applications for this job offer"),
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    min_score: Optional[int] = Query(None, ge=0, le=100),
    sort: str = Query("recent", pattern="^(recent|score)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user: User = Depends(require_company),
    db: Session = Depends(get_db)
):
    """Applications received on the company's job offers."""
    query = db.query(Application).join(JobOffer, JobOffer.id == Application.job_offer_id).filter(
        JobOffer.company_id == user.company.id
    )
    if job_id is not None:
        query = query.filter(Application.job_offer_id == job_id)
    if status_filter:
        query = query.filter(Application.status == status_filter)
    if min_score is not None:
        query = query.filter(Application.ai_score >= min_score)

    if sort == "score":
        query = query.order_by(Application.ai_score.desc().nullslast(), Application.id.desc())
    else:
        query = query.order_by(Application.created_at.desc(), Application.id.desc())

    total = query.count()
    applications = query.offset((page - 1) * page_size).limit(page_size).all()

    return ApplicationListResponse(
        applications=[to_application_response(a) for a in applications],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{application_id}", response_model=ApplicationResponse)
def get_application(
    application_id: int,
    user: User = Depends(require_company),
    db: Session = Depends(get_db)
):
    return to_application_response(get_owned_application(db, user, application_id))


@router.patch("/{application_id}/status", response_model=ApplicationResponse)
def update_application_status(
    application_id: int,
    payload: ApplicationStatusUpdate,
    user: User = Depends(require_company),
    db: Session = Depends(get_db)
):
    """Shortlist, reject or contact an applicant. The candidate is notified by email."""
    application = get_owned_application(db, user, application_id)
    try:
        application = application_service.update_status(db, application, payload.status)
    except ApplicationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return to_application_response(application)


@router.post("/{application_id}/analyze", response_model=ApplicationResponse)
def analyze_application(
    application_id: int,
    user: User = Depends(require_ai_quota),
    db: Session = Depends(get_db)
):
    """
    Score the CV against the job offer with the LLM.

    Consumes one AI analysis from the monthly quota; a failed run is not counted.
    """
    application = get_owned_application(db, user, application_id)
    try:
        application = application_service.analyze_application(db, application, user)
    except ApplicationLimitError as e:
        raise limit_reached(e.result)
    except ApplicationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return to_application_response(application)


@router.get("/{application_id}/cv")
def download_cv(
    application_id: int,
    user: User = Depends(require_company),
    db: Session = Depends(get_db)
):
    application = get_owned_application(db, user, application_id)
    if not application.cv_data:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="CV not available")

    file_name = (application.cv_file_name or "cv.pdf").encode("ascii", "ignore").decode().replace('"', "") or "cv.pdf"
    return Response(
        content=application.cv_data,
        media_type=application.cv_mime_type or "application/pdf",
        headers={"Content-Disposition": f'inline; filename="{file_name}"'},
    )
