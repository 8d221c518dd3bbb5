"""
Public job board and application intake.

No account is needed to browse or apply. A logged-in candidate who applies
gets the application linked to their profile.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query, Form, File, UploadFile
from pydantic import EmailStr
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_optional_user
from app.core.clock import utcnow
from app.core.config import MAX_CV_SIZE_BYTES
from app.core.entitlement_guard import limit_reached
from app.core.rate_limit import rate_limiter
from app.db.models.company import Company
from app.db.models.job_offer import JobOffer, JobStatus, JobType
from app.db.models.user import User, UserType
from app.schemas.application import ApplySubmittedResponse
from app.schemas.job import PublicJobResponse, PublicJobListResponse
from app.services.application_service import (
    ApplicantDetails,
    CVUpload,
    ApplicationError,
    ApplicationLimitError,
    submit_application,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs/public", tags=["Public Jobs"])


def to_public_job(job: JobOffer) -> PublicJobResponse:
    return PublicJobResponse(
        public_id=job.public_id,
        title=job.title,
        description=job.description,
        requirements=job.requirements,
        location=job.location,
        job_type=job.job_type,
        salary_range=job.salary_range,
        published_at=job.published_at,
        expires_at=job.expires_at,
        company_name=job.company.company_name,
        company_logo=job.company.logo,
        company_location=job.company.location,
    )


def get_published_job(db: Session, public_id: str) -> JobOffer:
    job = db.query(JobOffer).filter(
        JobOffer.public_id == public_id,
        JobOffer.status == JobStatus.PUBLISHED,
    ).first()
    if not job:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job offer not found or not published")
    return job


@router.get("", response_model=PublicJobListResponse)
def list_public_jobs(
    search: Optional[str] = Query(None, description="Search in title, description and company name"),
    location: Optional[str] = Query(None),
    job_type: Optional[JobType] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    now = utcnow()
    query = db.query(JobOffer).join(Company, Company.id == JobOffer.company_id).filter(
        JobOffer.status == JobStatus.PUBLISHED,
        or_(JobOffer.expires_at.is_(None), JobOffer.expires_at > now),
    )
    if search:
        term = f"%{search}%"
        query = query.filter(or_(
            JobOffer.title.ilike(term),
            JobOffer.description.ilike(term),
            Company.company_name.ilike(term),
        ))
    if location:
        query = query.filter(JobOffer.location.ilike(f"%{location}%"))
    if job_type:
        query = query.filter(JobOffer.job_type == job_type)

    total = query.count()
    jobs = query.order_by(JobOffer.published_at.desc(), JobOffer.id.desc()).offset((page - 1) * page_size).limit(page_size).all()

    return PublicJobListResponse(jobs=[to_public_job(job) for job in jobs], total=total, page=page, page_size=page_size)


@router.get("/{public_id}", response_model=PublicJobResponse)
def get_public_job(public_id: str, db: Session = Depends(get_db)):
    return to_public_job(get_published_job(db, public_id))


@router.post(
    "/{public_id}/apply",
    status_code=status.HTTP_201_CREATED,
    response_model=ApplySubmittedResponse,
    dependencies=[Depends(rate_limiter("apply", max_requests=20, window_seconds=3600))],
)
def apply_to_job(
    public_id: str,
    first_name: str = Form(..., min_length=1, max_length=100),
    last_name: str = Form(..., min_length=1, max_length=100),
    email: EmailStr = Form(...),
    phone: str = Form(..., min_length=4, max_length=30),
    linkedin_url: Optional[str] = Form(None),
    motivation_letter: Optional[str] = Form(None, max_length=5000),
    consent_given: bool = Form(False),
    cv: UploadFile = File(..., description="CV as PDF, 5 MB max"),
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """
    Apply to a published job offer with a PDF CV.

    Returns 403 with a limit_reached detail when the offer reached its
    plan's application limit.
    """
    job = get_published_job(db, public_id)

    # Read one byte past the limit so oversized files are detected without loading them whole
    data = cv.file.read(MAX_CV_SIZE_BYTES + 1)

    candidate = user.candidate if user is not None and user.user_type == UserType.CANDIDATE else None
    applicant = ApplicantDetails(
        first_name=candidate.first_name if candidate else first_name,
        last_name=candidate.last_name if candidate else last_name,
        email=user.email if candidate else email,
        phone=(candidate.phone or phone) if candidate else phone,
        linkedin_url=linkedin_url or (candidate.linkedin_url if candidate else None),
        motivation_letter=motivation_letter,
    )

    try:
        application = submit_application(
            db,
            job,
            applicant,
            CVUpload(data=data, file_name=cv.filename or "cv.pdf", mime_type=cv.content_type),
            consent_given=consent_given,
            candidate=candidate,
        )
    except ApplicationLimitError as e:
        raise limit_reached(e.result)
    except ApplicationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        db.rollback()
        logger.error(f"Application submission failed: job_id={job.id}, error={e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit application"
        )

    return ApplySubmittedResponse(id=application.id, status=application.status)
