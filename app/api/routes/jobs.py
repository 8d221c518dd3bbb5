"""
Job offer endpoints for company accounts.

Offers are created as DRAFT, then published and closed. Creation is gated
by the plan's max_jobs.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, require_company
from app.core.entitlement_guard import require_job_slot, limit_reached
from app.db.models.application import Application
from app.db.models.job_offer import JobOffer, JobStatus
from app.db.models.user import User
from app.schemas.job import (
    JobOfferCreate,
    JobOfferUpdate,
    JobOfferResponse,
    JobOfferListResponse,
)
from app.services import job_service
from app.services.job_service import JobStateError, JobLimitError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def to_job_response(db: Session, job: JobOffer) -> JobOfferResponse:
    response = JobOfferResponse.model_validate(job)
    response.application_count = db.query(Application).filter(Application.job_offer_id == job.id).count()
    return response


def get_owned_job(db: Session, user: User, job_id: int) -> JobOffer:
    """Fetch a job offer owned by the user's company."""
    job = db.query(JobOffer).filter(JobOffer.id == job_id).first()
    if not job:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job offer not found")
    if job.company_id != user.company.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return job


def state_conflict(e: JobStateError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=JobOfferResponse)
def create_job(
    job_data: JobOfferCreate,
    user: User = Depends(require_job_slot),
    db: Session = Depends(get_db)
):
    """
    Create a DRAFT job offer.

    Returns 403 with a limit_reached detail when the plan's job limit is reached.
    """
    try:
        job = job_service.create_job(db, user, job_data.model_dump())
    except JobLimitError as e:
        raise limit_reached(e.result)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to create job: user_id={user.id}, error={e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create job offer"
        )
    return to_job_response(db, job)


@router.get("", response_model=JobOfferListResponse)
def list_jobs(
    status_filter: Optional[JobStatus] = Query(None, alias="status", description="Filter by status"),
    search: Optional[str] = Query(None, description="Search in title and location"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user: User = Depends(require_company),
    db: Session = Depends(get_db)
):
    query = db.query(JobOffer).filter(JobOffer.company_id == user.company.id)
    if status_filter:
        query = query.filter(JobOffer.status == status_filter)
    if search:
        term = f"%{search}%"
        query = query.filter(JobOffer.title.ilike(term) | JobOffer.location.ilike(term))

    total = query.count()
    jobs = query.order_by(JobOffer.created_at.desc(), JobOffer.id.desc()).offset((page - 1) * page_size).limit(page_size).all()

    counts = dict(
        db.query(Application.job_offer_id, func.count(Application.id))
        .filter(Application.job_offer_id.in_([job.id for job in jobs]))
        .group_by(Application.job_offer_id)
        .all()
    ) if jobs else {}

    responses = []
    for job in jobs:
        response = JobOfferResponse.model_validate(job)
        response.application_count = counts.get(job.id, 0)
        responses.append(response)

    logger.debug(f"Jobs listed: user_id={user.id}, total={total}, page={page}")
    return JobOfferListResponse(jobs=responses, total=total, page=page, page_size=page_size)


@router.get("/{job_id}", response_model=JobOfferResponse)
def get_job(
    job_id: int,
    user: User = Depends(require_company),
    db: Session = Depends(get_db)
):
    return to_job_response(db, get_owned_job(db, user, job_id))


@router.put("/{job_id}", response_model=JobOfferResponse)
def update_job(
    job_id: int,
    job_data: JobOfferUpdate,
    user: User = Depends(require_company),
    db: Session = Depends(get_db)
):
    """
    Update a job offer. Once published only description and salary_range may change.
    """
    job = get_owned_job(db, user, job_id)
    try:
        job = job_service.update_job(db, job, job_data.model_dump(exclude_unset=True))
    except JobStateError as e:
        raise state_conflict(e)
    return to_job_response(db, job)


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job(
    job_id: int,
    user: User = Depends(require_company),
    db: Session = Depends(get_db)
):
    """Delete a DRAFT job offer that has no applications."""
    job = get_owned_job(db, user, job_id)
    try:
        job_service.delete_job(db, job)
    except JobStateError as e:
        raise state_conflict(e)
    return None


@router.post("/{job_id}/publish", response_model=JobOfferResponse)
def publish_job(
    job_id: int,
    user: User = Depends(require_company),
    db: Session = Depends(get_db)
):
    job = get_owned_job(db, user, job_id)
    try:
        job = job_service.publish_job(db, job)
    except JobStateError as e:
        raise state_conflict(e)
    return to_job_response(db, job)


@router.post("/{job_id}/close", response_model=JobOfferResponse)
def close_job(
    job_id: int,
    user: User = Depends(require_company),
    db: Session = Depends(get_db)
):
    job = get_owned_job(db, user, job_id)
    try:
        job = job_service.close_job(db, job)
    except JobStateError as e:
        raise state_conflict(e)
    return to_job_response(db, job)
