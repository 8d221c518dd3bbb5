"""
Job offer lifecycle.

    DRAFT --publish--> PUBLISHED --close--> CLOSED
      |
      +--delete (no applications)            any --archive (admin)--> ARCHIVED

A published offer never returns to DRAFT, and once published only its
description and salary range can be edited.
"""
import logging
from datetime import datetime
from typing import Optional, Dict, Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.clock import utcnow, to_naive_utc
from app.db.models.application import Application, ApplicationStatus
from app.db.models.user import User
from app.db.models.job_offer import JobOffer, JobStatus
from app.services.entitlement_service import can_create_job, count_applications, EntitlementResult

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    "title", "description", "requirements", "location",
    "job_type", "salary_range", "interview_slots", "expires_at",
}
PUBLISHED_EDITABLE_FIELDS = {"description", "salary_range"}


class JobStateError(Exception):
    """Requested transition is not allowed from the offer's current status."""

    def __init__(self, message: str, current_status: Optional[JobStatus] = None):
        super().__init__(message)
        self.message = message
        self.current_status = current_status


class JobLimitError(Exception):
    """Plan does not allow another active offer."""

    def __init__(self, result: EntitlementResult):
        super().__init__(result.reason)
        self.result = result


def create_job(db: Session, user: User, data: Dict[str, Any]) -> JobOffer:
    """
    Create a DRAFT offer for the user's company.

    The subscription row is locked while the active offers are counted so
    two concurrent creations cannot both take the last slot.

    Raises:
        JobLimitError: If max_jobs is reached
    """
    result = can_create_job(db, user, lock=True)
    if not result.allowed:
        db.rollback()
        raise JobLimitError(result)

    fields = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
    job = JobOffer(company_id=user.company.id, status=JobStatus.DRAFT, **fields)
    db.add(job)
    db.commit()
    db.refresh(job)

    logger.info(
        f"Job created: job_id={job.id}, company_id={job.company_id}, "
        f"used={result.used + 1}/{result.limit if result.limit is not None else 'unlimited'}"
    )
    return job


def update_job(db: Session, job: JobOffer, data: Dict[str, Any]) -> JobOffer:
    """
    Apply a partial update.

    Raises:
        JobStateError: If the offer is closed or archived, or a published
            offer is sent fields other than description and salary range
    """
    changes = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}

    if job.status in (JobStatus.CLOSED, JobStatus.ARCHIVED):
        raise JobStateError(f"A {job.status.value} job offer cannot be edited", job.status)

    if job.status == JobStatus.PUBLISHED:
        locked = sorted(set(changes) - PUBLISHED_EDITABLE_FIELDS)
        if locked:
            raise JobStateError(
                "Only the description and salary range can be edited on a published job offer "
                f"(refused: {', '.join(locked)})",
                job.status,
            )

    for field, value in changes.items():
        setattr(job, field, value)
    db.commit()
    db.refresh(job)

    logger.info(f"Job updated: job_id={job.id}, fields={sorted(changes)}")
    return job


def publish_job(db: Session, job: JobOffer, now: Optional[datetime] = None) -> JobOffer:
    if job.status != JobStatus.DRAFT:
        raise JobStateError("Only a draft job offer can be published", job.status)

    job.status = JobStatus.PUBLISHED
    job.published_at = now or utcnow()
    db.commit()
    db.refresh(job)

    logger.info(f"Job published: job_id={job.id}, public_id={job.public_id}")
    return job


def close_job(db: Session, job: JobOffer) -> JobOffer:
    if job.status != JobStatus.PUBLISHED:
        raise JobStateError("Only a published job offer can be closed", job.status)

    job.status = JobStatus.CLOSED
    db.commit()
    db.refresh(job)

    logger.info(f"Job closed: job_id={job.id}")
    return job


def delete_job(db: Session, job: JobOffer) -> None:
    if job.status != JobStatus.DRAFT:
        raise JobStateError("Only a draft job offer can be deleted", job.status)
    if count_applications(db, job.id) > 0:
        raise JobStateError("A job offer with applications cannot be deleted", job.status)

    job_id = job.id
    db.delete(job)
    db.commit()
    logger.info(f"Job deleted: job_id={job_id}")


def archive_job(db: Session, job: JobOffer) -> JobOffer:
    """Admin moderation: take an offer off the board whatever its status."""
    if job.status == JobStatus.ARCHIVED:
        raise JobStateError("Job offer is already archived", job.status)

    previous = job.status
    job.status = JobStatus.ARCHIVED
    db.commit()
    db.refresh(job)

    logger.info(f"Job archived: job_id={job.id}, previous_status={previous.value}")
    return job


def is_open_for_applications(job: JobOffer, now: Optional[datetime] = None) -> bool:
    if job.status != JobStatus.PUBLISHED:
        return False
    expires_at = to_naive_utc(job.expires_at)
    return expires_at is None or expires_at > (now or utcnow())


def company_stats(db: Session, company_id: int) -> Dict[str, int]:
    """Offer counts per status and application totals for a company dashboard."""
    by_status = dict(
        db.query(JobOffer.status, func.count(JobOffer.id))
        .filter(JobOffer.company_id == company_id)
        .group_by(JobOffer.status)
        .all()
    )
    applications = db.query(Application).join(JobOffer).filter(JobOffer.company_id == company_id)

    return {
        "total_jobs": sum(by_status.values()),
        "draft_jobs": by_status.get(JobStatus.DRAFT, 0),
        "published_jobs": by_status.get(JobStatus.PUBLISHED, 0),
        "closed_jobs": by_status.get(JobStatus.CLOSED, 0),
        "total_applications": applications.count(),
        "pending_applications": applications.filter(
            Application.status.in_((ApplicationStatus.PENDING, ApplicationStatus.ANALYZING))
        ).count(),
    }
