"""
Application intake, review and AI analysis.

Status flow:

    PENDING -> ANALYZING -> ANALYZED -> SHORTLISTED | REJECTED | CONTACTED

A failed analysis stores the error and puts the application back to PENDING.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.clock import utcnow, add_months
from app.core.config import MAX_CV_SIZE_BYTES, DATA_RETENTION_MONTHS
from app.db.models.application import Application, ApplicationStatus
from app.db.models.candidate import Candidate
from app.db.models.job_offer import JobOffer
from app.db.models.user import User
from app.llm.provider import LLMProvider
from app.services import email_templates, settings_service
from app.services.ai_scoring_service import score_cv, ScoringError
from app.services.cv_parser import extract_cv_text, looks_like_pdf, CVParseError
from app.services.email_service import send_email
from app.services.entitlement_service import (
    EntitlementResult,
    can_receive_application,
    consume_ai_analysis,
    refund_ai_analysis,
)
from app.services.job_service import is_open_for_applications
from app.services.notification_service import create_notification

logger = logging.getLogger(__name__)

REVIEW_STATUSES = {
    ApplicationStatus.SHORTLISTED,
    ApplicationStatus.REJECTED,
    ApplicationStatus.CONTACTED,
}

PDF_MIME_TYPE = "application/pdf"


class ApplicationError(Exception):
    """Request cannot be processed. `status_code` hints the HTTP mapping."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ApplicationLimitError(Exception):
    def __init__(self, result: EntitlementResult):
        super().__init__(result.reason)
        self.result = result


@dataclass
class ApplicantDetails:
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    motivation_letter: Optional[str] = None


@dataclass
class CVUpload:
    data: bytes
    file_name: str
    mime_type: Optional[str] = None


def validate_cv(cv: CVUpload) -> None:
    """
    Raises:
        ApplicationError: If the file is not a PDF or is too large
    """
    if not cv.data:
        raise ApplicationError("A CV file is required")
    if cv.mime_type and cv.mime_type != PDF_MIME_TYPE:
        raise ApplicationError("The CV must be a PDF file")
    if not looks_like_pdf(cv.data):
        raise ApplicationError("The CV must be a PDF file")
    if len(cv.data) > MAX_CV_SIZE_BYTES:
        raise ApplicationError(f"The CV must not exceed {MAX_CV_SIZE_BYTES // (1024 * 1024)} MB")


def _already_applied(db: Session, job: JobOffer, email: str, candidate: Optional[Candidate]) -> bool:
    query = db.query(Application).filter(Application.job_offer_id == job.id)
    if candidate is not None:
        return query.filter(Application.candidate_id == candidate.id).first() is not None
    return query.filter(Application.guest_email == email).first() is not None


def submit_application(
    db: Session,
    job: JobOffer,
    applicant: ApplicantDetails,
    cv: CVUpload,
    consent_given: bool,
    candidate: Optional[Candidate] = None,
    now: Optional[datetime] = None,
) -> Application:
    """
    Record an application on a published offer.

    Guests are identified by the contact fields; a registered candidate is
    linked through candidate_id. The owning company's subscription row is
    locked while applications are counted.

    Raises:
        ApplicationError: Closed offer, missing consent, invalid CV or duplicate
        ApplicationLimitError: If the offer reached max_apps_per_job
    """
    now = now or utcnow()

    if not is_open_for_applications(job, now):
        raise ApplicationError("Job offer not found or not published", status_code=404)
    if not consent_given:
        raise ApplicationError("Consent to data processing is required")
    validate_cv(cv)

    email = applicant.email.strip().lower()
    if _already_applied(db, job, email, candidate):
        raise ApplicationError("You have already applied to this job offer", status_code=409)

    result = can_receive_application(db, job, lock=True)
    if not result.allowed:
        db.rollback()
        raise ApplicationLimitError(result)

    application = Application(
        job_offer_id=job.id,
        candidate_id=candidate.id if candidate else None,
        guest_first_name=None if candidate else applicant.first_name,
        guest_last_name=None if candidate else applicant.last_name,
        guest_email=None if candidate else email,
        guest_phone=None if candidate else applicant.phone,
        linkedin_url=applicant.linkedin_url,
        motivation_letter=applicant.motivation_letter,
        cv_data=cv.data,
        cv_file_name=cv.file_name,
        cv_file_size=len(cv.data),
        cv_mime_type=PDF_MIME_TYPE,
        consent_given=True,
        data_retention_until=add_months(now, DATA_RETENTION_MONTHS),
        status=ApplicationStatus.PENDING,
    )
    db.add(application)
    db.commit()
    db.refresh(application)

    logger.info(
        f"Application received: application_id={application.id}, job_id={job.id}, "
        f"candidate_id={application.candidate_id}, count={result.used + 1}"
    )

    _notify_new_application(db, job, application, applicant)
    return application


def _send_notification_email(db: Session, to: str, subject: str, html: str) -> None:
    if not settings_service.is_enabled(db, "email_notifications"):
        logger.info(f"Notification email skipped, emails disabled: subject={subject}")
        return
    send_email(to, subject, html)


def _notify_new_application(db: Session, job: JobOffer, application: Application, applicant: ApplicantDetails) -> None:
    company = job.company
    candidate_name = f"{applicant.first_name} {applicant.last_name}".strip()

    create_notification(
        db,
        user_id=company.user_id,
        type="NEW_APPLICATION",
        title="New application received",
        message=f"{candidate_name} applied for {job.title}",
        details={"application_id": application.id, "job_offer_id": job.id},
    )

    subject, html = email_templates.new_application_for_company(company.company_name, candidate_name, job.title)
    _send_notification_email(db, company.user.email, subject, html)

    subject, html = email_templates.application_confirmation_for_candidate(candidate_name, job.title, company.company_name)
    _send_notification_email(db, application.applicant_email, subject, html)


def get_company_application(db: Session, company_id: int, application_id: int) -> Application:
    """
    Raises:
        ApplicationError: 404 if missing, 403 if another company owns the offer
    """
    application = db.query(Application).filter(Application.id == application_id).first()
    if not application:
        raise ApplicationError("Application not found", status_code=404)
    if application.job_offer.company_id != company_id:
        raise ApplicationError("Access denied", status_code=403)
    return application


def update_status(db: Session, application: Application, new_status: ApplicationStatus) -> Application:
    """
    Move an application to a review status and tell the candidate.

    Raises:
        ApplicationError: For a status other than SHORTLISTED, REJECTED or CONTACTED,
            or while an analysis is running
    """
    if new_status not in REVIEW_STATUSES:
        raise ApplicationError(f"Status must be one of {', '.join(sorted(s.value for s in REVIEW_STATUSES))}")
    if application.status == ApplicationStatus.ANALYZING:
        raise ApplicationError("Application is being analyzed", status_code=409)

    previous = application.status
    application.status = new_status
    db.commit()
    db.refresh(application)

    logger.info(
        f"Application status updated: application_id={application.id}, "
        f"from={previous.value}, to={new_status.value}"
    )

    job = application.job_offer
    company_name = job.company.company_name
    candidate_name = application.applicant_name

    if application.candidate and application.candidate.user:
        create_notification(
            db,
            user_id=application.candidate.user_id,
            type="APPLICATION_STATUS_UPDATED",
            title="Application update",
            message=f"Your application for {job.title} is now {new_status.value.lower()}",
            details={"application_id": application.id, "status": new_status.value},
        )

    recipient = application.applicant_email
    if recipient:
        subject, html = email_templates.STATUS_TEMPLATES[new_status.value](candidate_name, job.title, company_name)
        _send_notification_email(db, recipient, subject, html)

    return application


def _abort_analysis(db: Session, application: Application, company_user: User, error: str) -> None:
    """Put a failed analysis back to PENDING and give the quota unit back."""
    db.rollback()
    application.status = ApplicationStatus.PENDING
    application.ai_error = error
    db.commit()
    refund_ai_analysis(db, company_user)


def analyze_application(
    db: Session,
    application: Application,
    company_user: User,
    provider: Optional[LLMProvider] = None,
    now: Optional[datetime] = None,
) -> Application:
    """
    Score the application's CV with the LLM.

    One analysis is consumed up front; it is given back if extraction or
    scoring fails.

    Raises:
        ApplicationLimitError: If the monthly AI quota is exhausted
        ApplicationError: 409 while already analyzing, 400 without a CV,
            502 when the CV or the LLM call fails
    """
    if application.status == ApplicationStatus.ANALYZING:
        raise ApplicationError("Application is already being analyzed", status_code=409)
    if not application.cv_data:
        raise ApplicationError("No CV found for this application")

    result = consume_ai_analysis(db, company_user, now)
    if not result.allowed:
        raise ApplicationLimitError(result)

    application.status = ApplicationStatus.ANALYZING
    application.ai_error = None
    db.commit()

    job = application.job_offer
    try:
        cv_text = extract_cv_text(application.cv_data)
        scored = score_cv(cv_text, job.description, job.requirements, provider=provider)
    except (CVParseError, ScoringError) as e:
        _abort_analysis(db, application, company_user, str(e))
        logger.warning(f"Application analysis failed: application_id={application.id}, error={e}")
        raise ApplicationError(str(e), status_code=502) from e
    except Exception as e:
        _abort_analysis(db, application, company_user, "Unexpected error during analysis")
        logger.exception(f"Application analysis crashed: application_id={application.id}, error={e}")
        raise ApplicationError("AI analysis failed, please retry", status_code=502) from e

    application.ai_score = scored.score
    application.ai_analysis = scored.analysis
    application.ai_processed_at = now or utcnow()
    application.status = ApplicationStatus.ANALYZED
    db.commit()
    db.refresh(application)

    logger.info(f"Application analyzed: application_id={application.id}, score={scored.score}")

    candidate_name = application.applicant_name or "Candidate"
    create_notification(
        db,
        user_id=company_user.id,
        type="AI_ANALYSIS_COMPLETE",
        title="AI analysis complete",
        message=f"Analysis of {candidate_name} is complete (score: {scored.score}/100)",
        details={"application_id": application.id, "ai_score": scored.score},
    )
    subject, html = email_templates.ai_analysis_complete_for_company(
        job.company.company_name, candidate_name, job.title, scored.score
    )
    _send_notification_email(db, company_user.email, subject, html)

    return application


def purge_expired_applications(db: Session, now: Optional[datetime] = None) -> int:
    """Drop CV files and guest contact data past their retention date."""
    now = now or utcnow()
    expired = db.query(Application).filter(
        Application.data_retention_until.isnot(None),
        Application.data_retention_until < now,
        Application.cv_file_name.isnot(None),
    ).all()

    for application in expired:
        application.cv_data = None
        application.cv_file_name = None
        application.cv_file_size = None
        application.guest_first_name = None
        application.guest_last_name = None
        application.guest_email = None
        application.guest_phone = None
        application.motivation_letter = None
    db.commit()

    logger.info(f"Expired application data purged: count={len(expired)}")
    return len(expired)
