"""
Tests for application intake, review and AI analysis.
"""
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest

from app.core.clock import utcnow
from app.db.models.application import Application, ApplicationStatus
from app.db.models.job_offer import JobStatus
from app.db.models.notification import Notification
from app.db.models.subscription import Subscription
from app.llm.provider import LLMProvider, LLMResponse
from app.services.ai_scoring_service import parse_scoring_response
from app.services.application_service import (
    ApplicantDetails,
    ApplicationError,
    ApplicationLimitError,
    CVUpload,
    analyze_application,
    purge_expired_applications,
    submit_application,
    update_status,
)
from app.services.cv_parser import CVParseError, extract_cv_text
from app.services.entitlement_service import get_or_create_subscription

from factories import make_job, make_candidate, auth_headers, PDF_BYTES


class FakeProvider(LLMProvider):
    def __init__(self, content="SCORE: 82\nANALYSE: Profil solide, bonne maîtrise de FastAPI.", error=None):
        self.content = content
        self.error = error
        self.calls = []

    def chat(self, messages, model=None, temperature=0.3, max_tokens=None, **kwargs):
        self.calls.append(messages)
        if self.error:
            raise self.error
        return LLMResponse(content=self.content, model="fake-model")


def _form(**overrides):
    data = {
        "first_name": "Paul",
        "last_name": "Durand",
        "email": "paul@example.com",
        "phone": "0611223344",
        "consent_given": "true",
    }
    data.update(overrides)
    return data


def _cv(content=PDF_BYTES, name="cv-paul.pdf", mime="application/pdf"):
    return {"cv": (name, content, mime)}


def _guest():
    return ApplicantDetails(first_name="Paul", last_name="Durand", email="Paul@Example.com", phone="0611223344")


def _upload():
    return CVUpload(data=PDF_BYTES, file_name="cv.pdf", mime_type="application/pdf")


# ============================================
# Intake
# ============================================

def test_guest_can_apply(client, db, company_user):
    job = make_job(db, company_user)

    response = client.post(f"/jobs/public/{job.public_id}/apply", data=_form(), files=_cv())

    assert response.status_code == 201
    assert response.json()["status"] == "PENDING"
    application = db.query(Application).one()
    assert application.guest_email == "paul@example.com"
    assert application.cv_file_name == "cv-paul.pdf"
    assert application.data_retention_until is not None
    notification = db.query(Notification).filter(Notification.user_id == company_user.id).one()
    assert notification.type == "NEW_APPLICATION"


def test_apply_requires_consent(client, db, company_user):
    job = make_job(db, company_user)
    response = client.post(f"/jobs/public/{job.public_id}/apply", data=_form(consent_given="false"), files=_cv())
    assert response.status_code == 400


def test_apply_rejects_non_pdf(client, db, company_user):
    job = make_job(db, company_user)
    response = client.post(
        f"/jobs/public/{job.public_id}/apply",
        data=_form(),
        files=_cv(content=b"PK\x03\x04 not a pdf", name="cv.docx", mime="application/octet-stream"),
    )
    assert response.status_code == 400


def test_apply_rejects_oversized_cv(client, db, company_user):
    job = make_job(db, company_user)
    with patch("app.services.application_service.MAX_CV_SIZE_BYTES", 64):
        response = client.post(
            f"/jobs/public/{job.public_id}/apply",
            data=_form(),
            files=_cv(content=PDF_BYTES + b"0" * 200),
        )
    assert response.status_code == 400
    assert db.query(Application).count() == 0


def test_apply_to_closed_job_is_not_found(client, db, company_user):
    job = make_job(db, company_user, status=JobStatus.CLOSED)
    response = client.post(f"/jobs/public/{job.public_id}/apply", data=_form(), files=_cv())
    assert response.status_code == 404


def test_duplicate_guest_application_is_refused(client, db, company_user):
    job = make_job(db, company_user)
    first = client.post(f"/jobs/public/{job.public_id}/apply", data=_form(), files=_cv())
    second = client.post(f"/jobs/public/{job.public_id}/apply", data=_form(email="PAUL@example.com"), files=_cv())

    assert first.status_code == 201
    assert second.status_code == 409


def test_application_limit_returns_limit_reached(client, db, company_user):
    job = make_job(db, company_user)
    subscription = get_or_create_subscription(db, company_user)
    subscription.max_apps_per_job = 1
    db.commit()

    client.post(f"/jobs/public/{job.public_id}/apply", data=_form(), files=_cv())
    response = client.post(
        f"/jobs/public/{job.public_id}/apply", data=_form(email="marie@example.com"), files=_cv()
    )

    assert response.status_code == 403
    assert response.json()["detail"]["feature"] == "applications"
    assert db.query(Application).count() == 1


def test_logged_in_candidate_is_linked(client, db, company_user):
    candidate_user = make_candidate(db)
    job = make_job(db, company_user)

    response = client.post(
        f"/jobs/public/{job.public_id}/apply",
        data=_form(),
        files=_cv(),
        headers=auth_headers(candidate_user),
    )

    assert response.status_code == 201
    application = db.query(Application).one()
    assert application.candidate_id == candidate_user.candidate.id
    assert application.guest_email is None

    mine = client.get("/me/applications", headers=auth_headers(candidate_user))
    assert mine.status_code == 200
    assert len(mine.json()) == 1


def test_expired_job_refuses_applications(db, company_user):
    job = make_job(db, company_user, expires_at=utcnow() - timedelta(days=1))
    with pytest.raises(ApplicationError) as exc:
        submit_application(db, job, _guest(), _upload(), consent_given=True)
    assert exc.value.status_code == 404


def test_retention_date_is_six_months_out(db, company_user):
    job = make_job(db, company_user)
    application = submit_application(db, job, _guest(), _upload(), consent_given=True, now=datetime(2026, 1, 31))
    assert application.data_retention_until == datetime(2026, 7, 31)


def test_limit_error_carries_entitlement(db, company_user):
    job = make_job(db, company_user)
    subscription = get_or_create_subscription(db, company_user)
    subscription.max_apps_per_job = 0
    db.commit()

    with pytest.raises(ApplicationLimitError) as exc:
        submit_application(db, job, _guest(), _upload(), consent_given=True)
    assert exc.value.result.limit == 0


# ============================================
# Review
# ============================================

def test_company_lists_and_shortlists(client, db, company_user):
    job = make_job(db, company_user)
    application = submit_application(db, job, _guest(), _upload(), consent_given=True)
    headers = auth_headers(company_user)

    listing = client.get("/applications", params={"job_id": job.id}, headers=headers)
    assert listing.status_code == 200
    assert listing.json()["total"] == 1
    assert listing.json()["applications"][0]["applicant_name"] == "Paul Durand"

    updated = client.patch(f"/applications/{application.id}/status", json={"status": "SHORTLISTED"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["status"] == "SHORTLISTED"


def test_cv_download(client, db, company_user):
    job = make_job(db, company_user)
    application = submit_application(db, job, _guest(), _upload(), consent_given=True)

    response = client.get(f"/applications/{application.id}/cv", headers=auth_headers(company_user))

    assert response.status_code == 200
    assert response.content == PDF_BYTES
    assert response.headers["content-type"] == "application/pdf"


# ============================================
# AI analysis
# ============================================

def test_analysis_stores_score_and_consumes_quota(db, company_user):
    job = make_job(db, company_user)
    application = submit_application(db, job, _guest(), _upload(), consent_given=True)
    provider = FakeProvider()

    with patch("app.services.application_service.extract_cv_text", return_value="Paul Durand, Python, FastAPI"):
        analyzed = analyze_application(db, application, company_user, provider=provider)

    assert analyzed.status == ApplicationStatus.ANALYZED
    assert analyzed.ai_score == 82
    assert analyzed.ai_analysis.startswith("Profil solide")
    assert len(provider.calls) == 1
    db.expire_all()
    assert db.query(Subscription).filter(Subscription.user_id == company_user.id).one().ai_analyses_used == 1


def test_failed_analysis_reverts_to_pending_and_refunds(db, company_user):
    job = make_job(db, company_user)
    application = submit_application(db, job, _guest(), _upload(), consent_given=True)
    provider = FakeProvider(error=RuntimeError("upstream timeout"))

    with patch("app.services.application_service.extract_cv_text", return_value="Paul Durand, Python"):
        with pytest.raises(ApplicationError) as exc:
            analyze_application(db, application, company_user, provider=provider)

    assert exc.value.status_code == 502
    db.expire_all()
    application = db.query(Application).one()
    assert application.status == ApplicationStatus.PENDING
    assert application.ai_error
    assert db.query(Subscription).filter(Subscription.user_id == company_user.id).one().ai_analyses_used == 0


def test_unexpected_extraction_error_does_not_leave_application_analyzing(db, company_user):
    job = make_job(db, company_user)
    application = submit_application(db, job, _guest(), _upload(), consent_given=True)

    with patch("app.services.application_service.extract_cv_text", side_effect=RuntimeError("corrupt xref")):
        with pytest.raises(ApplicationError) as exc:
            analyze_application(db, application, company_user, provider=FakeProvider())

    assert exc.value.status_code == 502
    db.expire_all()
    application = db.query(Application).one()
    assert application.status == ApplicationStatus.PENDING
    assert application.ai_error
    assert db.query(Subscription).filter(Subscription.user_id == company_user.id).one().ai_analyses_used == 0

    reviewed = update_status(db, application, ApplicationStatus.SHORTLISTED)
    assert reviewed.status == ApplicationStatus.SHORTLISTED


def test_page_extraction_failure_is_a_parse_error():
    page = MagicMock()
    page.get_text.side_effect = RuntimeError("broken content stream")
    doc = MagicMock(page_count=1)
    doc.__iter__.return_value = iter([page])

    with patch("app.services.cv_parser.fitz.open", return_value=doc):
        with pytest.raises(CVParseError):
            extract_cv_text(PDF_BYTES)


def test_analysis_refused_when_quota_exhausted(db, company_user):
    job = make_job(db, company_user)
    application = submit_application(db, job, _guest(), _upload(), consent_given=True)
    subscription = get_or_create_subscription(db, company_user)
    subscription.ai_analyses_used = subscription.max_ai_analyses_month
    db.commit()

    with pytest.raises(ApplicationLimitError):
        analyze_application(db, application, company_user, provider=FakeProvider())

    db.expire_all()
    assert db.query(Application).one().status == ApplicationStatus.PENDING


def test_analyze_endpoint(client, db, company_user):
    job = make_job(db, company_user)
    application = submit_application(db, job, _guest(), _upload(), consent_given=True)

    with patch("app.services.application_service.extract_cv_text", return_value="Paul Durand, Python"), \
            patch("app.services.ai_scoring_service.get_provider", return_value=FakeProvider("SCORE: 140\nANALYSE: Excellent")):
        response = client.post(f"/applications/{application.id}/analyze", headers=auth_headers(company_user))

    assert response.status_code == 200
    assert response.json()["status"] == "ANALYZED"
    assert response.json()["ai_score"] == 100


def test_parse_scoring_response_without_format():
    result = parse_scoring_response("Le candidat semble adapté au poste.")
    assert result.score == 0
    assert result.analysis == "Le candidat semble adapté au poste."


# ============================================
# Retention
# ============================================

def test_purge_expired_applications(db, company_user):
    job = make_job(db, company_user)
    old = submit_application(db, job, _guest(), _upload(), consent_given=True, now=datetime(2025, 1, 10))
    recent = submit_application(
        db, job,
        ApplicantDetails(first_name="Marie", last_name="Curie", email="marie@example.com", phone="0699887766"),
        _upload(), consent_given=True, now=datetime(2025, 12, 1),
    )

    purged = purge_expired_applications(db, now=datetime(2026, 1, 1))

    assert purged == 1
    db.expire_all()
    purged_application = db.get(Application, old.id)
    assert purged_application.cv_file_name is None
    assert purged_application.cv_data is None
    assert purged_application.guest_first_name is None
    assert purged_application.guest_last_name is None
    assert purged_application.guest_email is None
    assert purged_application.guest_phone is None
    assert db.get(Application, recent.id).cv_file_name == "cv.pdf"
