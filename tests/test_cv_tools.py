"""
Tests for the candidate CV tools. The LLM is a fake provider returning
canned JSON; PDF reading is patched where real text is needed.
"""
import json
from unittest.mock import patch

import pytest

from app.db.models.audit_log import AuditLog
from app.db.models.subscription import Subscription
from app.llm.provider import LLMProvider, LLMResponse
from app.services.cv_parser import CVParseError
from app.services.cv_tools_service import (
    CVProfileRequest,
    CVToolError,
    CVToolLimitError,
    adapt_cv,
    generate_cv,
    improve_section,
    parse_cv_pdf,
)
from app.services.entitlement_service import change_plan, get_or_create_subscription

from factories import auth_headers, PDF_BYTES

GENERATED_CV = {
    "personalInfo": {"title": "Développeuse Python", "summary": "Trois ans à construire des API FastAPI."},
    "experience": [{"position": "Développeuse backend", "company": "Globex", "startDate": "2022-01",
                    "endDate": "2025-01", "current": False, "description": "• Conçu une API de facturation"}],
    "education": [{"degree": "Master", "field": "Informatique", "school": "INSA Lyon"}],
    "skills": [{"name": "Python", "level": "Expert"}, {"id": "skill-keep", "name": "SQL", "level": "Avancé"}],
}

JOB_OFFER = "Nous recherchons une développeuse Python pour notre équipe paiement, FastAPI et PostgreSQL."


class FakeProvider(LLMProvider):
    def __init__(self, content=None, error=None):
        self.content = json.dumps(GENERATED_CV) if content is None else content
        self.error = error
        self.calls = []

    def chat(self, messages, model=None, temperature=0.3, max_tokens=None, **kwargs):
        self.calls.append({"messages": messages, **kwargs})
        if self.error:
            raise self.error
        return LLMResponse(content=self.content, model="fake-model")


def _ai_used(db, user):
    db.expire_all()
    return db.query(Subscription).filter(Subscription.user_id == user.id).one().ai_analyses_used


def test_generate_returns_cv_with_ids_and_consumes_quota(db, candidate_user):
    provider = FakeProvider()

    cv = generate_cv(db, candidate_user, CVProfileRequest(job_title="Développeuse Python"), provider=provider)

    assert cv["personalInfo"]["title"] == "Développeuse Python"
    assert cv["experience"][0]["id"].startswith("exp-")
    assert cv["education"][0]["id"].startswith("edu-")
    assert cv["skills"][1]["id"] == "skill-keep"
    assert provider.calls[0]["response_format"] == {"type": "json_object"}
    assert _ai_used(db, candidate_user) == 1


def test_generate_requires_job_title(db, candidate_user):
    with pytest.raises(CVToolError):
        generate_cv(db, candidate_user, CVProfileRequest(job_title="  "), provider=FakeProvider())
    assert _ai_used(db, candidate_user) == 0


def test_generate_refused_when_quota_exhausted(db, candidate_user):
    subscription = get_or_create_subscription(db, candidate_user)
    subscription.ai_analyses_used = subscription.max_ai_analyses_month
    db.commit()
    provider = FakeProvider()

    with pytest.raises(CVToolLimitError):
        generate_cv(db, candidate_user, CVProfileRequest(job_title="Développeuse Python"), provider=provider)

    assert provider.calls == []


def test_unreadable_answer_refunds_quota(db, candidate_user):
    with pytest.raises(CVToolError) as exc:
        generate_cv(db, candidate_user, CVProfileRequest(job_title="Développeuse Python"),
                    provider=FakeProvider(content="Voici votre CV !"))

    assert exc.value.status_code == 502
    assert _ai_used(db, candidate_user) == 0


def test_provider_failure_refunds_quota(db, candidate_user):
    with pytest.raises(CVToolError):
        generate_cv(db, candidate_user, CVProfileRequest(job_title="Développeuse Python"),
                    provider=FakeProvider(error=RuntimeError("upstream timeout")))
    assert _ai_used(db, candidate_user) == 0


def test_improve_summary(db, candidate_user):
    provider = FakeProvider(content=json.dumps({"content": "  Développeuse Python orientée produit.  "}))

    improved = improve_section(db, candidate_user, "summary", "Je code en Python.", provider=provider)

    assert improved == "Développeuse Python orientée produit."
    assert _ai_used(db, candidate_user) == 1


def test_improve_skills_returns_list(db, candidate_user):
    provider = FakeProvider(content=json.dumps({"content": [{"name": "Docker", "level": "Avancé"}]}))

    skills = improve_section(db, candidate_user, "skills", "Python", context="Développeuse backend", provider=provider)

    assert skills[0]["name"] == "Docker"
    assert skills[0]["id"].startswith("skill-")


def test_improve_unknown_section_costs_nothing(db, candidate_user):
    with pytest.raises(CVToolError, match="Section must be one of"):
        improve_section(db, candidate_user, "hobbies", "Escalade", provider=FakeProvider())
    assert _ai_used(db, candidate_user) == 0


def test_adapt_requires_premium(db, candidate_user):
    with pytest.raises(CVToolError) as exc:
        adapt_cv(db, candidate_user, JOB_OFFER, cv_text="Léa Martin, Python", provider=FakeProvider())
    assert exc.value.status_code == 403


def test_adapt_for_premium_candidate_is_audited(db, candidate_user):
    change_plan(db, candidate_user, "CANDIDATE_PREMIUM")
    provider = FakeProvider()

    cv = adapt_cv(db, candidate_user, JOB_OFFER, current_cv=GENERATED_CV, provider=provider)

    assert cv["skills"][0]["id"].startswith("skill-")
    prompt = provider.calls[0]["messages"][1]["content"]
    assert "équipe paiement" in prompt
    assert "Globex" in prompt
    assert db.query(AuditLog).filter(AuditLog.action == "ADAPT_CV_TO_JOB").count() == 1
    assert _ai_used(db, candidate_user) == 1


def test_adapt_needs_a_cv(db, candidate_user):
    change_plan(db, candidate_user, "CANDIDATE_PREMIUM")
    with pytest.raises(CVToolError, match="current CV"):
        adapt_cv(db, candidate_user, JOB_OFFER, provider=FakeProvider())


def test_parse_pdf_returns_text_and_pages():
    text = "Léa Martin, développeuse Python. Trois ans d'expérience sur FastAPI et PostgreSQL."
    with patch("app.services.cv_tools_service.read_pdf", return_value=(text, 2)):
        parsed = parse_cv_pdf(PDF_BYTES, "cv-lea.pdf")
    assert parsed == {"cv_text": text, "file_name": "cv-lea.pdf", "pages": 2}


def test_parse_pdf_refuses_scans_and_non_pdf():
    with patch("app.services.cv_tools_service.read_pdf", return_value=("Léa", 1)):
        with pytest.raises(CVToolError, match="too little text"):
            parse_cv_pdf(PDF_BYTES, "scan.pdf")
    with pytest.raises(CVToolError, match="PDF"):
        parse_cv_pdf(b"GIF89a", "photo.gif")
    with patch("app.services.cv_tools_service.read_pdf", side_effect=CVParseError("CV is not a readable PDF")):
        with pytest.raises(CVToolError):
            parse_cv_pdf(PDF_BYTES, "broken.pdf")


def test_generate_endpoint(client, candidate_user):
    with patch("app.services.cv_tools_service.get_provider", return_value=FakeProvider()):
        response = client.post(
            "/cv/generate",
            json={"job_title": "Développeuse Python", "skills": "Python, FastAPI"},
            headers=auth_headers(candidate_user),
        )

    assert response.status_code == 200
    assert response.json()["cv"]["personalInfo"]["title"] == "Développeuse Python"


def test_generate_endpoint_limit_reached(client, db, candidate_user):
    subscription = get_or_create_subscription(db, candidate_user)
    subscription.ai_analyses_used = subscription.max_ai_analyses_month
    db.commit()

    response = client.post("/cv/generate", json={"job_title": "Développeuse Python"}, headers=auth_headers(candidate_user))

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "limit_reached"
    assert response.json()["detail"]["feature"] == "ai_analyses"


def test_cv_tools_are_for_candidates(client, company_user):
    response = client.post("/cv/generate", json={"job_title": "Développeuse Python"}, headers=auth_headers(company_user))
    assert response.status_code == 403


def test_adapt_endpoint_free_plan(client, candidate_user):
    response = client.post(
        "/cv/adapt",
        json={"job_offer": JOB_OFFER, "cv_text": "Léa Martin, Python"},
        headers=auth_headers(candidate_user),
    )
    assert response.status_code == 403


def test_parse_pdf_endpoint(client, candidate_user):
    text = "Léa Martin, développeuse Python. Trois ans d'expérience sur FastAPI et PostgreSQL."
    with patch("app.services.cv_tools_service.read_pdf", return_value=(text, 1)):
        response = client.post(
            "/cv/parse-pdf",
            files={"file": ("cv.pdf", PDF_BYTES, "application/pdf")},
            headers=auth_headers(candidate_user),
        )

    assert response.status_code == 200
    assert response.json()["pages"] == 1
