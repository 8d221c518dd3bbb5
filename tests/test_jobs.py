"""
Integration tests for the job offer lifecycle endpoints.
"""
from app.db.models.application import Application, ApplicationStatus
from app.db.models.job_offer import JobOffer, JobStatus

from factories import make_company, make_job, make_user, auth_headers, PDF_BYTES

JOB_PAYLOAD = {
    "title": "Développeur Python",
    "description": "Nous recherchons un développeur Python pour notre équipe plateforme.",
    "requirements": "3 ans d'expérience, FastAPI, PostgreSQL",
    "location": "Paris",
    "job_type": "FULL_TIME",
    "salary_range": "45-55k",
}


def _add_application(db, job):
    application = Application(
        job_offer_id=job.id,
        guest_first_name="Paul",
        guest_last_name="Durand",
        guest_email="paul@example.com",
        cv_data=PDF_BYTES,
        cv_file_name="cv.pdf",
        consent_given=True,
        status=ApplicationStatus.PENDING,
    )
    db.add(application)
    db.commit()
    return application


def test_create_job_starts_as_draft(client, company_user):
    response = client.post("/jobs", json=JOB_PAYLOAD, headers=auth_headers(company_user))

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "DRAFT"
    assert data["published_at"] is None
    assert data["application_count"] == 0
    assert len(data["public_id"]) == 12


def test_sixth_job_returns_limit_reached(client, db, company_user):
    for i in range(5):
        make_job(db, company_user, status=JobStatus.DRAFT, title=f"Offre {i}")

    response = client.post("/jobs", json=JOB_PAYLOAD, headers=auth_headers(company_user))

    assert response.status_code == 403
    detail = response.json()["detail"]
    assert detail["error"] == "limit_reached"
    assert detail["feature"] == "jobs"
    assert detail["limit"] == 5
    assert detail["used"] == 5
    assert db.query(JobOffer).count() == 5


def test_candidate_cannot_create_job(client, candidate_user):
    response = client.post("/jobs", json=JOB_PAYLOAD, headers=auth_headers(candidate_user))
    assert response.status_code == 403


def test_publish_then_close(client, company_user):
    headers = auth_headers(company_user)
    job_id = client.post("/jobs", json=JOB_PAYLOAD, headers=headers).json()["id"]

    published = client.post(f"/jobs/{job_id}/publish", headers=headers)
    assert published.status_code == 200
    assert published.json()["status"] == "PUBLISHED"
    assert published.json()["published_at"] is not None

    closed = client.post(f"/jobs/{job_id}/close", headers=headers)
    assert closed.status_code == 200
    assert closed.json()["status"] == "CLOSED"


def test_published_job_cannot_be_published_again(client, db, company_user):
    job = make_job(db, company_user)
    response = client.post(f"/jobs/{job.id}/publish", headers=auth_headers(company_user))
    assert response.status_code == 409


def test_draft_cannot_be_closed(client, db, company_user):
    job = make_job(db, company_user, status=JobStatus.DRAFT)
    response = client.post(f"/jobs/{job.id}/close", headers=auth_headers(company_user))
    assert response.status_code == 409


def test_published_job_only_accepts_description_and_salary(client, db, company_user):
    job = make_job(db, company_user)
    headers = auth_headers(company_user)

    refused = client.put(f"/jobs/{job.id}", json={"title": "Autre titre"}, headers=headers)
    assert refused.status_code == 409

    accepted = client.put(f"/jobs/{job.id}", json={"salary_range": "50-60k"}, headers=headers)
    assert accepted.status_code == 200
    assert accepted.json()["salary_range"] == "50-60k"
    assert accepted.json()["title"] == "Développeur Python"


def test_closed_job_cannot_be_edited(client, db, company_user):
    job = make_job(db, company_user, status=JobStatus.CLOSED)
    response = client.put(f"/jobs/{job.id}", json={"salary_range": "50-60k"}, headers=auth_headers(company_user))
    assert response.status_code == 409


def test_delete_draft_without_applications(client, db, company_user):
    job_id = make_job(db, company_user, status=JobStatus.DRAFT).id

    response = client.delete(f"/jobs/{job_id}", headers=auth_headers(company_user))

    assert response.status_code == 204
    db.expire_all()
    assert db.query(JobOffer).filter(JobOffer.id == job_id).first() is None


def test_published_job_cannot_be_deleted(client, db, company_user):
    job = make_job(db, company_user)
    response = client.delete(f"/jobs/{job.id}", headers=auth_headers(company_user))
    assert response.status_code == 409


def test_draft_with_applications_cannot_be_deleted(client, db, company_user):
    job = make_job(db, company_user, status=JobStatus.DRAFT)
    _add_application(db, job)

    response = client.delete(f"/jobs/{job.id}", headers=auth_headers(company_user))

    assert response.status_code == 409


def test_other_company_cannot_see_job(client, db, company_user):
    other = make_company(db, email="rh@globex.fr", name="Globex")
    job = make_job(db, company_user)

    response = client.get(f"/jobs/{job.id}", headers=auth_headers(other))

    assert response.status_code == 403


def test_list_jobs_counts_applications(client, db, company_user):
    job = make_job(db, company_user)
    make_job(db, company_user, status=JobStatus.DRAFT, title="Brouillon")
    _add_application(db, job)

    response = client.get("/jobs", params={"status": "PUBLISHED"}, headers=auth_headers(company_user))

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["jobs"][0]["application_count"] == 1


def test_public_board_lists_only_published(client, db, company_user):
    make_job(db, company_user, title="Offre publiée")
    make_job(db, company_user, status=JobStatus.DRAFT, title="Brouillon")
    make_job(db, company_user, status=JobStatus.CLOSED, title="Fermée")

    response = client.get("/jobs/public")

    assert response.status_code == 200
    titles = [job["title"] for job in response.json()["jobs"]]
    assert titles == ["Offre publiée"]
    assert response.json()["jobs"][0]["company_name"] == "Acme"


def test_public_job_detail_hides_drafts(client, db, company_user):
    draft = make_job(db, company_user, status=JobStatus.DRAFT)
    response = client.get(f"/jobs/public/{draft.public_id}")
    assert response.status_code == 404


def test_suspended_user_is_refused(client, db):
    user = make_user(db, "suspendu@acme.fr")
    user.suspended = True
    db.commit()

    response = client.get("/jobs", headers=auth_headers(user))

    assert response.status_code == 403
