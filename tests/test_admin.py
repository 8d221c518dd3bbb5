"""
Tests for the admin API: moderation, promo codes, stats and exports.
"""
from app.db.models.audit_log import AuditLog
from app.db.models.job_offer import JobOffer, JobStatus
from app.db.models.user import User

from factories import make_company, make_candidate, make_job, auth_headers


def test_admin_endpoints_refuse_regular_users(client, company_user):
    response = client.get("/admin/users", headers=auth_headers(company_user))
    assert response.status_code == 403
    assert client.get("/admin/stats").status_code == 401


def test_list_users_with_filters(client, db, admin_user):
    make_company(db, email="rh@acme.fr")
    make_candidate(db)
    headers = auth_headers(admin_user)

    everyone = client.get("/admin/users", headers=headers).json()
    candidates = client.get("/admin/users", params={"user_type": "CANDIDATE"}, headers=headers).json()
    searched = client.get("/admin/users", params={"search": "acme"}, headers=headers).json()

    assert everyone["total"] == 3
    assert [u["email"] for u in candidates["users"]] == ["lea@example.com"]
    assert searched["users"][0]["company_name"] == "Acme"


def test_suspend_blocks_access_then_unsuspend(client, db, admin_user, company_user):
    headers = auth_headers(admin_user)

    suspended = client.post(
        f"/admin/users/{company_user.id}/actions",
        json={"action": "suspend", "reason": "Offres frauduleuses"},
        headers=headers,
    )
    assert suspended.status_code == 200
    assert client.get("/jobs", headers=auth_headers(company_user)).status_code == 403

    client.post(f"/admin/users/{company_user.id}/actions", json={"action": "unsuspend"}, headers=headers)
    assert client.get("/jobs", headers=auth_headers(company_user)).status_code == 200

    actions = [log.action for log in db.query(AuditLog).order_by(AuditLog.id)]
    assert actions == ["SUSPEND_USER", "UNSUSPEND_USER"]


def test_admin_cannot_suspend_self(client, admin_user):
    response = client.post(
        f"/admin/users/{admin_user.id}/actions",
        json={"action": "suspend"},
        headers=auth_headers(admin_user),
    )
    assert response.status_code == 400


def test_change_plan_is_audited(client, db, admin_user, company_user):
    response = client.post(
        f"/admin/users/{company_user.id}/actions",
        json={"action": "changePlan", "new_plan": "COMPANY_ENTERPRISE"},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 200
    log = db.query(AuditLog).one()
    assert log.action == "CHANGE_PLAN"
    assert log.details == {"new_plan": "COMPANY_ENTERPRISE"}

    unknown = client.post(
        f"/admin/users/{company_user.id}/actions",
        json={"action": "changePlan", "new_plan": "GOLD"},
        headers=auth_headers(admin_user),
    )
    assert unknown.status_code == 400


def test_delete_user(client, db, admin_user):
    target = make_candidate(db)
    target_id = target.id

    response = client.post(
        f"/admin/users/{target_id}/actions",
        json={"action": "delete", "reason": "RGPD"},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 200
    db.expire_all()
    assert db.get(User, target_id) is None


def test_promo_code_creation_and_duplicates(client, admin_user):
    headers = auth_headers(admin_user)
    payload = {"code": "printemps", "type": "PERCENTAGE", "value": 15}

    created = client.post("/admin/promo-codes", json=payload, headers=headers)
    duplicate = client.post("/admin/promo-codes", json=payload, headers=headers)
    too_much = client.post("/admin/promo-codes", json={"code": "TROP", "type": "PERCENTAGE", "value": 150}, headers=headers)

    assert created.status_code == 201
    assert created.json()["code"] == "PRINTEMPS"
    assert duplicate.status_code == 409
    assert too_much.status_code == 422


def test_archive_job(client, db, admin_user, company_user):
    job = make_job(db, company_user)

    response = client.post(f"/admin/jobs/{job.id}/archive", headers=auth_headers(admin_user))

    assert response.status_code == 200
    db.expire_all()
    assert db.get(JobOffer, job.id).status == JobStatus.ARCHIVED
    listing = client.get("/admin/jobs", params={"status": "ARCHIVED"}, headers=auth_headers(admin_user)).json()
    assert listing[0]["company_name"] == "Acme"


def test_stats(client, db, admin_user):
    make_company(db, email="paid@globex.fr", name="Globex", plan="COMPANY_BUSINESS")
    make_candidate(db)

    stats = client.get("/admin/stats", headers=auth_headers(admin_user)).json()

    assert stats["users"]["total"] == 3
    assert stats["users"]["companies"] == 2
    assert stats["users"]["candidates"] == 1
    assert stats["plan_distribution"]["COMPANY_BUSINESS"] == 1
    assert stats["mrr"] == 79


def test_export_users_csv(client, db, admin_user):
    make_candidate(db)

    response = client.get("/admin/export/users", headers=auth_headers(admin_user))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("id,email,name")
    assert len(lines) == 3
    assert db.query(AuditLog).filter(AuditLog.action == "EXPORT_USERS").count() == 1
