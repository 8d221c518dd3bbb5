"""
Tests for admin system settings: registrations, maintenance mode and
notification emails.
"""
from unittest.mock import patch

import pytest

from app.db.models.audit_log import AuditLog
from app.db.models.notification import AdminNotification
from app.services import settings_service
from app.services.email_service import EmailResult

from factories import make_job, auth_headers, PDF_BYTES


def test_defaults_when_nothing_stored(client, admin_user):
    response = client.get("/admin/settings", headers=auth_headers(admin_user))

    assert response.status_code == 200
    assert response.json() == {
        "maintenance_mode": False,
        "maintenance_message": None,
        "registrations_open": True,
        "email_notifications": True,
    }


def test_settings_are_admin_only(client, company_user):
    assert client.get("/admin/settings", headers=auth_headers(company_user)).status_code == 403


def test_closing_registrations_blocks_signup(client, db, admin_user):
    response = client.put(
        "/admin/settings",
        json={"key": "registrations_open", "value": False},
        headers=auth_headers(admin_user),
    )
    assert response.json()["registrations_open"] is False

    signup = client.post(
        "/auth/register",
        json={"email": "new@acme.fr", "password": "SecurePass123", "name": "Acme RH", "user_type": "COMPANY"},
    )

    assert signup.status_code == 403
    audit = db.query(AuditLog).filter(AuditLog.action == "UPDATE_SETTING").one()
    assert audit.entity_id == "registrations_open"


def test_unknown_setting_is_refused(db, admin_user):
    with pytest.raises(settings_service.SettingsError):
        settings_service.update_setting(db, admin_user, "dark_mode", True)
    with pytest.raises(settings_service.SettingsError):
        settings_service.update_setting(db, admin_user, "email_notifications", "no")


def test_maintenance_blocks_users_but_not_admins(client, db, admin_user, company_user):
    response = client.post(
        "/admin/settings/maintenance",
        json={"enabled": True, "message": "Migration de la base", "schedule": "dimanche 02:00-04:00"},
        headers=auth_headers(admin_user),
    )
    assert response.json()["maintenance_mode"] is True

    blocked = client.get("/subscription", headers=auth_headers(company_user))
    anonymous = client.get("/jobs/public")
    admin = client.get("/subscription", headers=auth_headers(admin_user))

    assert blocked.status_code == 503
    assert blocked.json()["detail"]["message"] == "Migration de la base"
    assert blocked.json()["detail"]["schedule"] == "dimanche 02:00-04:00"
    assert anonymous.status_code == 503
    assert admin.status_code == 200
    alert = db.query(AdminNotification).one()
    assert alert.type == "SYSTEM"
    assert alert.severity == "WARNING"
    assert db.query(AuditLog).filter(AuditLog.action == "ENABLE_MAINTENANCE").count() == 1


def test_disabling_maintenance_reopens_the_platform(client, db, admin_user, company_user):
    headers = auth_headers(admin_user)
    client.post("/admin/settings/maintenance", json={"enabled": True}, headers=headers)

    response = client.post("/admin/settings/maintenance", json={"enabled": False}, headers=headers)

    assert response.json()["maintenance_message"] is None
    assert client.get("/subscription", headers=auth_headers(company_user)).status_code == 200
    latest = db.query(AdminNotification).order_by(AdminNotification.id.desc()).first()
    assert latest.severity == "INFO"


def test_notification_emails_can_be_switched_off(client, db, admin_user, company_user):
    settings_service.update_setting(db, admin_user, "email_notifications", False)
    job = make_job(db, company_user)

    with patch("app.services.application_service.send_email", return_value=EmailResult(success=True)) as mock_send:
        response = client.post(
            f"/jobs/public/{job.public_id}/apply",
            data={"first_name": "Paul", "last_name": "Durand", "email": "paul@example.com",
                  "phone": "0611223344", "consent_given": "true"},
            files={"cv": ("cv.pdf", PDF_BYTES, "application/pdf")},
        )

    assert response.status_code == 201
    mock_send.assert_not_called()


def test_notification_emails_are_sent_by_default(client, db, company_user):
    job = make_job(db, company_user)

    with patch("app.services.application_service.send_email", return_value=EmailResult(success=True)) as mock_send:
        client.post(
            f"/jobs/public/{job.public_id}/apply",
            data={"first_name": "Paul", "last_name": "Durand", "email": "paul@example.com",
                  "phone": "0611223344", "consent_given": "true"},
            files={"cv": ("cv.pdf", PDF_BYTES, "application/pdf")},
        )

    assert mock_send.call_count == 2
