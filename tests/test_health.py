from app.core.logging_config import sanitize_log_data, REDACTED


def test_health_reports_database_and_integrations(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["integrations"]["stripe"] is False


def test_root(client):
    assert client.get("/").json() == {"status": "Selectif API running"}


def test_sanitize_log_data_redacts_nested_secrets():
    data = {
        "plan": "COMPANY_BUSINESS",
        "stripe": {"webhook_secret": "whsec_123", "customer": "cus_1"},
        "access_token": "abc",
    }

    sanitized = sanitize_log_data(data)

    assert sanitized["plan"] == "COMPANY_BUSINESS"
    assert sanitized["access_token"] == REDACTED
    assert sanitized["stripe"] == {"webhook_secret": REDACTED, "customer": "cus_1"}
    assert data["access_token"] == "abc"
