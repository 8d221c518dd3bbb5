"""
Tests for registration, login, session and onboarding endpoints.
"""
from app.db.models.subscription import Subscription
from app.db.models.user import User

from factories import make_user, auth_headers

COMPANY_PROFILE = {
    "company_name": "Acme",
    "industry": "Logiciel",
    "company_size": "11-50",
    "location": "Lyon",
}


def _register(client, email="rh@acme.fr", user_type="COMPANY", password="testpass123"):
    return client.post("/auth/register", json={
        "email": email,
        "password": password,
        "name": "Acme RH",
        "user_type": user_type,
    })


def _login(client, email, password="testpass123"):
    return client.post("/auth/login", data={"username": email, "password": password})


def test_register_creates_user_and_free_subscription(client, db):
    response = _register(client)

    assert response.status_code == 201
    data = response.json()
    assert data["access_token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["user_type"] == "COMPANY"
    assert data["user"]["onboarding_completed"] is False

    user = db.query(User).filter(User.email == "rh@acme.fr").one()
    subscription = db.query(Subscription).filter(Subscription.user_id == user.id).one()
    assert subscription.plan == "COMPANY_FREE"


def test_candidate_gets_candidate_plan(client, db):
    _register(client, email="lea@example.com", user_type="CANDIDATE")
    user = db.query(User).filter(User.email == "lea@example.com").one()
    assert db.query(Subscription).filter(Subscription.user_id == user.id).one().plan == "CANDIDATE_FREE"


def test_register_duplicate_email(client):
    _register(client)
    response = _register(client, email="RH@acme.fr")
    assert response.status_code == 400


def test_register_short_password(client):
    response = _register(client, password="short")
    assert response.status_code == 422


def test_login_success(client, db):
    make_user(db, "rh@acme.fr")

    response = _login(client, "rh@acme.fr")

    assert response.status_code == 200
    assert response.json()["user"]["email"] == "rh@acme.fr"


def test_login_wrong_password(client, db):
    make_user(db, "rh@acme.fr")
    response = _login(client, "rh@acme.fr", password="wrongpass123")
    assert response.status_code == 401


def test_login_suspended_user(client, db):
    user = make_user(db, "rh@acme.fr")
    user.suspended = True
    db.commit()

    response = _login(client, "rh@acme.fr")

    assert response.status_code == 403
    assert response.json()["detail"] == "Account suspended"


def test_login_is_rate_limited(client, db):
    make_user(db, "rh@acme.fr")
    statuses = [_login(client, "rh@acme.fr", password="wrongpass123").status_code for _ in range(11)]
    assert statuses[:10] == [401] * 10
    assert statuses[10] == 429


def test_invalid_token(client):
    response = client.get("/auth/session", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_onboarding_then_session(client):
    token = _register(client).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    onboarding = client.post("/onboarding/company", json={
        "company_name": "Acme",
        "industry": "Logiciel",
        "company_size": "11-50",
        "location": "Lyon",
        "website": "https://acme.fr",
    }, headers=headers)
    assert onboarding.status_code == 200
    assert onboarding.json()["company_name"] == "Acme"

    session = client.get("/auth/session", headers=headers)
    assert session.status_code == 200
    assert session.json()["plan"] == "COMPANY_FREE"
    assert session.json()["company_id"] == onboarding.json()["id"]
    assert session.json()["user"]["onboarding_completed"] is True


def test_candidate_cannot_onboard_as_company(client, db):
    user = make_user(db, "lea@example.com", user_type="CANDIDATE")
    response = client.post("/onboarding/company", json=COMPANY_PROFILE, headers=auth_headers(user))
    assert response.status_code == 403
