"""
Shared fixtures: in-memory SQLite database and API client.
"""
import os

# Must be set before app.core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["EMAIL_CAMPAIGN_DELAY_SECONDS"] = "0"
for key in ("RESEND_API_KEY", "STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET", "LLM_API_KEY", "GROQ_API_KEY", "LOG_DIR"):
    os.environ.pop(key, None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.db import models  # noqa: F401  registers every table
from app.db.models.user import UserRole, UserType
from app.core.auth_dependency import get_db
from app.core.rate_limit import reset_rate_limits

from factories import make_user, make_company, make_candidate


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Override get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function", autouse=True)
def setup_db():
    """Create and drop tables for each test."""
    Base.metadata.create_all(bind=test_engine)
    reset_rate_limits()
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db():
    """Database session for arranging and checking state."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def company_user(db):
    return make_company(db)


@pytest.fixture
def candidate_user(db):
    return make_candidate(db)


@pytest.fixture
def admin_user(db):
    return make_user(db, "admin@selectif.fr", UserType.COMPANY, role=UserRole.ADMIN)
