"""
Builders for test data.
"""
from app.core.clock import utcnow
from app.core.security import hash_password, create_access_token
from app.db.models.candidate import Candidate
from app.db.models.company import Company
from app.db.models.job_offer import JobOffer, JobStatus, JobType
from app.db.models.user import User, UserRole, UserType
from app.services.entitlement_service import get_or_create_subscription, change_plan

PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << /Root 1 0 R >>\n%%EOF\n"


def make_user(db, email, user_type=UserType.COMPANY, role=UserRole.USER, plan=None, password="testpass123"):
    user = User(
        email=email,
        name=email.split("@")[0],
        password_hash=hash_password(password),
        user_type=user_type,
        role=role,
        onboarding_completed=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    get_or_create_subscription(db, user)
    if plan:
        change_plan(db, user, plan)
    return user


def make_company(db, email="rh@acme.fr", name="Acme", plan=None):
    user = make_user(db, email, UserType.COMPANY, plan=plan)
    db.add(Company(user_id=user.id, company_name=name, location="Paris", onboarded_at=utcnow()))
    db.commit()
    db.refresh(user)
    return user


def make_candidate(db, email="lea@example.com", first_name="Léa", last_name="Martin"):
    user = make_user(db, email, UserType.CANDIDATE)
    db.add(Candidate(user_id=user.id, first_name=first_name, last_name=last_name, phone="0601020304"))
    db.commit()
    db.refresh(user)
    return user


def make_job(db, company_user, status=JobStatus.PUBLISHED, title="Développeur Python", expires_at=None):
    job = JobOffer(
        company_id=company_user.company.id,
        title=title,
        description="Nous recherchons un développeur Python confirmé.",
        requirements="3 ans d'expérience, FastAPI",
        job_type=JobType.FULL_TIME,
        location="Paris",
        status=status,
        published_at=utcnow() if status == JobStatus.PUBLISHED else None,
        expires_at=expires_at,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}
