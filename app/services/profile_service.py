"""
Company and candidate profiles: first onboarding and later edits share
one save path.
"""
import logging
from typing import Dict, Any

from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.db.models.candidate import Candidate
from app.db.models.company import Company
from app.db.models.user import User

logger = logging.getLogger(__name__)


def save_company_profile(db: Session, user: User, fields: Dict[str, Any]) -> Company:
    """Create or overwrite the user's company profile and mark onboarding done."""
    company = user.company
    created = company is None
    if created:
        company = Company(user_id=user.id, onboarded_at=utcnow())
        db.add(company)

    for field, value in fields.items():
        setattr(company, field, value)
    user.onboarding_completed = True
    db.commit()
    db.refresh(company)

    logger.info(f"Company profile {'created' if created else 'updated'}: user_id={user.id}, company_id={company.id}")
    return company


def save_candidate_profile(db: Session, user: User, fields: Dict[str, Any]) -> Candidate:
    """Create or overwrite the user's candidate profile and mark onboarding done."""
    candidate = user.candidate
    created = candidate is None
    if created:
        candidate = Candidate(user_id=user.id, onboarded_at=utcnow())
        db.add(candidate)

    for field, value in fields.items():
        setattr(candidate, field, value)
    user.onboarding_completed = True
    db.commit()
    db.refresh(candidate)

    logger.info(f"Candidate profile {'created' if created else 'updated'}: user_id={user.id}, candidate_id={candidate.id}")
    return candidate
