"""
Entitlement enforcement helpers for routes.

Refusals are HTTP 403 with a structured detail:

    {"error": "limit_reached", "feature": ..., "plan": ..., "limit": ..., "used": ..., "message": ...}
"""
import logging
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, require_company
from app.db.models.user import User
from app.services.entitlement_service import EntitlementResult, can_create_job, can_use_ai_analysis

logger = logging.getLogger(__name__)


def limit_reached(result: EntitlementResult) -> HTTPException:
    """HTTPException for a refused entitlement check."""
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=result.to_error_detail(),
    )


def require_job_slot(
    user: User = Depends(require_company),
    db: Session = Depends(get_db)
) -> User:
    """Company user who may still create a job offer."""
    result = can_create_job(db, user)
    if not result.allowed:
        logger.info(f"Job creation refused: user_id={user.id}, used={result.used}, limit={result.limit}")
        raise limit_reached(result)
    return user


def require_ai_quota(
    user: User = Depends(require_company),
    db: Session = Depends(get_db)
) -> User:
    """Company user with AI analyses left this month."""
    result = can_use_ai_analysis(db, user)
    if not result.allowed:
        logger.info(f"AI analysis refused: user_id={user.id}, used={result.used}, limit={result.limit}")
        raise limit_reached(result)
    return user
