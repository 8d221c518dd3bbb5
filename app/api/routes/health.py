"""
Liveness and readiness for the deployment platform.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core import config
from app.core.auth_dependency import get_db
from app.core.clock import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


def integration_status() -> dict:
    # Optional services degrade features, not the API itself
    return {
        "stripe": bool(config.STRIPE_SECRET_KEY),
        "stripe_webhook": bool(config.STRIPE_WEBHOOK_SECRET),
        "email": bool(config.RESEND_API_KEY),
        "llm": bool(config.LLM_API_KEY),
    }


@router.get("")
def health_check(db: Session = Depends(get_db)):
    """
    200 with status "healthy", or "degraded" when the database does not answer.
    """
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Health check database failure: error={e}")
        database = "unreachable"

    return {
        "status": "healthy" if database == "connected" else "degraded",
        "timestamp": utcnow().isoformat(),
        "database": database,
        "integrations": integration_status(),
    }
