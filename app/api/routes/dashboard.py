"""
Company dashboard counters.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, require_company
from app.db.models.user import User
from app.schemas.job import DashboardStatsResponse
from app.services.job_service import company_stats

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=DashboardStatsResponse)
def dashboard_stats(
    user: User = Depends(require_company),
    db: Session = Depends(get_db)
):
    """Offers per status, and applications still waiting for review (PENDING or ANALYZING)."""
    return DashboardStatsResponse(**company_stats(db, user.company.id))
