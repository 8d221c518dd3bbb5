"""
Admin moderation, platform statistics and exports.

Every mutating action writes an AuditLog row in the same transaction.
"""
import csv
import io
import logging
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.plan_limits import PLAN_CATALOG
from app.db.models.application import Application
from app.db.models.job_offer import JobOffer, JobStatus
from app.db.models.subscription import Subscription
from app.db.models.support_ticket import SupportTicket, TicketStatus
from app.db.models.user import User, UserType
from app.services.audit_service import record_audit
from app.services.entitlement_service import change_plan
from app.services.promo_service import apply_stored_discount

logger = logging.getLogger(__name__)


class AdminActionError(ValueError):
    pass


def _guard_self(admin: User, target: User, action: str) -> None:
    if admin.id == target.id:
        raise AdminActionError(f"Admins cannot {action} their own account")


def change_user_plan(db: Session, admin: User, target: User, plan: str) -> Subscription:
    subscription = change_plan(db, target, plan)
    record_audit(db, admin.id, "CHANGE_PLAN", "USER", target.id, {"new_plan": plan})
    return subscription


def suspend_user(db: Session, admin: User, target: User, reason: Optional[str] = None) -> User:
    _guard_self(admin, target, "suspend")
    target.suspended = True
    target.suspended_at = utcnow()
    target.suspension_reason = reason
    record_audit(db, admin.id, "SUSPEND_USER", "USER", target.id, {"reason": reason}, commit=False)
    db.commit()
    db.refresh(target)
    logger.info(f"User suspended: user_id={target.id}, admin_id={admin.id}")
    return target


def unsuspend_user(db: Session, admin: User, target: User) -> User:
    target.suspended = False
    target.suspended_at = None
    target.suspension_reason = None
    record_audit(db, admin.id, "UNSUSPEND_USER", "USER", target.id, commit=False)
    db.commit()
    db.refresh(target)
    logger.info(f"User unsuspended: user_id={target.id}, admin_id={admin.id}")
    return target


def delete_user(db: Session, admin: User, target: User, reason: Optional[str] = None) -> None:
    _guard_self(admin, target, "delete")
    target_id = target.id
    email = target.email
    db.delete(target)
    record_audit(db, admin.id, "DELETE_USER", "USER", target_id, {"email": email, "reason": reason}, commit=False)
    db.commit()
    logger.info(f"User deleted: user_id={target_id}, admin_id={admin.id}")


def monthly_recurring_revenue(db: Session) -> float:
    """Sum of active paid subscriptions at catalog price minus their discounts."""
    paid_plans = [plan for plan, entry in PLAN_CATALOG.items() if entry["price"] > 0]
    subscriptions = db.query(Subscription).filter(
        Subscription.status == "ACTIVE",
        Subscription.plan.in_(paid_plans),
    ).all()

    mrr = 0.0
    for subscription in subscriptions:
        price = PLAN_CATALOG[subscription.plan]["price"]
        mrr += apply_stored_discount(price, subscription.discount_percent, subscription.discount_amount)
    return round(mrr, 2)


def get_platform_stats(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or utcnow()
    last_7_days = now - timedelta(days=7)
    last_30_days = now - timedelta(days=30)
    start_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    total_users = db.query(User).count()
    plan_rows = db.query(Subscription.plan, func.count(Subscription.id)).group_by(Subscription.plan).all()

    return {
        "users": {
            "total": total_users,
            "companies": db.query(User).filter(User.user_type == UserType.COMPANY).count(),
            "candidates": db.query(User).filter(User.user_type == UserType.CANDIDATE).count(),
            "suspended": db.query(User).filter(User.suspended.is_(True)).count(),
            "new_7d": db.query(User).filter(User.created_at >= last_7_days).count(),
            "new_30d": db.query(User).filter(User.created_at >= last_30_days).count(),
        },
        "jobs": {
            "total": db.query(JobOffer).count(),
            "published": db.query(JobOffer).filter(JobOffer.status == JobStatus.PUBLISHED).count(),
            "new_30d": db.query(JobOffer).filter(JobOffer.created_at >= last_30_days).count(),
        },
        "applications": {
            "total": db.query(Application).count(),
            "new_30d": db.query(Application).filter(Application.created_at >= last_30_days).count(),
            "ai_analyses_month": db.query(Application).filter(Application.ai_processed_at >= start_of_month).count(),
        },
        "plan_distribution": {plan: count for plan, count in plan_rows},
        "mrr": monthly_recurring_revenue(db),
        "open_tickets": db.query(SupportTicket).filter(
            SupportTicket.status.in_([TicketStatus.OPEN, TicketStatus.IN_PROGRESS])
        ).count(),
    }


EXPORT_COLUMNS = [
    "id", "email", "name", "user_type", "role", "plan",
    "suspended", "onboarding_completed", "company_name", "created_at",
]


def export_users_csv(db: Session) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(EXPORT_COLUMNS)

    users = db.query(User).order_by(User.id).all()
    for user in users:
        writer.writerow([
            user.id,
            user.email,
            user.name or "",
            user.user_type.value,
            user.role.value,
            user.subscription.plan if user.subscription else "",
            "yes" if user.suspended else "no",
            "yes" if user.onboarding_completed else "no",
            user.company.company_name if user.company else "",
            user.created_at.isoformat() if user.created_at else "",
        ])

    logger.info(f"Users exported: count={len(users)}")
    return output.getvalue()
