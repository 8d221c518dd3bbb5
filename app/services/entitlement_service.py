"""
Entitlement service: plan limits, usage counters and monthly resets.

Every gated action (create job, run AI analysis, accept application) asks
one of the can_* checks first. Checks return an EntitlementResult rather
than raising, so routes decide how to surface a refusal.

The AI usage counter is reset lazily: the first check performed in a new
calendar month zeroes it before comparing against the limit.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Any

from sqlalchemy.orm import Session

from app.core.clock import utcnow, to_naive_utc
from app.core.plan_limits import get_plan, get_plan_limits, default_plan_for, is_known_plan
from app.db.models.user import User
from app.db.models.subscription import Subscription
from app.db.models.job_offer import JobOffer, JobStatus
from app.db.models.application import Application

logger = logging.getLogger(__name__)

ACTIVE_JOB_STATUSES = (JobStatus.DRAFT, JobStatus.PUBLISHED)


@dataclass
class EntitlementResult:
    """Outcome of an entitlement check."""
    allowed: bool
    feature: str
    plan: str
    used: int = 0
    limit: Optional[int] = None
    reason: Optional[str] = None

    @property
    def remaining(self) -> Optional[int]:
        if self.limit is None:
            return None
        return max(0, self.limit - self.used)

    def to_error_detail(self) -> Dict[str, Any]:
        """Structured payload for a refused action."""
        return {
            "error": "limit_reached",
            "feature": self.feature,
            "plan": self.plan,
            "limit": self.limit,
            "used": self.used,
            "message": self.reason,
        }


def month_key(date: Optional[datetime] = None) -> str:
    """Month key string in YYYY-MM format."""
    return (date or utcnow()).strftime("%Y-%m")


def apply_plan_limits(subscription: Subscription, plan: str) -> None:
    """Copy the catalog limits of `plan` onto the subscription."""
    limits = get_plan_limits(plan)
    subscription.plan = plan
    subscription.max_jobs = limits["max_jobs"]
    subscription.max_apps_per_job = limits["max_apps_per_job"]
    subscription.max_ai_analyses_month = limits["max_ai_analyses_month"]


def get_subscription(db: Session, user_id: int, for_update: bool = False) -> Optional[Subscription]:
    query = db.query(Subscription).filter(Subscription.user_id == user_id)
    if for_update:
        # Serializes check-then-act sequences on PostgreSQL; a no-op on SQLite
        query = query.with_for_update()
    return query.first()


def get_or_create_subscription(db: Session, user: User, for_update: bool = False) -> Subscription:
    """
    Get the user's subscription, creating the user-type default plan if none exists.

    Args:
        db: Database session
        user: Owner of the subscription
        for_update: Lock the row for the rest of the transaction

    Returns:
        Subscription row
    """
    subscription = get_subscription(db, user.id, for_update=for_update)
    if subscription:
        return subscription

    plan = default_plan_for(user.user_type)
    subscription = Subscription(
        user_id=user.id,
        status="ACTIVE",
        ai_analyses_used=0,
        ai_usage_reset_at=utcnow(),
    )
    apply_plan_limits(subscription, plan)
    db.add(subscription)
    db.commit()
    db.refresh(subscription)

    logger.info(f"Subscription created: user_id={user.id}, plan={plan}")
    return subscription


def change_plan(db: Session, user: User, plan: str) -> Subscription:
    """
    Switch a user to another catalog plan.

    Usage counters are kept; only the limits change.

    Raises:
        ValueError: If the plan id is unknown
    """
    if not is_known_plan(plan):
        raise ValueError(f"Unknown plan: {plan}")

    subscription = get_or_create_subscription(db, user)
    previous = subscription.plan
    apply_plan_limits(subscription, plan)
    subscription.status = "ACTIVE"
    db.commit()
    db.refresh(subscription)

    logger.info(f"Plan changed: user_id={user.id}, from={previous}, to={plan}")
    return subscription


def _month_changed(last_reset: Optional[datetime], now: datetime) -> bool:
    if last_reset is None:
        return True
    last_reset = to_naive_utc(last_reset)
    return (last_reset.year, last_reset.month) != (now.year, now.month)


def reset_ai_usage_if_needed(db: Session, subscription: Subscription, now: Optional[datetime] = None) -> bool:
    """
    Zero the AI counter if the last reset happened in an earlier calendar month.

    Returns:
        True if the counter was reset
    """
    now = now or utcnow()
    if not _month_changed(subscription.ai_usage_reset_at, now):
        return False

    previous = subscription.ai_analyses_used
    subscription.ai_analyses_used = 0
    subscription.ai_usage_reset_at = now
    db.commit()
    db.refresh(subscription)

    logger.info(
        f"AI usage reset: user_id={subscription.user_id}, month={month_key(now)}, previous_used={previous}"
    )
    return True


def count_active_jobs(db: Session, company_id: int) -> int:
    return db.query(JobOffer).filter(
        JobOffer.company_id == company_id,
        JobOffer.status.in_(ACTIVE_JOB_STATUSES),
    ).count()


def count_applications(db: Session, job_offer_id: int) -> int:
    return db.query(Application).filter(Application.job_offer_id == job_offer_id).count()


def can_create_job(db: Session, user: User, lock: bool = False) -> EntitlementResult:
    """
    Check whether the user's company may create another job offer.

    DRAFT and PUBLISHED offers count toward max_jobs; closed and archived ones do not.
    """
    subscription = get_or_create_subscription(db, user, for_update=lock)
    if user.company is None:
        return EntitlementResult(
            allowed=False, feature="jobs", plan=subscription.plan,
            reason="A company profile is required to post job offers.",
        )

    used = count_active_jobs(db, user.company.id)
    limit = subscription.max_jobs

    if limit is not None and used >= limit:
        logger.warning(f"Job limit reached: user_id={user.id}, plan={subscription.plan}, limit={limit}, used={used}")
        return EntitlementResult(
            allowed=False, feature="jobs", plan=subscription.plan, used=used, limit=limit,
            reason=f"Job offer limit reached ({used}/{limit}) for your plan. Upgrade to post more offers.",
        )

    return EntitlementResult(allowed=True, feature="jobs", plan=subscription.plan, used=used, limit=limit)


def can_use_ai_analysis(db: Session, user: User, now: Optional[datetime] = None) -> EntitlementResult:
    """Check the monthly AI analysis quota, resetting it first if the month changed."""
    subscription = get_or_create_subscription(db, user)
    reset_ai_usage_if_needed(db, subscription, now)

    used = subscription.ai_analyses_used
    limit = subscription.max_ai_analyses_month

    if limit is not None and used >= limit:
        logger.warning(f"AI limit reached: user_id={user.id}, plan={subscription.plan}, limit={limit}, used={used}")
        return EntitlementResult(
            allowed=False, feature="ai_analyses", plan=subscription.plan, used=used, limit=limit,
            reason=f"Monthly AI analysis limit reached ({used}/{limit}). Upgrade your plan or wait for next month.",
        )

    return EntitlementResult(allowed=True, feature="ai_analyses", plan=subscription.plan, used=used, limit=limit)


def consume_ai_analysis(db: Session, user: User, now: Optional[datetime] = None) -> EntitlementResult:
    """
    Record one AI analysis if the quota allows it.

    The increment is a single conditional UPDATE, so two concurrent requests
    can never push the counter past the limit.
    """
    subscription = get_or_create_subscription(db, user)
    reset_ai_usage_if_needed(db, subscription, now)

    query = db.query(Subscription).filter(Subscription.id == subscription.id)
    if subscription.max_ai_analyses_month is not None:
        query = query.filter(Subscription.ai_analyses_used < Subscription.max_ai_analyses_month)

    updated = query.update(
        {Subscription.ai_analyses_used: Subscription.ai_analyses_used + 1},
        synchronize_session=False,
    )
    db.commit()
    db.refresh(subscription)

    used = subscription.ai_analyses_used
    limit = subscription.max_ai_analyses_month

    if not updated:
        logger.warning(f"AI usage refused at increment: user_id={user.id}, limit={limit}, used={used}")
        return EntitlementResult(
            allowed=False, feature="ai_analyses", plan=subscription.plan, used=used, limit=limit,
            reason=f"Monthly AI analysis limit reached ({used}/{limit}). Upgrade your plan or wait for next month.",
        )

    logger.info(f"AI usage consumed: user_id={user.id}, used={used}/{limit if limit is not None else 'unlimited'}")
    return EntitlementResult(allowed=True, feature="ai_analyses", plan=subscription.plan, used=used, limit=limit)


def refund_ai_analysis(db: Session, user: User) -> None:
    """Give back one analysis consumed by a run that then failed."""
    db.query(Subscription).filter(
        Subscription.user_id == user.id,
        Subscription.ai_analyses_used > 0,
    ).update(
        {Subscription.ai_analyses_used: Subscription.ai_analyses_used - 1},
        synchronize_session=False,
    )
    db.commit()
    logger.info(f"AI usage refunded: user_id={user.id}")


def can_receive_application(db: Session, job_offer: JobOffer, lock: bool = False) -> EntitlementResult:
    """Check the owning company's max_apps_per_job for this offer."""
    owner = job_offer.company.user
    subscription = get_or_create_subscription(db, owner, for_update=lock)

    used = count_applications(db, job_offer.id)
    limit = subscription.max_apps_per_job

    if limit is not None and used >= limit:
        logger.warning(f"Application limit reached: job_id={job_offer.id}, plan={subscription.plan}, limit={limit}")
        return EntitlementResult(
            allowed=False, feature="applications", plan=subscription.plan, used=used, limit=limit,
            reason="This job offer is no longer accepting applications.",
        )

    return EntitlementResult(allowed=True, feature="applications", plan=subscription.plan, used=used, limit=limit)


def _limit_entry(used: int, limit: Optional[int]) -> Dict[str, Any]:
    return {
        "limit": limit,
        "used": used,
        "remaining": None if limit is None else max(0, limit - used),
        "unlimited": limit is None,
    }


def get_usage_summary(db: Session, user: User, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Subscription and usage data for GET /subscription.
    """
    now = now or utcnow()
    subscription = get_or_create_subscription(db, user)
    reset_ai_usage_if_needed(db, subscription, now)
    plan_entry = get_plan(subscription.plan) if is_known_plan(subscription.plan) else {}

    current_jobs = count_active_jobs(db, user.company.id) if user.company else 0

    return {
        "plan": subscription.plan,
        "plan_name": plan_entry.get("display_name", subscription.plan),
        "status": subscription.status,
        "features": plan_entry.get("features", []),
        "month_key": month_key(now),
        "current_period_end": subscription.current_period_end,
        "discount_percent": subscription.discount_percent,
        "discount_amount": subscription.discount_amount,
        "promo_code": subscription.promo_code.code if subscription.promo_code else None,
        "max_apps_per_job": subscription.max_apps_per_job,
        "usage": {
            "jobs": _limit_entry(current_jobs, subscription.max_jobs),
            "ai_analyses": _limit_entry(subscription.ai_analyses_used, subscription.max_ai_analyses_month),
        },
    }
