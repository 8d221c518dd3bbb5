"""
Promo code validation and redemption.

Validation checks, in order: existence, active flag, expiry, use count and
plan applicability. Redemption re-validates, refuses a code the user has
redeemed before (one promo_redemptions row per user and code), then bumps
current_uses with a conditional UPDATE so concurrent redemptions cannot go
past max_uses.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.clock import utcnow, to_naive_utc, add_months
from app.db.models.promo_code import PromoCode, PromoType, PromoCodeRedemption
from app.db.models.user import User
from app.services.entitlement_service import get_or_create_subscription

logger = logging.getLogger(__name__)


class PromoError(ValueError):
    """Promo code cannot be used. `status_code` hints the HTTP mapping."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class PromoRedemption:
    code: str
    type: str
    value: float
    message: str


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def describe_promo(promo: PromoCode) -> str:
    if promo.type == PromoType.PERCENTAGE:
        return f"Valid promo code: -{promo.value:g}%"
    if promo.type == PromoType.FIXED_AMOUNT:
        return f"Valid promo code: -{promo.value:g}"
    return f"Valid promo code: {promo.value:g} free month(s)"


def validate_promo_code(
    db: Session,
    code: str,
    plan: Optional[str] = None,
    now: Optional[datetime] = None,
) -> PromoCode:
    """
    Look up a code and check that it can be redeemed right now.

    Raises:
        PromoError: With status 404 for an unknown code, 400 otherwise
    """
    normalized = normalize_code(code)
    if not normalized:
        raise PromoError("Promo code required")

    promo = db.query(PromoCode).filter(PromoCode.code == normalized).first()
    if not promo:
        raise PromoError("Invalid promo code", status_code=404)

    if not promo.active:
        raise PromoError("This promo code is no longer active")

    now = now or utcnow()
    expires_at = to_naive_utc(promo.expires_at)
    if expires_at is not None and now > expires_at:
        raise PromoError("This promo code has expired")

    if promo.max_uses is not None and promo.current_uses >= promo.max_uses:
        raise PromoError("This promo code has reached its usage limit")

    if plan and promo.applicable_to and promo.applicable_to != plan:
        raise PromoError(f"This promo code does not apply to plan {plan}")

    return promo


def discounted_price(price: float, promo: Optional[PromoCode]) -> float:
    """Price after a promo code, never below zero. FREE_MONTHS does not change the price."""
    if promo is None or price <= 0:
        return price
    if promo.type == PromoType.PERCENTAGE:
        price = price * (1 - promo.value / 100)
    elif promo.type == PromoType.FIXED_AMOUNT:
        price = price - promo.value
    return max(0.0, round(price, 2))


def apply_stored_discount(price: float, discount_percent: Optional[float], discount_amount: Optional[float]) -> float:
    """Price after the discount a redeemed code left on the subscription, never below zero."""
    if price <= 0:
        return price
    if discount_percent:
        price = price * (1 - discount_percent / 100)
    elif discount_amount:
        price = price - discount_amount
    return max(0.0, round(price, 2))


def has_redeemed(db: Session, user_id: int, promo: PromoCode) -> bool:
    return db.query(PromoCodeRedemption).filter(
        PromoCodeRedemption.user_id == user_id,
        PromoCodeRedemption.promo_code_id == promo.id,
    ).first() is not None


def _claim_use(db: Session, promo: PromoCode) -> bool:
    """Increment current_uses unless max_uses is already reached."""
    query = db.query(PromoCode).filter(PromoCode.id == promo.id)
    query = query.filter(
        or_(PromoCode.max_uses.is_(None), PromoCode.current_uses < PromoCode.max_uses)
    )
    updated = query.update(
        {PromoCode.current_uses: PromoCode.current_uses + 1},
        synchronize_session=False,
    )
    return bool(updated)


def apply_promo_code(db: Session, user: User, code: str, now: Optional[datetime] = None) -> PromoRedemption:
    """
    Redeem a promo code on the user's subscription.

    PERCENTAGE and FIXED_AMOUNT store the discount on the subscription;
    FREE_MONTHS pushes current_period_end forward.

    Raises:
        PromoError: If the code is invalid, exhausted, expired or already used by this user
    """
    now = now or utcnow()
    subscription = get_or_create_subscription(db, user)
    promo = validate_promo_code(db, code, plan=subscription.plan, now=now)

    if has_redeemed(db, user.id, promo):
        raise PromoError("You have already used this promo code")

    if not _claim_use(db, promo):
        db.rollback()
        raise PromoError("This promo code has reached its usage limit")

    if promo.type == PromoType.PERCENTAGE:
        subscription.discount_percent = promo.value
        subscription.discount_amount = None
        message = f"Promo code applied: -{promo.value:g}% on your subscription"
    elif promo.type == PromoType.FIXED_AMOUNT:
        subscription.discount_amount = promo.value
        subscription.discount_percent = None
        message = f"Promo code applied: -{promo.value:g} on your subscription"
    else:
        months = int(promo.value)
        start = to_naive_utc(subscription.current_period_end)
        if start is None or start < now:
            start = now
        subscription.current_period_end = add_months(start, months)
        message = f"Promo code applied: {months} free month(s)"

    subscription.promo_code_id = promo.id
    db.add(PromoCodeRedemption(user_id=user.id, promo_code_id=promo.id))
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request recorded the same redemption first
        db.rollback()
        raise PromoError("You have already used this promo code")
    db.refresh(promo)

    logger.info(
        f"Promo code redeemed: user_id={user.id}, code={promo.code}, type={promo.type.value}, "
        f"uses={promo.current_uses}/{promo.max_uses}"
    )
    return PromoRedemption(code=promo.code, type=promo.type.value, value=promo.value, message=message)
