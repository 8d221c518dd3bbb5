"""
Public pricing with time-boxed promotions applied.
"""
import logging
from datetime import datetime
from typing import Optional, Dict, Any, List

from sqlalchemy.orm import Session

from app.core.clock import utcnow, to_naive_utc
from app.core.plan_limits import PLAN_CATALOG, is_known_plan
from app.db.models.pricing_promotion import PricingPromotion
from app.db.models.user import User

logger = logging.getLogger(__name__)


def _in_window(promotion: PricingPromotion, now: datetime) -> bool:
    valid_from = to_naive_utc(promotion.valid_from)
    valid_until = to_naive_utc(promotion.valid_until)
    if valid_from is not None and now < valid_from:
        return False
    if valid_until is not None and now > valid_until:
        return False
    return True


def get_active_promotion(db: Session, plan: str, now: Optional[datetime] = None) -> Optional[PricingPromotion]:
    """The active promotion for a plan whose validity window contains `now`."""
    now = now or utcnow()
    promotions = db.query(PricingPromotion).filter(
        PricingPromotion.plan == plan,
        PricingPromotion.active.is_(True),
    ).order_by(PricingPromotion.created_at.desc(), PricingPromotion.id.desc()).all()
    for promotion in promotions:
        if _in_window(promotion, now):
            return promotion
    return None


def apply_discount(price: float, discount_percent: float) -> float:
    return round(price * (1 - discount_percent / 100), 2)


def get_plan_price(db: Session, plan: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Price entry for one plan.

    Raises:
        KeyError: If the plan id is unknown
    """
    entry = PLAN_CATALOG[plan]
    base_price = entry["price"]
    price = {
        "plan": plan,
        "name": entry["display_name"],
        "user_type": entry["user_type"],
        "billing_period": entry["billing_period"],
        "price": base_price,
        "original_price": base_price,
        "has_promotion": False,
        "discount": None,
        "promotion_label": None,
        "features": entry["features"],
    }

    promotion = get_active_promotion(db, plan, now) if base_price > 0 else None
    if promotion:
        price.update({
            "price": apply_discount(base_price, promotion.discount_percent),
            "has_promotion": True,
            "discount": promotion.discount_percent,
            "promotion_label": promotion.label,
        })
    return price


def get_public_pricing(db: Session, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    now = now or utcnow()
    return [get_plan_price(db, plan, now) for plan in PLAN_CATALOG]


def create_promotion(
    db: Session,
    admin: User,
    plan: str,
    discount_percent: int,
    label: Optional[str] = None,
    valid_from: Optional[datetime] = None,
    valid_until: Optional[datetime] = None,
) -> PricingPromotion:
    """
    Create an active promotion, deactivating any other active one on the plan.

    Raises:
        ValueError: Unknown plan, discount outside 1..100 or an empty window
    """
    if not is_known_plan(plan):
        raise ValueError(f"Unknown plan: {plan}")
    if not 0 < discount_percent <= 100:
        raise ValueError("Discount must be between 1 and 100 percent")
    valid_from = to_naive_utc(valid_from)
    valid_until = to_naive_utc(valid_until)
    if valid_from and valid_until and valid_until <= valid_from:
        raise ValueError("valid_until must be after valid_from")

    deactivated = db.query(PricingPromotion).filter(
        PricingPromotion.plan == plan,
        PricingPromotion.active.is_(True),
    ).update({PricingPromotion.active: False}, synchronize_session=False)

    promotion = PricingPromotion(
        plan=plan,
        discount_percent=discount_percent,
        label=label,
        valid_from=valid_from,
        valid_until=valid_until,
        active=True,
        created_by=admin.id,
    )
    db.add(promotion)
    db.commit()
    db.refresh(promotion)

    logger.info(
        f"Pricing promotion created: id={promotion.id}, plan={plan}, discount={discount_percent}, "
        f"deactivated={deactivated}"
    )
    return promotion


def toggle_promotion(db: Session, promotion: PricingPromotion) -> PricingPromotion:
    """Flip the active flag. Re-activating deactivates the plan's other promotions."""
    if not promotion.active:
        db.query(PricingPromotion).filter(
            PricingPromotion.plan == promotion.plan,
            PricingPromotion.active.is_(True),
            PricingPromotion.id != promotion.id,
        ).update({PricingPromotion.active: False}, synchronize_session=False)
    promotion.active = not promotion.active
    db.commit()
    db.refresh(promotion)
    logger.info(f"Pricing promotion toggled: id={promotion.id}, active={promotion.active}")
    return promotion


def delete_promotion(db: Session, promotion: PricingPromotion) -> None:
    promotion_id = promotion.id
    db.delete(promotion)
    db.commit()
    logger.info(f"Pricing promotion deleted: id={promotion_id}")
