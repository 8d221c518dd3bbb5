"""
Subscription, promo code and public pricing endpoints.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_user_obj
from app.core.plan_limits import is_known_plan
from app.db.models.user import User
from app.schemas.billing import (
    SubscriptionResponse,
    PromoCodeRequest,
    PromoValidationResponse,
    PromoApplyResponse,
    PlanPrice,
    PricingResponse,
)
from app.services.entitlement_service import get_usage_summary
from app.services.pricing_service import get_public_pricing, get_plan_price
from app.services.promo_service import validate_promo_code, apply_promo_code, describe_promo, PromoError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Subscription"])


@router.get("/subscription", response_model=SubscriptionResponse)
def get_subscription(
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    """
    Current plan, limits and usage.

    Reading this endpoint in a new calendar month resets the AI counter.
    """
    return SubscriptionResponse(**get_usage_summary(db, user))


@router.post("/subscription/promo", response_model=PromoApplyResponse)
def redeem_promo_code(
    payload: PromoCodeRequest,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    try:
        redemption = apply_promo_code(db, user, payload.code)
    except PromoError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return PromoApplyResponse(
        code=redemption.code,
        type=redemption.type,
        value=redemption.value,
        message=redemption.message,
    )


@router.post("/promo/validate", response_model=PromoValidationResponse)
def validate_promo(payload: PromoCodeRequest, db: Session = Depends(get_db)):
    """Check a code without redeeming it."""
    try:
        promo = validate_promo_code(db, payload.code, plan=payload.plan)
    except PromoError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return PromoValidationResponse(
        valid=True,
        code=promo.code,
        type=promo.type.value,
        value=promo.value,
        message=describe_promo(promo),
    )


@router.get("/pricing", response_model=PricingResponse)
def pricing(db: Session = Depends(get_db)):
    """Catalog prices with any active pricing promotion applied."""
    return PricingResponse(pricing=[PlanPrice(**entry) for entry in get_public_pricing(db)])


@router.get("/pricing/{plan}", response_model=PlanPrice)
def plan_pricing(plan: str, db: Session = Depends(get_db)):
    if not is_known_plan(plan):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
    return PlanPrice(**get_plan_price(db, plan))
