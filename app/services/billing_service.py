"""
Stripe billing: checkout sessions for paid plans and webhook handling.

Prices are computed here (catalog price, then the active pricing promotion,
then the promo code) and sent as inline price_data, so no Stripe Price ids
need to be configured.
"""
import logging
from typing import Optional, Dict, Any

import stripe
from sqlalchemy.orm import Session

from app.core.clock import utcnow, add_months
from app.core.config import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET, BILLING_CURRENCY, FRONTEND_URL
from app.core.plan_limits import PLAN_CATALOG, default_plan_for
from app.db.models.promo_code import PromoType
from app.db.models.subscription import Subscription
from app.db.models.user import User
from app.services.audit_service import record_audit
from app.services.entitlement_service import change_plan, get_or_create_subscription
from app.services.pricing_service import get_plan_price
from app.services.promo_service import (
    validate_promo_code,
    apply_promo_code,
    apply_stored_discount,
    discounted_price,
    has_redeemed,
    PromoError,
)

logger = logging.getLogger(__name__)

if STRIPE_SECRET_KEY:
    stripe.api_key = STRIPE_SECRET_KEY
else:
    logger.warning("STRIPE_SECRET_KEY not configured - Stripe features disabled")


class BillingError(ValueError):
    pass


def quote_plan(db: Session, user: User, plan: str, promo_code: Optional[str] = None) -> Dict[str, Any]:
    """
    Final monthly price for a plan, promotions and discount applied.

    A promo code passed here is priced in directly and redeemed when the
    checkout completes. Without one, the discount stored on the subscription
    by an earlier redemption applies instead.

    Raises:
        BillingError: Unknown, free or other-user-type plan
        PromoError: Invalid promo code, or one this user already redeemed
    """
    entry = PLAN_CATALOG.get(plan)
    if entry is None:
        raise BillingError(f"Unknown plan: {plan}")
    if entry["price"] <= 0:
        raise BillingError("Free plans do not need a checkout")
    if entry["user_type"] != user.user_type.value:
        raise BillingError(f"Plan {plan} is not available for {user.user_type.value} accounts")

    price = get_plan_price(db, plan)
    amount = price["price"]
    promo = validate_promo_code(db, promo_code, plan=plan) if promo_code else None
    if promo is not None:
        if has_redeemed(db, user.id, promo):
            raise PromoError("You have already used this promo code")
        amount = discounted_price(amount, promo)
    else:
        subscription = get_or_create_subscription(db, user)
        amount = apply_stored_discount(amount, subscription.discount_percent, subscription.discount_amount)

    return {
        "plan": plan,
        "name": entry["display_name"],
        "original_price": price["original_price"],
        "amount": amount,
        "promo": promo,
    }


def create_checkout_session(
    db: Session,
    user: User,
    plan: str,
    promo_code: Optional[str] = None,
    success_url: Optional[str] = None,
    cancel_url: Optional[str] = None,
) -> Dict[str, str]:
    """
    Create a Stripe Checkout session for a paid plan.

    Returns:
        Dictionary with 'url' and 'session_id'

    Raises:
        BillingError: Stripe not configured, invalid plan or Stripe failure
        PromoError: Invalid promo code
    """
    if not STRIPE_SECRET_KEY:
        raise BillingError("Stripe not configured - STRIPE_SECRET_KEY required")

    quote = quote_plan(db, user, plan, promo_code)
    promo = quote["promo"]

    success_url = success_url or f"{FRONTEND_URL}/dashboard/settings?upgraded=1"
    cancel_url = cancel_url or f"{FRONTEND_URL}/pricing?cancelled=1"

    subscription = get_or_create_subscription(db, user)
    params: Dict[str, Any] = {
        "mode": "subscription",
        "payment_method_types": ["card"],
        "line_items": [{
            "price_data": {
                "currency": BILLING_CURRENCY,
                "product_data": {"name": f"Selectif {quote['name']}"},
                "unit_amount": int(round(quote["amount"] * 100)),
                "recurring": {"interval": "month"},
            },
            "quantity": 1,
        }],
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": {
            "user_id": str(user.id),
            "plan": plan,
            "promo_code": promo.code if promo else "",
        },
    }
    if subscription.stripe_customer_id:
        params["customer"] = subscription.stripe_customer_id
    else:
        params["customer_email"] = user.email
    if promo is not None and promo.type == PromoType.FREE_MONTHS:
        params["subscription_data"] = {"trial_period_days": int(promo.value) * 30}

    try:
        session = stripe.checkout.Session.create(**params)
    except stripe.StripeError as e:
        logger.error(f"Stripe error creating checkout session: user_id={user.id}, error={e}")
        raise BillingError(f"Failed to create checkout session: {str(e)}")

    subscription.stripe_checkout_session_id = session.id
    db.commit()

    logger.info(f"Created checkout session: user_id={user.id}, plan={plan}, session_id={session.id}")
    return {"url": session.url, "session_id": session.id}


def verify_webhook(request_body: bytes, signature: str):
    """
    Verify and parse a Stripe webhook event.

    Raises:
        BillingError: If the secret is missing or verification fails
    """
    if not STRIPE_WEBHOOK_SECRET:
        raise BillingError("STRIPE_WEBHOOK_SECRET not configured")

    try:
        event = stripe.Webhook.construct_event(request_body, signature, STRIPE_WEBHOOK_SECRET)
    except ValueError as e:
        logger.error(f"Invalid webhook payload: {e}")
        raise BillingError(f"Invalid webhook payload: {e}")
    except stripe.SignatureVerificationError as e:
        logger.error(f"Webhook signature verification failed: {e}")
        raise BillingError(f"Invalid signature: {e}")

    logger.info(f"Verified webhook event: type={event['type']}, id={event['id']}")
    return event


def handle_checkout_completed(db: Session, session: Dict[str, Any]) -> Optional[Subscription]:
    """Activate the purchased plan for the user named in the session metadata."""
    metadata = session.get("metadata") or {}
    user_id = metadata.get("user_id")
    plan = metadata.get("plan")
    if not user_id or not plan:
        logger.warning(f"Checkout session without metadata: session_id={session.get('id')}")
        return None

    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        logger.warning(f"Checkout session for unknown user: user_id={user_id}")
        return None

    subscription = change_plan(db, user, plan)
    subscription.stripe_customer_id = session.get("customer") or subscription.stripe_customer_id
    subscription.stripe_checkout_session_id = session.get("id")
    subscription.current_period_end = add_months(utcnow(), 1)
    db.commit()

    promo_code = metadata.get("promo_code")
    if promo_code:
        try:
            apply_promo_code(db, user, promo_code)
        except PromoError as e:
            logger.warning(f"Promo code not applied after checkout: user_id={user.id}, code={promo_code}, error={e}")

    record_audit(db, user.id, "PLAN_PURCHASED", "SUBSCRIPTION", subscription.id, {"plan": plan})
    db.refresh(subscription)
    return subscription


def handle_subscription_deleted(db: Session, stripe_subscription: Dict[str, Any]) -> Optional[Subscription]:
    """Fall back to the free plan when Stripe ends the subscription."""
    customer_id = stripe_subscription.get("customer")
    subscription = db.query(Subscription).filter(Subscription.stripe_customer_id == customer_id).first()
    if not subscription:
        logger.warning(f"Subscription deleted for unknown customer: customer_id={customer_id}")
        return None

    user = subscription.user
    subscription = change_plan(db, user, default_plan_for(user.user_type))
    subscription.current_period_end = None
    subscription.discount_percent = None
    subscription.discount_amount = None
    db.commit()

    record_audit(db, user.id, "PLAN_CANCELED", "SUBSCRIPTION", subscription.id)
    return subscription


def handle_webhook_event(db: Session, event) -> str:
    """Dispatch a verified event. Returns the handling outcome for logging."""
    event_type = event["type"]
    data = event["data"]["object"]

    if event_type == "checkout.session.completed":
        handle_checkout_completed(db, data)
        return "processed"
    if event_type == "customer.subscription.deleted":
        handle_subscription_deleted(db, data)
        return "processed"

    logger.debug(f"Ignored webhook event: type={event_type}")
    return "ignored"
