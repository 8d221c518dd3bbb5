"""
Tests for Stripe checkout and webhook handling.

Stripe itself is never called: session creation is patched and webhook
events are passed to the handlers as plain dicts.
"""
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from app.db.models.audit_log import AuditLog
from app.db.models.promo_code import PromoCode, PromoType
from app.db.models.subscription import Subscription
from app.services.billing_service import (
    BillingError,
    create_checkout_session,
    handle_webhook_event,
    quote_plan,
)
from app.services.pricing_service import create_promotion
from app.services.promo_service import PromoError, apply_promo_code

from factories import make_candidate, auth_headers


def _subscription(db, user):
    db.expire_all()
    return db.query(Subscription).filter(Subscription.user_id == user.id).one()


def _checkout_event(user, plan="COMPANY_BUSINESS", promo_code=""):
    return {
        "id": "evt_1",
        "type": "checkout.session.completed",
        "data": {"object": {
            "id": "cs_test_1",
            "customer": "cus_123",
            "metadata": {"user_id": str(user.id), "plan": plan, "promo_code": promo_code},
        }},
    }


def test_quote_applies_promotion_then_promo_code(db, admin_user, company_user):
    create_promotion(db, admin_user, "COMPANY_BUSINESS", 25)
    db.add(PromoCode(code="REMISE", type=PromoType.FIXED_AMOUNT, value=9.25, active=True, current_uses=0))
    db.commit()

    quote = quote_plan(db, company_user, "COMPANY_BUSINESS", "remise")

    assert quote["original_price"] == 79
    assert quote["amount"] == 50.0


def test_quote_applies_discount_from_redeemed_code(db, company_user):
    db.add(PromoCode(code="MOITIE", type=PromoType.PERCENTAGE, value=50, active=True, current_uses=0))
    db.commit()
    apply_promo_code(db, company_user, "MOITIE")

    quote = quote_plan(db, company_user, "COMPANY_BUSINESS")

    assert quote["original_price"] == 79
    assert quote["amount"] == 39.5
    assert quote["promo"] is None


def test_quote_refuses_code_already_redeemed(db, company_user):
    db.add(PromoCode(code="MOITIE", type=PromoType.PERCENTAGE, value=50, active=True, current_uses=0))
    db.commit()
    apply_promo_code(db, company_user, "MOITIE")

    with pytest.raises(PromoError, match="already used"):
        quote_plan(db, company_user, "COMPANY_BUSINESS", "MOITIE")


def test_checkout_charges_stored_discount(db, company_user):
    db.add(PromoCode(code="MOINS10", type=PromoType.FIXED_AMOUNT, value=10, active=True, current_uses=0))
    db.commit()
    apply_promo_code(db, company_user, "MOINS10")
    fake_session = SimpleNamespace(id="cs_test_2", url="https://checkout.stripe.com/c/pay/cs_test_2")

    with patch("app.services.billing_service.STRIPE_SECRET_KEY", "sk_test_123"), \
            patch("app.services.billing_service.stripe.checkout.Session.create", return_value=fake_session) as mock_create:
        create_checkout_session(db, company_user, "COMPANY_BUSINESS")

    assert mock_create.call_args.kwargs["line_items"][0]["price_data"]["unit_amount"] == 6900


def test_quote_rejects_free_and_foreign_plans(db, company_user):
    with pytest.raises(BillingError):
        quote_plan(db, company_user, "COMPANY_FREE")
    with pytest.raises(BillingError):
        quote_plan(db, company_user, "CANDIDATE_PREMIUM")
    with pytest.raises(BillingError):
        quote_plan(db, company_user, "GOLD")


def test_quote_with_unknown_promo_code(db, company_user):
    with pytest.raises(PromoError):
        quote_plan(db, company_user, "COMPANY_BUSINESS", "INCONNU")


def test_checkout_requires_stripe(db, company_user):
    with pytest.raises(BillingError, match="Stripe not configured"):
        create_checkout_session(db, company_user, "COMPANY_BUSINESS")


def test_checkout_sends_inline_price(db, company_user):
    fake_session = SimpleNamespace(id="cs_test_1", url="https://checkout.stripe.com/c/pay/cs_test_1")

    with patch("app.services.billing_service.STRIPE_SECRET_KEY", "sk_test_123"), \
            patch("app.services.billing_service.stripe.checkout.Session.create", return_value=fake_session) as mock_create:
        result = create_checkout_session(db, company_user, "COMPANY_ENTERPRISE")

    assert result == {"url": fake_session.url, "session_id": "cs_test_1"}
    params = mock_create.call_args.kwargs
    assert params["line_items"][0]["price_data"]["unit_amount"] == 29900
    assert params["metadata"] == {"user_id": str(company_user.id), "plan": "COMPANY_ENTERPRISE", "promo_code": ""}
    assert params["customer_email"] == company_user.email
    assert _subscription(db, company_user).stripe_checkout_session_id == "cs_test_1"


def test_checkout_endpoint_without_stripe(client, company_user):
    response = client.post("/billing/checkout", json={"plan": "COMPANY_BUSINESS"}, headers=auth_headers(company_user))
    assert response.status_code == 400


def test_checkout_completed_upgrades_plan(db, company_user):
    outcome = handle_webhook_event(db, _checkout_event(company_user))

    assert outcome == "processed"
    subscription = _subscription(db, company_user)
    assert subscription.plan == "COMPANY_BUSINESS"
    assert subscription.stripe_customer_id == "cus_123"
    assert subscription.current_period_end is not None
    assert db.query(AuditLog).filter(AuditLog.action == "PLAN_PURCHASED").count() == 1


def test_checkout_completed_records_promo_code(db, company_user):
    db.add(PromoCode(code="BIENVENUE20", type=PromoType.PERCENTAGE, value=20, active=True, current_uses=0))
    db.commit()

    handle_webhook_event(db, _checkout_event(company_user, promo_code="BIENVENUE20"))

    assert _subscription(db, company_user).discount_percent == 20


def test_subscription_deleted_reverts_to_free(db, company_user):
    handle_webhook_event(db, _checkout_event(company_user))

    outcome = handle_webhook_event(db, {
        "id": "evt_2",
        "type": "customer.subscription.deleted",
        "data": {"object": {"id": "sub_1", "customer": "cus_123"}},
    })

    assert outcome == "processed"
    subscription = _subscription(db, company_user)
    assert subscription.plan == "COMPANY_FREE"
    assert subscription.current_period_end is None


def test_candidate_premium_checkout_completed(db):
    candidate = make_candidate(db)
    handle_webhook_event(db, _checkout_event(candidate, plan="CANDIDATE_PREMIUM"))
    assert _subscription(db, candidate).plan == "CANDIDATE_PREMIUM"


def test_unknown_event_is_ignored(db):
    event = {"id": "evt_3", "type": "invoice.created", "data": {"object": {}}}
    assert handle_webhook_event(db, event) == "ignored"


def test_webhook_endpoint_without_secret(client):
    response = client.post("/billing/webhook", content=b"{}", headers={"Stripe-Signature": "t=1,v1=abc"})
    assert response.status_code == 400
