"""
Tests for public pricing and time-boxed promotions.
"""
from datetime import datetime

import pytest

from app.db.models.pricing_promotion import PricingPromotion
from app.services.pricing_service import (
    create_promotion,
    toggle_promotion,
    get_plan_price,
    get_public_pricing,
)


def test_catalog_price_without_promotion(db):
    price = get_plan_price(db, "COMPANY_BUSINESS")
    assert price["price"] == 79
    assert price["original_price"] == 79
    assert price["has_promotion"] is False


def test_promotion_discounts_price(db, admin_user):
    create_promotion(db, admin_user, "COMPANY_BUSINESS", 25, label="Lancement")

    price = get_plan_price(db, "COMPANY_BUSINESS")

    assert price["price"] == 59.25
    assert price["original_price"] == 79
    assert price["discount"] == 25
    assert price["promotion_label"] == "Lancement"


def test_new_promotion_deactivates_previous(db, admin_user):
    first = create_promotion(db, admin_user, "COMPANY_BUSINESS", 10)
    second = create_promotion(db, admin_user, "COMPANY_BUSINESS", 30)
    other_plan = create_promotion(db, admin_user, "COMPANY_ENTERPRISE", 15)

    db.expire_all()
    assert db.get(PricingPromotion, first.id).active is False
    assert db.get(PricingPromotion, second.id).active is True
    assert db.get(PricingPromotion, other_plan.id).active is True
    assert get_plan_price(db, "COMPANY_BUSINESS")["discount"] == 30


def test_reactivating_promotion_deactivates_current(db, admin_user):
    first = create_promotion(db, admin_user, "COMPANY_BUSINESS", 10)
    second = create_promotion(db, admin_user, "COMPANY_BUSINESS", 30)

    toggle_promotion(db, db.get(PricingPromotion, first.id))

    db.expire_all()
    assert db.get(PricingPromotion, first.id).active is True
    assert db.get(PricingPromotion, second.id).active is False


def test_promotion_outside_window_is_ignored(db, admin_user):
    create_promotion(
        db, admin_user, "COMPANY_ENTERPRISE", 20,
        valid_from=datetime(2026, 6, 1), valid_until=datetime(2026, 6, 30),
    )

    before = get_plan_price(db, "COMPANY_ENTERPRISE", now=datetime(2026, 5, 31))
    during = get_plan_price(db, "COMPANY_ENTERPRISE", now=datetime(2026, 6, 15))

    assert before["has_promotion"] is False
    assert during["price"] == 239.2


def test_invalid_promotion_is_rejected(db, admin_user):
    with pytest.raises(ValueError):
        create_promotion(db, admin_user, "UNKNOWN_PLAN", 10)
    with pytest.raises(ValueError):
        create_promotion(
            db, admin_user, "COMPANY_BUSINESS", 10,
            valid_from=datetime(2026, 6, 30), valid_until=datetime(2026, 6, 1),
        )


def test_free_plans_never_discounted(db, admin_user):
    create_promotion(db, admin_user, "COMPANY_FREE", 50)
    assert get_plan_price(db, "COMPANY_FREE")["price"] == 0


def test_public_pricing_endpoint(client):
    response = client.get("/pricing")

    assert response.status_code == 200
    plans = {entry["plan"] for entry in response.json()["pricing"]}
    assert {"COMPANY_FREE", "COMPANY_BUSINESS", "COMPANY_ENTERPRISE", "CANDIDATE_PREMIUM"} <= plans
    assert client.get("/pricing/UNKNOWN").status_code == 404


def test_public_pricing_lists_whole_catalog(db):
    assert len(get_public_pricing(db)) == 5
