"""
Pydantic schemas for subscription, promo code, pricing and billing endpoints.
"""
from typing import Optional, Any
from datetime import datetime
from pydantic import BaseModel, Field


class UsageEntry(BaseModel):
    limit: Optional[int] = None
    used: int
    remaining: Optional[int] = None
    unlimited: bool


class SubscriptionUsage(BaseModel):
    jobs: UsageEntry
    ai_analyses: UsageEntry


class SubscriptionResponse(BaseModel):
    """Current plan, its limits and this month's usage. A null limit means unlimited."""
    plan: str
    plan_name: str
    status: str
    features: list[str] = []
    month_key: str
    current_period_end: Optional[datetime] = None
    discount_percent: Optional[float] = None
    discount_amount: Optional[float] = None
    promo_code: Optional[str] = None
    max_apps_per_job: Optional[int] = None
    usage: SubscriptionUsage

    class Config:
        json_schema_extra = {
            "example": {
                "plan": "COMPANY_FREE",
                "plan_name": "Gratuit Entreprise",
                "status": "ACTIVE",
                "features": ["5 offres d'emploi actives"],
                "month_key": "2026-01",
                "max_apps_per_job": 50,
                "usage": {
                    "jobs": {"limit": 5, "used": 2, "remaining": 3, "unlimited": False},
                    "ai_analyses": {"limit": 10, "used": 4, "remaining": 6, "unlimited": False}
                }
            }
        }


class PromoCodeRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    plan: Optional[str] = Field(None, description="Plan the code will be used on")


class PromoValidationResponse(BaseModel):
    valid: bool
    code: Optional[str] = None
    type: Optional[str] = None
    value: Optional[float] = None
    message: str


class PromoApplyResponse(BaseModel):
    success: bool = True
    code: str
    type: str
    value: float
    message: str


class PlanPrice(BaseModel):
    plan: str
    name: str
    user_type: str
    billing_period: str
    price: float
    original_price: float
    has_promotion: bool
    discount: Optional[int] = None
    promotion_label: Optional[str] = None
    features: list[str] = []


class PricingResponse(BaseModel):
    pricing: list[PlanPrice]


class CheckoutRequest(BaseModel):
    plan: str = Field(..., description="Paid plan id, e.g. COMPANY_BUSINESS")
    promo_code: Optional[str] = Field(None, max_length=50)
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None


class CheckoutResponse(BaseModel):
    url: str
    session_id: str


class WebhookResponse(BaseModel):
    status: str
    detail: Optional[Any] = None
