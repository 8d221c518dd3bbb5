"""
Pydantic schemas for the admin API.
"""
from typing import Optional, Any, Literal
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from app.db.models.email_campaign import CampaignRecipients, CampaignStatus
from app.db.models.promo_code import PromoType
from app.db.models.user import UserRole, UserType


class AdminUserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    role: UserRole
    user_type: UserType
    onboarding_completed: bool
    suspended: bool
    suspended_at: Optional[datetime] = None
    suspension_reason: Optional[str] = None
    plan: Optional[str] = None
    ai_analyses_used: Optional[int] = None
    company_name: Optional[str] = None
    created_at: datetime


class AdminUserListResponse(BaseModel):
    users: list[AdminUserResponse]
    total: int
    page: int
    page_size: int


class UserActionRequest(BaseModel):
    """Moderation action on one user."""
    action: Literal["changePlan", "suspend", "unsuspend", "delete"]
    new_plan: Optional[str] = None
    reason: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def require_plan_for_change(self):
        if self.action == "changePlan" and not self.new_plan:
            raise ValueError("new_plan is required for changePlan")
        return self


class ActionResponse(BaseModel):
    success: bool = True
    message: str


class CampaignCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    subject: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1, description="HTML body")
    recipients: CampaignRecipients
    custom_recipients: Optional[list[EmailStr]] = None


class CampaignResponse(BaseModel):
    id: int
    title: str
    subject: str
    body: str
    recipients: CampaignRecipients
    custom_recipients: Optional[list[str]] = None
    status: CampaignStatus
    sent_at: Optional[datetime] = None
    total_sent: int
    total_failed: int
    created_at: datetime

    class Config:
        from_attributes = True


class CampaignSendResponse(BaseModel):
    success: bool = True
    message: str
    sent_count: int
    failed_count: int
    total_recipients: int


class PromoCodeCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=50)
    type: PromoType
    value: float = Field(..., gt=0)
    applicable_to: Optional[str] = None
    max_uses: Optional[int] = Field(None, ge=1)
    expires_at: Optional[datetime] = None
    description: Optional[str] = Field(None, max_length=500)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v.replace("_", "").replace("-", "").isalnum():
            raise ValueError("Code may only contain letters, digits, '-' and '_'")
        return v

    @model_validator(mode="after")
    def check_value(self):
        if self.type == PromoType.PERCENTAGE and self.value > 100:
            raise ValueError("A percentage discount cannot exceed 100")
        if self.type == PromoType.FREE_MONTHS and self.value != int(self.value):
            raise ValueError("Free months must be a whole number")
        return self


class PromoCodeResponse(BaseModel):
    id: int
    code: str
    type: PromoType
    value: float
    applicable_to: Optional[str] = None
    max_uses: Optional[int] = None
    current_uses: int
    expires_at: Optional[datetime] = None
    active: bool
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PricingPromotionCreate(BaseModel):
    plan: str
    discount_percent: int = Field(..., ge=1, le=100)
    label: Optional[str] = Field(None, max_length=100)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None


class PricingPromotionResponse(BaseModel):
    id: int
    plan: str
    discount_percent: int
    label: Optional[str] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AdminJobResponse(BaseModel):
    id: int
    public_id: str
    title: str
    status: str
    company_id: int
    company_name: str
    application_count: int
    created_at: datetime


class AuditLogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    entity: str
    entity_id: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AdminNotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: str
    severity: str
    details: Optional[dict[str, Any]] = None
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class SystemSettingsResponse(BaseModel):
    maintenance_mode: bool
    maintenance_message: Optional[dict[str, Any]] = None
    registrations_open: bool
    email_notifications: bool


class SettingUpdate(BaseModel):
    key: Literal["registrations_open", "email_notifications"]
    value: bool


class MaintenanceRequest(BaseModel):
    enabled: bool
    message: Optional[str] = Field(None, max_length=1000)
    schedule: Optional[str] = Field(None, max_length=200, description="Free text, e.g. 'Sunday 02:00-04:00 UTC'")
