"""
Database models module.

Imports every model so they are registered on Base.metadata before table
creation or Alembic autogenerate.
"""
from app.db.models.user import User, UserRole, UserType
from app.db.models.company import Company
from app.db.models.candidate import Candidate
from app.db.models.promo_code import PromoCode, PromoType, PromoCodeRedemption
from app.db.models.subscription import Subscription
from app.db.models.job_offer import JobOffer, JobStatus, JobType
from app.db.models.application import Application, ApplicationStatus
from app.db.models.pricing_promotion import PricingPromotion
from app.db.models.email_campaign import EmailCampaign, CampaignRecipients, CampaignStatus
from app.db.models.notification import Notification, AdminNotification
from app.db.models.audit_log import AuditLog
from app.db.models.support_ticket import SupportTicket, TicketCategory, TicketStatus
from app.db.models.system_setting import SystemSetting

__all__ = [
    "User",
    "UserRole",
    "UserType",
    "Company",
    "Candidate",
    "PromoCode",
    "PromoType",
    "PromoCodeRedemption",
    "Subscription",
    "JobOffer",
    "JobStatus",
    "JobType",
    "Application",
    "ApplicationStatus",
    "PricingPromotion",
    "EmailCampaign",
    "CampaignRecipients",
    "CampaignStatus",
    "Notification",
    "AdminNotification",
    "AuditLog",
    "SupportTicket",
    "TicketCategory",
    "TicketStatus",
    "SystemSetting",
]
