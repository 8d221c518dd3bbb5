import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.sql import func
from app.db.base import Base


class CampaignRecipients(str, enum.Enum):
    ALL = "ALL"
    ALL_CANDIDATES = "ALL_CANDIDATES"
    ALL_COMPANIES = "ALL_COMPANIES"
    FREE_COMPANIES = "FREE_COMPANIES"
    PAID_COMPANIES = "PAID_COMPANIES"
    PREMIUM_CANDIDATES = "PREMIUM_CANDIDATES"
    CUSTOM = "CUSTOM"


class CampaignStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SENDING = "SENDING"
    SENT = "SENT"


class EmailCampaign(Base):
    """Admin-authored bulk email sent to a recipient segment."""
    __tablename__ = "email_campaigns"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    subject = Column(String, nullable=False)
    body = Column(Text, nullable=False)  # HTML

    recipients = Column(Enum(CampaignRecipients), nullable=False)
    custom_recipients = Column(JSON, nullable=True)  # list of emails for CUSTOM

    status = Column(Enum(CampaignStatus), nullable=False, default=CampaignStatus.DRAFT)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    total_sent = Column(Integer, nullable=False, default=0)
    total_failed = Column(Integer, nullable=False, default=0)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
