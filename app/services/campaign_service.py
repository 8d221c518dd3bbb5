"""
Admin email campaigns.

Sending is synchronous and sequential: one provider call per recipient with
a fixed pause between calls to stay under the provider's rate limit.
Failures are counted, not retried.
"""
import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Callable

from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.config import EMAIL_CAMPAIGN_DELAY_SECONDS
from app.core.plan_limits import PAID_COMPANY_PLANS
from app.db.models.email_campaign import EmailCampaign, CampaignRecipients, CampaignStatus
from app.db.models.subscription import Subscription
from app.db.models.user import User, UserType
from app.services.email_service import send_email

logger = logging.getLogger(__name__)


class CampaignError(ValueError):
    pass


@dataclass
class CampaignResult:
    campaign_id: int
    total_recipients: int
    sent: int
    failed: int


def resolve_recipients(db: Session, campaign: EmailCampaign) -> List[str]:
    """Recipient email addresses for the campaign's segment. Suspended users are skipped."""
    segment = campaign.recipients

    if segment == CampaignRecipients.CUSTOM:
        seen = set()
        emails = []
        for email in campaign.custom_recipients or []:
            normalized = (email or "").strip().lower()
            if normalized and normalized not in seen:
                seen.add(normalized)
                emails.append(normalized)
        return emails

    query = db.query(User).filter(User.suspended.is_(False))

    if segment == CampaignRecipients.ALL_CANDIDATES:
        query = query.filter(User.user_type == UserType.CANDIDATE)
    elif segment == CampaignRecipients.ALL_COMPANIES:
        query = query.filter(User.user_type == UserType.COMPANY)
    elif segment == CampaignRecipients.FREE_COMPANIES:
        query = query.outerjoin(Subscription, Subscription.user_id == User.id).filter(
            User.user_type == UserType.COMPANY,
            (Subscription.plan == "COMPANY_FREE") | (Subscription.id.is_(None)),
        )
    elif segment == CampaignRecipients.PAID_COMPANIES:
        query = query.join(Subscription, Subscription.user_id == User.id).filter(
            User.user_type == UserType.COMPANY,
            Subscription.plan.in_(sorted(PAID_COMPANY_PLANS)),
        )
    elif segment == CampaignRecipients.PREMIUM_CANDIDATES:
        query = query.join(Subscription, Subscription.user_id == User.id).filter(
            User.user_type == UserType.CANDIDATE,
            Subscription.plan == "CANDIDATE_PREMIUM",
        )

    return [user.email for user in query.order_by(User.id).all()]


def create_campaign(
    db: Session,
    admin: User,
    title: str,
    subject: str,
    body: str,
    recipients: CampaignRecipients,
    custom_recipients: Optional[List[str]] = None,
) -> EmailCampaign:
    if recipients == CampaignRecipients.CUSTOM and not custom_recipients:
        raise CampaignError("A CUSTOM campaign needs at least one recipient email")

    campaign = EmailCampaign(
        title=title,
        subject=subject,
        body=body,
        recipients=recipients,
        custom_recipients=custom_recipients if recipients == CampaignRecipients.CUSTOM else None,
        status=CampaignStatus.DRAFT,
        created_by=admin.id,
    )
    db.add(campaign)
    db.commit()
    db.refresh(campaign)
    logger.info(f"Campaign created: campaign_id={campaign.id}, recipients={recipients.value}")
    return campaign


def send_campaign(
    db: Session,
    campaign: EmailCampaign,
    delay_seconds: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> CampaignResult:
    """
    Send a DRAFT campaign to its segment and mark it SENT.

    Raises:
        CampaignError: If the campaign was already sent or is being sent
    """
    if campaign.status != CampaignStatus.DRAFT:
        raise CampaignError(f"Campaign is already {campaign.status.value}")

    delay = EMAIL_CAMPAIGN_DELAY_SECONDS if delay_seconds is None else delay_seconds
    recipients = resolve_recipients(db, campaign)

    campaign.status = CampaignStatus.SENDING
    db.commit()

    logger.info(f"Campaign sending: campaign_id={campaign.id}, recipients={len(recipients)}")

    sent = 0
    try:
        for index, email in enumerate(recipients):
            if index > 0 and delay > 0:
                sleep(delay)
            result = send_email(email, campaign.subject, campaign.body)
            if result.success:
                sent += 1
            else:
                logger.warning(f"Campaign email failed: campaign_id={campaign.id}, to={email}, error={result.error}")
    finally:
        # Unreached recipients count as failed
        failed = len(recipients) - sent
        campaign.status = CampaignStatus.SENT
        campaign.sent_at = utcnow()
        campaign.total_sent = sent
        campaign.total_failed = failed
        db.commit()
        db.refresh(campaign)

    logger.info(f"Campaign sent: campaign_id={campaign.id}, sent={sent}, failed={failed}")
    return CampaignResult(campaign_id=campaign.id, total_recipients=len(recipients), sent=sent, failed=failed)


def delete_campaign(db: Session, campaign: EmailCampaign) -> None:
    if campaign.status == CampaignStatus.SENDING:
        raise CampaignError("A campaign cannot be deleted while it is sending")
    campaign_id = campaign.id
    db.delete(campaign)
    db.commit()
    logger.info(f"Campaign deleted: campaign_id={campaign_id}")
