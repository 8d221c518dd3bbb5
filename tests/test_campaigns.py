"""
Tests for admin email campaigns.
"""
from unittest.mock import patch

import pytest

from app.db.models.email_campaign import CampaignRecipients, CampaignStatus
from app.db.models.user import UserType
from app.services.campaign_service import (
    CampaignError,
    create_campaign,
    resolve_recipients,
    send_campaign,
)
from app.services.email_service import EmailResult

from factories import make_company, make_candidate, make_user


def _campaign(db, admin, recipients=CampaignRecipients.ALL_COMPANIES, custom=None):
    return create_campaign(
        db, admin,
        title="Nouveautés de janvier",
        subject="Du nouveau sur Selectif",
        body="<p>Bonjour</p>",
        recipients=recipients,
        custom_recipients=custom,
    )


def test_free_companies_segment(db, admin_user):
    make_company(db, email="free@acme.fr")
    make_company(db, email="paid@globex.fr", name="Globex", plan="COMPANY_BUSINESS")
    make_candidate(db)
    campaign = _campaign(db, admin_user, CampaignRecipients.FREE_COMPANIES)

    recipients = resolve_recipients(db, campaign)

    # The admin account is a company on the free plan too
    assert recipients == ["admin@selectif.fr", "free@acme.fr"]


def test_paid_companies_segment_skips_suspended(db, admin_user):
    make_company(db, email="paid@globex.fr", name="Globex", plan="COMPANY_BUSINESS")
    suspended = make_company(db, email="gone@initech.fr", name="Initech", plan="COMPANY_ENTERPRISE")
    suspended.suspended = True
    db.commit()
    campaign = _campaign(db, admin_user, CampaignRecipients.PAID_COMPANIES)

    assert resolve_recipients(db, campaign) == ["paid@globex.fr"]


def test_custom_segment_deduplicates(db, admin_user):
    campaign = _campaign(
        db, admin_user, CampaignRecipients.CUSTOM,
        custom=["Lea@example.com", "lea@example.com", "paul@example.com"],
    )
    assert resolve_recipients(db, campaign) == ["lea@example.com", "paul@example.com"]


def test_custom_campaign_needs_recipients(db, admin_user):
    with pytest.raises(CampaignError):
        _campaign(db, admin_user, CampaignRecipients.CUSTOM, custom=[])


def test_send_tallies_and_pauses_between_emails(db, admin_user):
    make_candidate(db, email="a@example.com")
    make_candidate(db, email="b@example.com", first_name="Bob")
    make_candidate(db, email="c@example.com", first_name="Chloé")
    campaign = _campaign(db, admin_user, CampaignRecipients.ALL_CANDIDATES)
    sleeps = []

    results = [EmailResult(success=True, id="1"), EmailResult(success=False, error="bounce"), EmailResult(success=True, id="3")]
    with patch("app.services.campaign_service.send_email", side_effect=results) as mock_send:
        result = send_campaign(db, campaign, delay_seconds=0.6, sleep=sleeps.append)

    assert mock_send.call_count == 3
    assert sleeps == [0.6, 0.6]
    assert result.sent == 2
    assert result.failed == 1
    assert result.total_recipients == 3
    assert campaign.status == CampaignStatus.SENT
    assert campaign.total_sent == 2
    assert campaign.total_failed == 1
    assert campaign.sent_at is not None


def test_send_error_still_closes_campaign(db, admin_user):
    make_candidate(db, email="a@example.com")
    make_candidate(db, email="b@example.com", first_name="Bob")
    make_candidate(db, email="c@example.com", first_name="Chloé")
    campaign = _campaign(db, admin_user, CampaignRecipients.ALL_CANDIDATES)

    results = [EmailResult(success=True, id="1"), ConnectionError("resend unreachable")]
    with patch("app.services.campaign_service.send_email", side_effect=results):
        with pytest.raises(ConnectionError):
            send_campaign(db, campaign, sleep=lambda _: None)

    db.expire_all()
    assert campaign.status == CampaignStatus.SENT
    assert campaign.total_sent == 1
    assert campaign.total_failed == 2
    assert campaign.sent_at is not None


def test_sent_campaign_cannot_be_resent(db, admin_user):
    campaign = _campaign(db, admin_user, CampaignRecipients.CUSTOM, custom=["lea@example.com"])
    with patch("app.services.campaign_service.send_email", return_value=EmailResult(success=True)):
        send_campaign(db, campaign, sleep=lambda _: None)

    with pytest.raises(CampaignError):
        send_campaign(db, campaign, sleep=lambda _: None)


def test_all_segment_includes_both_user_types(db, admin_user):
    make_user(db, "cand@example.com", UserType.CANDIDATE)
    campaign = _campaign(db, admin_user, CampaignRecipients.ALL)
    assert set(resolve_recipients(db, campaign)) == {"admin@selectif.fr", "cand@example.com"}
