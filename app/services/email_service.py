"""
Transactional email through the Resend HTTP API.

send_email() never raises: failures come back as EmailResult(success=False)
so a broken mail provider never fails the request that triggered it.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from app.core.config import RESEND_API_KEY, EMAIL_FROM

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
REQUEST_TIMEOUT_SECONDS = 15

if not RESEND_API_KEY:
    logger.warning("RESEND_API_KEY not configured - emails will not be sent")


@dataclass
class EmailResult:
    success: bool
    id: Optional[str] = None
    error: Optional[str] = None


def send_email(to: str, subject: str, html: str) -> EmailResult:
    """
    Send one HTML email.

    Args:
        to: Recipient address
        subject: Subject line
        html: HTML body

    Returns:
        EmailResult with the provider message id on success
    """
    if not RESEND_API_KEY:
        return EmailResult(success=False, error="Email provider not configured")

    payload = {
        "from": EMAIL_FROM,
        "to": [to],
        "subject": subject,
        "html": html,
    }
    try:
        response = requests.post(
            RESEND_API_URL,
            json=payload,
            headers={
                "Authorization": f"Bearer {RESEND_API_KEY}",
                "Accept": "application/json",
            },
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        logger.error(f"Email request failed: to={to}, error={e}", exc_info=True)
        return EmailResult(success=False, error=str(e))

    if response.status_code >= 400:
        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("message") or response.text[:200]
        logger.error(f"Email rejected: to={to}, status={response.status_code}, error={message}")
        return EmailResult(success=False, error=f"Resend API error ({response.status_code}): {message}")

    try:
        message_id = response.json().get("id")
    except ValueError:
        message_id = None

    logger.info(f"Email sent: to={to}, id={message_id}")
    return EmailResult(success=True, id=message_id)
