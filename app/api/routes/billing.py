"""
Stripe checkout and webhook endpoints.
"""
import logging
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_user_obj
from app.db.models.user import User
from app.schemas.billing import CheckoutRequest, CheckoutResponse, WebhookResponse
from app.services import billing_service
from app.services.billing_service import BillingError
from app.services.promo_service import PromoError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["Billing"])


@router.post("/checkout", response_model=CheckoutResponse)
def create_checkout(
    payload: CheckoutRequest,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    """Create a Stripe Checkout session for a paid plan and return its URL."""
    try:
        result = billing_service.create_checkout_session(
            db,
            user,
            payload.plan,
            promo_code=payload.promo_code,
            success_url=payload.success_url,
            cancel_url=payload.cancel_url,
        )
    except PromoError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except BillingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return CheckoutResponse(**result)


@router.post("/webhook", response_model=WebhookResponse)
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(None),
    db: Session = Depends(get_db)
):
    payload = await request.body()

    try:
        event = billing_service.verify_webhook(payload, stripe_signature)
    except BillingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        outcome = billing_service.handle_webhook_event(db, event)
    except Exception as e:
        db.rollback()
        logger.error(f"Webhook handling failed: type={event['type']}, id={event['id']}, error={e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Webhook handling failed")

    return WebhookResponse(status=outcome)
