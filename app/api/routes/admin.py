"""
Admin panel API. Every endpoint requires role ADMIN.

Mutating actions are recorded in the audit log.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, require_admin
from app.core.plan_limits import list_plans
from app.db.models.application import Application
from app.db.models.audit_log import AuditLog
from app.db.models.company import Company
from app.db.models.email_campaign import EmailCampaign
from app.db.models.job_offer import JobOffer, JobStatus
from app.db.models.notification import AdminNotification
from app.db.models.pricing_promotion import PricingPromotion
from app.db.models.promo_code import PromoCode, PromoCodeRedemption
from app.db.models.subscription import Subscription
from app.db.models.support_ticket import SupportTicket, TicketStatus, TicketCategory
from app.db.models.user import User, UserType
from app.schemas.admin import (
    AdminUserResponse,
    AdminUserListResponse,
    UserActionRequest,
    ActionResponse,
    CampaignCreate,
    CampaignResponse,
    CampaignSendResponse,
    PromoCodeCreate,
    PromoCodeResponse,
    PricingPromotionCreate,
    PricingPromotionResponse,
    AdminJobResponse,
    AuditLogResponse,
    AdminNotificationResponse,
    SystemSettingsResponse,
    SettingUpdate,
    MaintenanceRequest,
)
from app.schemas.support import TicketResponse, TicketUpdate
from app.services import admin_service, campaign_service, pricing_service, settings_service, support_service
from app.services.application_service import purge_expired_applications
from app.services.audit_service import record_audit
from app.services.campaign_service import CampaignError
from app.services.job_service import archive_job, JobStateError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


def _get_or_404(db: Session, model, object_id: int, label: str):
    obj = db.query(model).filter(model.id == object_id).first()
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return obj


def to_admin_user(user: User) -> AdminUserResponse:
    subscription = user.subscription
    return AdminUserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        user_type=user.user_type,
        onboarding_completed=user.onboarding_completed,
        suspended=user.suspended,
        suspended_at=user.suspended_at,
        suspension_reason=user.suspension_reason,
        plan=subscription.plan if subscription else None,
        ai_analyses_used=subscription.ai_analyses_used if subscription else None,
        company_name=user.company.company_name if user.company else None,
        created_at=user.created_at,
    )


# ============================================
# Users
# ============================================

@router.get("/users", response_model=AdminUserListResponse)
def list_users(
    search: Optional[str] = Query(None, description="Search in email and name"),
    user_type: Optional[UserType] = Query(None),
    plan: Optional[str] = Query(None),
    suspended: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    query = db.query(User)
    if search:
        term = f"%{search}%"
        query = query.filter(or_(User.email.ilike(term), User.name.ilike(term)))
    if user_type:
        query = query.filter(User.user_type == user_type)
    if plan:
        query = query.join(Subscription, Subscription.user_id == User.id).filter(Subscription.plan == plan)
    if suspended is not None:
        query = query.filter(User.suspended.is_(suspended))

    total = query.count()
    users = query.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * page_size).limit(page_size).all()

    return AdminUserListResponse(
        users=[to_admin_user(u) for u in users],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("/users/{user_id}/actions", response_model=ActionResponse)
def user_action(
    user_id: int,
    payload: UserActionRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Apply changePlan, suspend, unsuspend or delete to a user."""
    target = _get_or_404(db, User, user_id, "User")

    try:
        if payload.action == "changePlan":
            admin_service.change_user_plan(db, admin, target, payload.new_plan)
            message = f"Plan changed to {payload.new_plan}"
        elif payload.action == "suspend":
            admin_service.suspend_user(db, admin, target, payload.reason)
            message = "User suspended"
        elif payload.action == "unsuspend":
            admin_service.unsuspend_user(db, admin, target)
            message = "User reactivated"
        else:
            admin_service.delete_user(db, admin, target, payload.reason)
            message = "User deleted"
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return ActionResponse(message=message)


@router.get("/export/users")
def export_users(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    content = admin_service.export_users_csv(db)
    record_audit(db, admin.id, "EXPORT_USERS", "USER")
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="selectif-users.csv"'},
    )


# ============================================
# Campaigns
# ============================================

@router.get("/campaigns", response_model=list[CampaignResponse])
def list_campaigns(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    campaigns = db.query(EmailCampaign).order_by(EmailCampaign.created_at.desc(), EmailCampaign.id.desc()).all()
    return [CampaignResponse.model_validate(c) for c in campaigns]


@router.post("/campaigns", status_code=status.HTTP_201_CREATED, response_model=CampaignResponse)
def create_campaign(
    payload: CampaignCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        campaign = campaign_service.create_campaign(
            db,
            admin,
            title=payload.title,
            subject=payload.subject,
            body=payload.body,
            recipients=payload.recipients,
            custom_recipients=[str(e) for e in payload.custom_recipients] if payload.custom_recipients else None,
        )
    except CampaignError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    record_audit(db, admin.id, "CREATE_CAMPAIGN", "CAMPAIGN", campaign.id,
                 {"title": campaign.title, "recipients": campaign.recipients.value})
    return CampaignResponse.model_validate(campaign)


@router.post("/campaigns/{campaign_id}/send", response_model=CampaignSendResponse)
def send_campaign(
    campaign_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Send a DRAFT campaign now.

    Runs inside the request with a pause between recipients, so large
    segments take a while.
    """
    campaign = _get_or_404(db, EmailCampaign, campaign_id, "Campaign")
    try:
        result = campaign_service.send_campaign(db, campaign)
    except CampaignError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    record_audit(db, admin.id, "SEND_CAMPAIGN", "CAMPAIGN", campaign.id, {
        "sent_count": result.sent,
        "failed_count": result.failed,
        "total_recipients": result.total_recipients,
    })
    return CampaignSendResponse(
        message=f"Campaign sent to {result.sent} recipient(s)",
        sent_count=result.sent,
        failed_count=result.failed,
        total_recipients=result.total_recipients,
    )


@router.delete("/campaigns/{campaign_id}", response_model=ActionResponse)
def delete_campaign(
    campaign_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    campaign = _get_or_404(db, EmailCampaign, campaign_id, "Campaign")
    try:
        campaign_service.delete_campaign(db, campaign)
    except CampaignError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    record_audit(db, admin.id, "DELETE_CAMPAIGN", "CAMPAIGN", campaign_id)
    return ActionResponse(message="Campaign deleted")


# ============================================
# Promo codes
# ============================================

@router.get("/promo-codes", response_model=list[PromoCodeResponse])
def list_promo_codes(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    codes = db.query(PromoCode).order_by(PromoCode.created_at.desc(), PromoCode.id.desc()).all()
    return [PromoCodeResponse.model_validate(c) for c in codes]


@router.post("/promo-codes", status_code=status.HTTP_201_CREATED, response_model=PromoCodeResponse)
def create_promo_code(
    payload: PromoCodeCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    if db.query(PromoCode).filter(PromoCode.code == payload.code).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This promo code already exists")

    promo = PromoCode(
        code=payload.code,
        type=payload.type,
        value=payload.value,
        applicable_to=payload.applicable_to,
        max_uses=payload.max_uses,
        expires_at=payload.expires_at,
        description=payload.description,
        active=True,
        current_uses=0,
        created_by=admin.id,
    )
    db.add(promo)
    db.commit()
    db.refresh(promo)

    record_audit(db, admin.id, "CREATE_PROMO_CODE", "PROMO_CODE", promo.id,
                 {"code": promo.code, "type": promo.type.value, "value": promo.value})
    logger.info(f"Promo code created: code={promo.code}, admin_id={admin.id}")
    return PromoCodeResponse.model_validate(promo)


@router.post("/promo-codes/{promo_id}/toggle", response_model=PromoCodeResponse)
def toggle_promo_code(
    promo_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    promo = _get_or_404(db, PromoCode, promo_id, "Promo code")
    promo.active = not promo.active
    db.commit()
    db.refresh(promo)
    record_audit(db, admin.id, "TOGGLE_PROMO_CODE", "PROMO_CODE", promo.id, {"active": promo.active})
    return PromoCodeResponse.model_validate(promo)


@router.delete("/promo-codes/{promo_id}", response_model=ActionResponse)
def delete_promo_code(
    promo_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    promo = _get_or_404(db, PromoCode, promo_id, "Promo code")
    code = promo.code
    db.query(Subscription).filter(Subscription.promo_code_id == promo.id).update(
        {Subscription.promo_code_id: None}, synchronize_session=False
    )
    db.query(PromoCodeRedemption).filter(PromoCodeRedemption.promo_code_id == promo.id).delete(
        synchronize_session=False
    )
    db.delete(promo)
    db.commit()
    record_audit(db, admin.id, "DELETE_PROMO_CODE", "PROMO_CODE", promo_id, {"code": code})
    return ActionResponse(message="Promo code deleted")


# ============================================
# Pricing promotions and plans
# ============================================

@router.get("/plans")
def plan_catalog(admin: User = Depends(require_admin)):
    return {"plans": list_plans()}


@router.get("/pricing-promotions", response_model=list[PricingPromotionResponse])
def list_pricing_promotions(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    promotions = db.query(PricingPromotion).order_by(PricingPromotion.created_at.desc(), PricingPromotion.id.desc()).all()
    return [PricingPromotionResponse.model_validate(p) for p in promotions]


@router.post("/pricing-promotions", status_code=status.HTTP_201_CREATED, response_model=PricingPromotionResponse)
def create_pricing_promotion(
    payload: PricingPromotionCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create a promotion. Any other active promotion on the same plan is deactivated."""
    try:
        promotion = pricing_service.create_promotion(
            db,
            admin,
            plan=payload.plan,
            discount_percent=payload.discount_percent,
            label=payload.label,
            valid_from=payload.valid_from,
            valid_until=payload.valid_until,
        )
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    record_audit(db, admin.id, "CREATE_PRICING_PROMOTION", "PRICING_PROMOTION", promotion.id,
                 {"plan": promotion.plan, "discount_percent": promotion.discount_percent})
    return PricingPromotionResponse.model_validate(promotion)


@router.post("/pricing-promotions/{promotion_id}/toggle", response_model=PricingPromotionResponse)
def toggle_pricing_promotion(
    promotion_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    promotion = _get_or_404(db, PricingPromotion, promotion_id, "Pricing promotion")
    promotion = pricing_service.toggle_promotion(db, promotion)
    record_audit(db, admin.id, "TOGGLE_PRICING_PROMOTION", "PRICING_PROMOTION", promotion.id,
                 {"active": promotion.active})
    return PricingPromotionResponse.model_validate(promotion)


@router.delete("/pricing-promotions/{promotion_id}", response_model=ActionResponse)
def delete_pricing_promotion(
    promotion_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    promotion = _get_or_404(db, PricingPromotion, promotion_id, "Pricing promotion")
    pricing_service.delete_promotion(db, promotion)
    record_audit(db, admin.id, "DELETE_PRICING_PROMOTION", "PRICING_PROMOTION", promotion_id)
    return ActionResponse(message="Pricing promotion deleted")


# ============================================
# Jobs
# ============================================

@router.get("/jobs", response_model=list[AdminJobResponse])
def list_all_jobs(
    status_filter: Optional[JobStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    counts = db.query(
        Application.job_offer_id.label("job_offer_id"),
        func.count(Application.id).label("application_count"),
    ).group_by(Application.job_offer_id).subquery()

    query = db.query(JobOffer, Company.company_name, func.coalesce(counts.c.application_count, 0)).join(
        Company, Company.id == JobOffer.company_id
    ).outerjoin(counts, counts.c.job_offer_id == JobOffer.id)
    if status_filter:
        query = query.filter(JobOffer.status == status_filter)

    rows = query.order_by(JobOffer.created_at.desc(), JobOffer.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return [
        AdminJobResponse(
            id=job.id,
            public_id=job.public_id,
            title=job.title,
            status=job.status.value,
            company_id=job.company_id,
            company_name=company_name,
            application_count=application_count,
            created_at=job.created_at,
        )
        for job, company_name, application_count in rows
    ]


@router.post("/jobs/{job_id}/archive", response_model=ActionResponse)
def archive_job_offer(
    job_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    job = _get_or_404(db, JobOffer, job_id, "Job offer")
    try:
        archive_job(db, job)
    except JobStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    record_audit(db, admin.id, "ARCHIVE_JOB", "JOB_OFFER", job.id)
    return ActionResponse(message="Job offer archived")


# ============================================
# Stats, logs, support, notifications
# ============================================

@router.get("/stats")
def platform_stats(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return admin_service.get_platform_stats(db)


@router.get("/audit-logs", response_model=list[AuditLogResponse])
def audit_logs(
    action: Optional[str] = Query(None),
    entity: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    query = db.query(AuditLog)
    if action:
        query = query.filter(AuditLog.action == action)
    if entity:
        query = query.filter(AuditLog.entity == entity)
    logs = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
    return [AuditLogResponse.model_validate(entry) for entry in logs]


@router.get("/support/tickets", response_model=list[TicketResponse])
def list_tickets(
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    category: Optional[TicketCategory] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    query = db.query(SupportTicket)
    if status_filter:
        query = query.filter(SupportTicket.status == status_filter)
    if category:
        query = query.filter(SupportTicket.category == category)
    tickets = query.order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc()).all()
    return [TicketResponse.model_validate(t) for t in tickets]


@router.patch("/support/tickets/{ticket_id}", response_model=TicketResponse)
def update_ticket(
    ticket_id: int,
    payload: TicketUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    ticket = _get_or_404(db, SupportTicket, ticket_id, "Ticket")
    ticket = support_service.update_ticket(db, ticket, status=payload.status, admin_response=payload.admin_response)
    record_audit(db, admin.id, "UPDATE_TICKET", "SUPPORT_TICKET", ticket.id, {"status": ticket.status.value})
    return TicketResponse.model_validate(ticket)


@router.get("/notifications", response_model=list[AdminNotificationResponse])
def admin_notifications(
    unread_only: bool = Query(False),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    query = db.query(AdminNotification)
    if unread_only:
        query = query.filter(AdminNotification.read.is_(False))
    notifications = query.order_by(AdminNotification.created_at.desc(), AdminNotification.id.desc()).limit(100).all()
    return [AdminNotificationResponse.model_validate(n) for n in notifications]


@router.post("/notifications/{notification_id}/read", response_model=AdminNotificationResponse)
def read_admin_notification(
    notification_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    notification = _get_or_404(db, AdminNotification, notification_id, "Notification")
    notification.read = True
    db.commit()
    db.refresh(notification)
    return AdminNotificationResponse.model_validate(notification)


@router.post("/maintenance/purge-expired", response_model=ActionResponse)
def purge_expired(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Remove CV files and guest contact data past their retention date."""
    purged = purge_expired_applications(db)
    record_audit(db, admin.id, "PURGE_EXPIRED_APPLICATIONS", "APPLICATION", details={"count": purged})
    return ActionResponse(message=f"{purged} application(s) purged")


# ============================================
# System settings
# ============================================

@router.get("/settings", response_model=SystemSettingsResponse)
def get_system_settings(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return SystemSettingsResponse(**settings_service.get_settings(db))


@router.put("/settings", response_model=SystemSettingsResponse)
def update_system_setting(
    payload: SettingUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        settings = settings_service.update_setting(db, admin, payload.key, payload.value)
    except settings_service.SettingsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return SystemSettingsResponse(**settings)


@router.post("/settings/maintenance", response_model=SystemSettingsResponse)
def set_maintenance_mode(
    payload: MaintenanceRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Turn maintenance mode on or off. Non-admin traffic gets 503 while it is on."""
    settings = settings_service.set_maintenance(db, admin, payload.enabled, payload.message, payload.schedule)
    return SystemSettingsResponse(**settings)
