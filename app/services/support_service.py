import logging
from typing import Optional, List

from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.db.models.support_ticket import SupportTicket, TicketCategory, TicketStatus
from app.db.models.user import User
from app.services.notification_service import create_admin_notification

logger = logging.getLogger(__name__)


def priority_for(category: TicketCategory) -> str:
    return "HIGH" if category == TicketCategory.BUG else "NORMAL"


def create_ticket(
    db: Session,
    user: User,
    category: TicketCategory,
    subject: str,
    description: str,
    user_agent: Optional[str] = None,
    current_url: Optional[str] = None,
) -> SupportTicket:
    """Open a ticket and raise an admin notification for it. Bug reports are HIGH priority."""
    priority = priority_for(category)
    ticket = SupportTicket(
        user_id=user.id,
        category=category,
        subject=subject,
        description=description,
        priority=priority,
        status=TicketStatus.OPEN,
        user_agent=user_agent,
        current_url=current_url,
        details={"user_type": user.user_type.value, "user_email": user.email},
    )
    db.add(ticket)
    db.flush()

    create_admin_notification(
        db,
        type="SUPPORT_TICKET",
        title=f"New ticket: {category.value}",
        message=f"{user.email} opened a support ticket: {subject}",
        severity="WARNING" if priority == "HIGH" else "INFO",
        details={"ticket_id": ticket.id, "category": category.value, "user_id": user.id},
        commit=False,
    )
    db.commit()
    db.refresh(ticket)

    logger.info(f"Support ticket created: ticket_id={ticket.id}, user_id={user.id}, priority={priority}")
    return ticket


def list_user_tickets(db: Session, user_id: int) -> List[SupportTicket]:
    return db.query(SupportTicket).filter(
        SupportTicket.user_id == user_id
    ).order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc()).all()


def update_ticket(
    db: Session,
    ticket: SupportTicket,
    status: Optional[TicketStatus] = None,
    admin_response: Optional[str] = None,
) -> SupportTicket:
    if status is not None:
        ticket.status = status
        if status in (TicketStatus.RESOLVED, TicketStatus.CLOSED):
            ticket.resolved_at = ticket.resolved_at or utcnow()
        else:
            ticket.resolved_at = None
    if admin_response is not None:
        ticket.admin_response = admin_response
    db.commit()
    db.refresh(ticket)

    logger.info(f"Support ticket updated: ticket_id={ticket.id}, status={ticket.status.value}")
    return ticket
