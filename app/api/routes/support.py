from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_user_obj
from app.db.models.user import User
from app.schemas.support import TicketCreate, TicketResponse
from app.services import support_service

router = APIRouter(prefix="/support", tags=["Support"])


@router.post("/tickets", status_code=status.HTTP_201_CREATED, response_model=TicketResponse)
def create_ticket(
    payload: TicketCreate,
    request: Request,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    """Open a support ticket. Bug reports are filed as HIGH priority."""
    ticket = support_service.create_ticket(
        db,
        user,
        category=payload.category,
        subject=payload.subject,
        description=payload.description,
        user_agent=payload.user_agent or request.headers.get("user-agent"),
        current_url=payload.current_url,
    )
    return TicketResponse.model_validate(ticket)


@router.get("/tickets", response_model=list[TicketResponse])
def my_tickets(
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    return [TicketResponse.model_validate(t) for t in support_service.list_user_tickets(db, user.id)]
