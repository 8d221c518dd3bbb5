"""
Pydantic schemas for support tickets and notifications.
"""
from typing import Optional, Any
from datetime import datetime
from pydantic import BaseModel, Field

from app.db.models.support_ticket import TicketCategory, TicketStatus


class TicketCreate(BaseModel):
    category: TicketCategory
    subject: str = Field(..., min_length=5, max_length=200)
    description: str = Field(..., min_length=20, max_length=10000)
    user_agent: Optional[str] = Field(None, max_length=500)
    current_url: Optional[str] = Field(None, max_length=500)


class TicketResponse(BaseModel):
    id: int
    user_id: int
    category: TicketCategory
    subject: str
    description: str
    priority: str
    status: TicketStatus
    admin_response: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TicketUpdate(BaseModel):
    status: Optional[TicketStatus] = None
    admin_response: Optional[str] = Field(None, max_length=10000)


class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: str
    details: Optional[dict[str, Any]] = None
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    unread_count: int
