import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship, backref
from app.db.base import Base


class TicketCategory(str, enum.Enum):
    BUG = "BUG"
    HELP = "HELP"
    FEATURE = "FEATURE"
    CONTACT = "CONTACT"


class TicketStatus(str, enum.Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class SupportTicket(Base):
    __tablename__ = "support_tickets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    category = Column(Enum(TicketCategory), nullable=False)
    subject = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    priority = Column(String, nullable=False, default="NORMAL")  # NORMAL | HIGH
    status = Column(Enum(TicketStatus), nullable=False, default=TicketStatus.OPEN, index=True)

    user_agent = Column(String, nullable=True)
    current_url = Column(String, nullable=True)
    details = Column(JSON, nullable=True)
    admin_response = Column(Text, nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", backref=backref("support_tickets", cascade="all, delete-orphan"))
