"""
JobOffer model: a position posted by a company.

Lifecycle: DRAFT -> PUBLISHED -> CLOSED. ARCHIVED is set by admins only.
Transition rules live in app.services.job_service.
"""
import enum
import uuid

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.db.base import Base


class JobStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    CLOSED = "CLOSED"
    ARCHIVED = "ARCHIVED"


class JobType(str, enum.Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    CONTRACT = "CONTRACT"
    INTERNSHIP = "INTERNSHIP"
    FREELANCE = "FREELANCE"


def _new_public_id() -> str:
    return uuid.uuid4().hex[:12]


class JobOffer(Base):
    __tablename__ = "job_offers"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(32), unique=True, index=True, nullable=False, default=_new_public_id)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False)
    requirements = Column(Text, nullable=False)
    location = Column(String, nullable=True)
    job_type = Column(Enum(JobType), nullable=False)
    salary_range = Column(String, nullable=True)
    interview_slots = Column(Integer, nullable=False, default=5)

    status = Column(Enum(JobStatus), nullable=False, default=JobStatus.DRAFT, index=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    company = relationship("Company", back_populates="job_offers")
    applications = relationship("Application", back_populates="job_offer", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_job_company_status", "company_id", "status"),
    )

    def __repr__(self):
        return f"<JobOffer(id={self.id}, title='{self.title}', status='{self.status}')>"
