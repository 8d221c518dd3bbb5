"""
Application model: one candidacy on a job offer.

Applicants are either a registered Candidate or a guest identified only by
the contact fields. The CV PDF is stored inline and deferred on load.
"""
import enum

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index, Enum, LargeBinary
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship, deferred
from app.db.base import Base


class ApplicationStatus(str, enum.Enum):
    PENDING = "PENDING"
    ANALYZING = "ANALYZING"
    ANALYZED = "ANALYZED"
    SHORTLISTED = "SHORTLISTED"
    REJECTED = "REJECTED"
    CONTACTED = "CONTACTED"


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    job_offer_id = Column(Integer, ForeignKey("job_offers.id", ondelete="CASCADE"), nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id", ondelete="SET NULL"), nullable=True, index=True)

    # Guest contact fields (used when candidate_id is null)
    guest_first_name = Column(String, nullable=True)
    guest_last_name = Column(String, nullable=True)
    guest_email = Column(String, nullable=True, index=True)
    guest_phone = Column(String, nullable=True)

    linkedin_url = Column(String, nullable=True)
    motivation_letter = Column(Text, nullable=True)

    # CV
    cv_data = deferred(Column(LargeBinary, nullable=True))
    cv_file_name = Column(String, nullable=True)
    cv_file_size = Column(Integer, nullable=True)
    cv_mime_type = Column(String, nullable=True)

    # GDPR
    consent_given = Column(Boolean, nullable=False, default=False)
    data_retention_until = Column(DateTime(timezone=True), nullable=True)

    status = Column(Enum(ApplicationStatus), nullable=False, default=ApplicationStatus.PENDING, index=True)

    # AI scoring
    ai_score = Column(Integer, nullable=True, index=True)
    ai_analysis = Column(Text, nullable=True)
    ai_processed_at = Column(DateTime(timezone=True), nullable=True)
    ai_error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    job_offer = relationship("JobOffer", back_populates="applications")
    candidate = relationship("Candidate", back_populates="applications")

    __table_args__ = (
        Index("idx_application_job_status", "job_offer_id", "status"),
    )

    @property
    def applicant_name(self) -> str:
        if self.candidate:
            return self.candidate.full_name
        return f"{self.guest_first_name or ''} {self.guest_last_name or ''}".strip()

    @property
    def applicant_email(self):
        if self.candidate and self.candidate.user:
            return self.candidate.user.email
        return self.guest_email

    def __repr__(self):
        return f"<Application(id={self.id}, job_offer_id={self.job_offer_id}, status='{self.status}')>"
