"""
Pydantic schemas for application endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from app.db.models.application import ApplicationStatus


class ApplicationResponse(BaseModel):
    id: int
    job_offer_id: int
    job_title: Optional[str] = None
    candidate_id: Optional[int] = None
    applicant_name: str
    applicant_email: Optional[str] = None
    guest_phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    motivation_letter: Optional[str] = None
    cv_file_name: Optional[str] = None
    cv_file_size: Optional[int] = None
    status: ApplicationStatus
    ai_score: Optional[int] = None
    ai_analysis: Optional[str] = None
    ai_processed_at: Optional[datetime] = None
    ai_error: Optional[str] = None
    data_retention_until: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ApplicationListResponse(BaseModel):
    applications: list[ApplicationResponse]
    total: int
    page: int = 1
    page_size: int = 20


class ApplySubmittedResponse(BaseModel):
    id: int
    status: ApplicationStatus
    message: str = "Application submitted"


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus = Field(..., description="SHORTLISTED, REJECTED or CONTACTED")


class CandidateApplicationResponse(BaseModel):
    """An application as the candidate sees it: no AI analysis."""
    id: int
    job_title: str
    company_name: str
    status: ApplicationStatus
    created_at: datetime
