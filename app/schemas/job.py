"""
Pydantic schemas for job offer endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from app.db.models.job_offer import JobStatus, JobType


class JobOfferCreate(BaseModel):
    """Schema for creating a job offer. New offers always start as DRAFT."""
    title: str = Field(..., min_length=3, max_length=200, description="Job title")
    description: str = Field(..., min_length=20, description="Job description")
    requirements: str = Field(..., min_length=10, description="Candidate requirements")
    location: Optional[str] = Field(None, max_length=200)
    job_type: JobType = Field(..., description="Contract type")
    salary_range: Optional[str] = Field(None, max_length=100)
    interview_slots: int = Field(5, ge=1, le=50, description="Candidates to interview")
    expires_at: Optional[datetime] = Field(None, description="Offer closes for applications after this date")

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Développeur Python",
                "description": "Nous recherchons un développeur Python pour notre équipe plateforme.",
                "requirements": "3 ans d'expérience, FastAPI, PostgreSQL",
                "location": "Paris",
                "job_type": "FULL_TIME",
                "salary_range": "45-55k",
                "interview_slots": 5
            }
        }


class JobOfferUpdate(BaseModel):
    """Partial update. Published offers accept only description and salary_range."""
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, min_length=20)
    requirements: Optional[str] = Field(None, min_length=10)
    location: Optional[str] = Field(None, max_length=200)
    job_type: Optional[JobType] = None
    salary_range: Optional[str] = Field(None, max_length=100)
    interview_slots: Optional[int] = Field(None, ge=1, le=50)
    expires_at: Optional[datetime] = None


class JobOfferResponse(BaseModel):
    id: int
    public_id: str
    company_id: int
    title: str
    description: str
    requirements: str
    location: Optional[str] = None
    job_type: JobType
    salary_range: Optional[str] = None
    interview_slots: int
    status: JobStatus
    published_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    application_count: int = 0

    class Config:
        from_attributes = True


class JobOfferListResponse(BaseModel):
    jobs: list[JobOfferResponse]
    total: int
    page: int = 1
    page_size: int = 20


class PublicJobResponse(BaseModel):
    """Job offer as shown on the public board."""
    public_id: str
    title: str
    description: str
    requirements: str
    location: Optional[str] = None
    job_type: JobType
    salary_range: Optional[str] = None
    published_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    company_name: str
    company_logo: Optional[str] = None
    company_location: Optional[str] = None


class PublicJobListResponse(BaseModel):
    jobs: list[PublicJobResponse]
    total: int
    page: int = 1
    page_size: int = 20


class DashboardStatsResponse(BaseModel):
    """Company dashboard counters. Pending covers PENDING and ANALYZING applications."""
    total_jobs: int
    draft_jobs: int
    published_jobs: int
    closed_jobs: int
    total_applications: int
    pending_applications: int
