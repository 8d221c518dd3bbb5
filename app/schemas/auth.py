"""
Pydantic schemas for authentication and onboarding endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator

from app.db.models.user import UserType, UserRole


class RegisterRequest(BaseModel):
    """Request schema for account registration."""
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")
    name: str = Field(..., min_length=2, max_length=200, description="Display name")
    user_type: UserType = Field(..., description="COMPANY or CANDIDATE")

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        """Validate password length in bytes (bcrypt limit is 72 bytes)."""
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password too long (bcrypt limit 72 bytes)")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "email": "recrutement@acme.fr",
                "password": "SecurePass123",
                "name": "Acme RH",
                "user_type": "COMPANY"
            }
        }


class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    role: UserRole
    user_type: UserType
    onboarding_completed: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class SessionResponse(BaseModel):
    """Current session: user plus profile and plan shortcuts."""
    user: UserResponse
    plan: Optional[str] = None
    company_id: Optional[int] = None
    candidate_id: Optional[int] = None


class CompanyOnboardingRequest(BaseModel):
    company_name: str = Field(..., min_length=2, max_length=200)
    industry: str = Field(..., min_length=2, max_length=100)
    company_size: str = Field(..., min_length=1, max_length=50, description="e.g. 1-10, 11-50, 51-200")
    location: str = Field(..., min_length=2, max_length=200)
    website: Optional[str] = Field(None, max_length=300)
    description: Optional[str] = Field(None, max_length=5000)

    @field_validator("website")
    @classmethod
    def validate_website(cls, v: Optional[str]) -> Optional[str]:
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("Website must start with http:// or https://")
        return v or None


class CandidateOnboardingRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    linkedin_url: Optional[str] = Field(None, max_length=300)
    portfolio_url: Optional[str] = Field(None, max_length=300)
    bio: Optional[str] = Field(None, max_length=2000)

    @field_validator("linkedin_url", "portfolio_url")
    @classmethod
    def blank_url_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class CompanyResponse(BaseModel):
    id: int
    company_name: str
    industry: Optional[str] = None
    company_size: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    logo: Optional[str] = None
    onboarded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CandidateResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    bio: Optional[str] = None
    onboarded_at: Optional[datetime] = None

    class Config:
        from_attributes = True
