"""
Pydantic schemas for the candidate CV tools.
"""
from typing import Optional, Any, Dict, List, Union
from pydantic import BaseModel, Field


class CVGenerateRequest(BaseModel):
    job_title: str = Field(..., min_length=2, max_length=200, description="Target position")
    years_experience: Optional[str] = Field(None, max_length=50)
    skills: Optional[str] = Field(None, max_length=2000)
    education: Optional[str] = Field(None, max_length=2000)
    target_industry: Optional[str] = Field(None, max_length=200)

    class Config:
        json_schema_extra = {
            "example": {
                "job_title": "Développeuse Python",
                "years_experience": "3",
                "skills": "Python, FastAPI, PostgreSQL",
                "education": "Master informatique",
                "target_industry": "SaaS",
            }
        }


class CVImproveRequest(BaseModel):
    section: str = Field(..., description="summary, experience or skills")
    content: Optional[str] = Field(None, max_length=5000)
    context: Optional[str] = Field(None, max_length=500)


class CVAdaptRequest(BaseModel):
    job_offer: str = Field(..., min_length=20, max_length=20000, description="Full text of the job offer")
    current_cv: Optional[Dict[str, Any]] = Field(None, description="Structured CV as returned by /cv/generate")
    cv_text: Optional[str] = Field(None, max_length=20000, description="Plain text CV, e.g. from /cv/parse-pdf")


class CVResponse(BaseModel):
    cv: Dict[str, Any]
    message: Optional[str] = None


class CVSectionResponse(BaseModel):
    section: str
    content: Union[str, List[Dict[str, Any]]]


class CVTextResponse(BaseModel):
    cv_text: str
    file_name: str
    pages: int
