"""
AI CV tools for candidate accounts.

Generation, section rewriting and adaptation count against the monthly AI
quota of the candidate's plan; a refusal is a 403 limit_reached detail.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, File, UploadFile
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, require_candidate
from app.core.config import MAX_CV_SIZE_BYTES
from app.core.entitlement_guard import limit_reached
from app.db.models.user import User
from app.schemas.cv import (
    CVGenerateRequest,
    CVImproveRequest,
    CVAdaptRequest,
    CVResponse,
    CVSectionResponse,
    CVTextResponse,
)
from app.services import cv_tools_service
from app.services.cv_tools_service import CVProfileRequest, CVToolError, CVToolLimitError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cv", tags=["CV"])


@router.post("/generate", response_model=CVResponse)
def generate_cv(
    payload: CVGenerateRequest,
    user: User = Depends(require_candidate),
    db: Session = Depends(get_db)
):
    try:
        cv = cv_tools_service.generate_cv(db, user, CVProfileRequest(**payload.model_dump()))
    except CVToolLimitError as e:
        raise limit_reached(e.result)
    except CVToolError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return CVResponse(cv=cv)


@router.post("/improve", response_model=CVSectionResponse)
def improve_cv_section(
    payload: CVImproveRequest,
    user: User = Depends(require_candidate),
    db: Session = Depends(get_db)
):
    try:
        content = cv_tools_service.improve_section(db, user, payload.section, payload.content, payload.context)
    except CVToolLimitError as e:
        raise limit_reached(e.result)
    except CVToolError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return CVSectionResponse(section=payload.section, content=content)


@router.post("/adapt", response_model=CVResponse)
def adapt_cv(
    payload: CVAdaptRequest,
    user: User = Depends(require_candidate),
    db: Session = Depends(get_db)
):
    """Rewrite the candidate's CV for one offer, without adding experience they do not have. Premium plans only."""
    try:
        cv = cv_tools_service.adapt_cv(db, user, payload.job_offer, payload.current_cv, payload.cv_text)
    except CVToolLimitError as e:
        raise limit_reached(e.result)
    except CVToolError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return CVResponse(cv=cv, message="CV adapted to the job offer")


@router.post("/parse-pdf", response_model=CVTextResponse)
def parse_cv_pdf(
    file: UploadFile = File(..., description="CV as PDF, 5 MB max"),
    user: User = Depends(require_candidate),
):
    # Read one byte past the limit so oversized files are detected without loading them whole
    data = file.file.read(MAX_CV_SIZE_BYTES + 1)
    try:
        parsed = cv_tools_service.parse_cv_pdf(data, file.filename or "cv.pdf")
    except CVToolError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return CVTextResponse(**parsed)
