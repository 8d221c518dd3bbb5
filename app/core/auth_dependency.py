"""
Shared FastAPI dependencies: database session and authenticated user lookups.
"""
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from app.core.security import decode_access_token
from app.db.session import SessionLocal
from app.db.models.user import User, UserRole, UserType
from app.services import settings_service

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_db():
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(token: str = Depends(oauth2_scheme)) -> str:
    """Get current user email from JWT token."""
    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    email = payload.get("sub")
    if email is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    return email


def get_user_from_email(email: str, db: Session) -> User:
    """Fetch User object from email."""
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


def get_current_user_obj(
    email: str = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> User:
    """Get current User object from JWT token. Suspended accounts are refused."""
    user = get_user_from_email(email, db)
    if user.suspended:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account suspended"
        )
    return user


def require_admin(user: User = Depends(get_current_user_obj)) -> User:
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


def require_company(user: User = Depends(get_current_user_obj)) -> User:
    """Current user, who must own a company profile."""
    if user.user_type != UserType.COMPANY or user.company is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Company profile required")
    return user


def require_candidate(user: User = Depends(get_current_user_obj)) -> User:
    """Current user, who must own a candidate profile."""
    if user.user_type != UserType.CANDIDATE or user.candidate is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Candidate profile required")
    return user


optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Authenticated user when a valid token is sent, None for anonymous callers."""
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        return None
    user = db.query(User).filter(User.email == payload["sub"]).first()
    if user is None or user.suspended:
        return None
    return user


def ensure_not_in_maintenance(
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
) -> None:
    """Router dependency: 503 for everyone but admins while maintenance mode is on."""
    if user is not None and user.role == UserRole.ADMIN:
        return
    if not settings_service.is_enabled(db, "maintenance_mode"):
        return
    notice = settings_service.get_setting(db, "maintenance_message") or {}
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={
            "error": "maintenance",
            "message": notice.get("message") or "Selectif is under maintenance, please come back later",
            "schedule": notice.get("schedule"),
        },
    )
