import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_current_user_obj
from app.core.rate_limit import rate_limiter
from app.core.security import hash_password, verify_password, create_access_token
from app.db.models.user import User
from app.schemas.auth import RegisterRequest, TokenResponse, UserResponse, SessionResponse
from app.services import settings_service
from app.services.entitlement_service import get_or_create_subscription

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_response(user: User) -> TokenResponse:
    token = create_access_token({"sub": user.email})
    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=TokenResponse)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """
    Create an account and its default free subscription.

    The profile (company or candidate) is completed later through /onboarding.
    Refused with 403 while an admin has closed registrations.
    """
    if not settings_service.is_enabled(db, "registrations_open"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Registrations are currently closed")

    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    try:
        user = User(
            email=email,
            name=payload.name,
            password_hash=hash_password(payload.password),
            user_type=payload.user_type,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        get_or_create_subscription(db, user)
    except ValueError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid password")
    except Exception as e:
        db.rollback()
        logger.error(f"Registration failed: email={email}, error={e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create account")

    logger.info(f"User registered: user_id={user.id}, user_type={user.user_type.value}")
    return _token_response(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    dependencies=[Depends(rate_limiter("login", max_requests=10, window_seconds=60))],
)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    # OAuth2 form sends "username"; it carries the email
    user = db.query(User).filter(User.email == form_data.username.lower()).first()

    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if user.suspended:
        logger.info(f"Login refused for suspended user: user_id={user.id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account suspended")

    return _token_response(user)


@router.get("/session", response_model=SessionResponse)
def session(
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    subscription = get_or_create_subscription(db, user)
    return SessionResponse(
        user=UserResponse.model_validate(user),
        plan=subscription.plan,
        company_id=user.company.id if user.company else None,
        candidate_id=user.candidate.id if user.candidate else None,
    )
