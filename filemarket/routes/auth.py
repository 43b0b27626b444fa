import logging
import secrets
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session, select

from filemarket.config import settings
from filemarket.database import get_session
from filemarket.exceptions import InvalidCredentials, NotFound, ValidationError
from filemarket.middleware.rate_limit import AUTH_MESSAGE, limiter
from filemarket.models.user import User
from filemarket.schemas.user_schemas import (
    ForgotPasswordRequest,
    ResetPasswordRequest,
    UserLogin,
    UserRead,
    UserRegister,
)
from filemarket.services.email_service import send_password_reset, send_verification
from filemarket.utils.hash import hash_password, verify_password
from filemarket.utils.responses import success
from filemarket.utils.token import create_user_token, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

RESET_TOKEN_TTL = timedelta(hours=1)


def _token_payload(user: User) -> dict:
    return {
        "token": create_user_token(user),
        "token_type": "bearer",
        "user": UserRead.model_validate(user).model_dump(),
    }


# -------- AUTH ROUTES --------

@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit_auth, error_message=AUTH_MESSAGE)
def register_user(
    request: Request,
    payload: UserRegister,
    session: Session = Depends(get_session),
):
    existing_user = session.exec(select(User).where(User.email == payload.email)).first()
    if existing_user:
        raise ValidationError("Email already registered")

    user = User(
        name=payload.name,
        email=payload.email,
        password=hash_password(payload.password),
        verification_token=secrets.token_urlsafe(32),
    )

    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info(f"Registered user {user.id}")
    send_verification(user, user.verification_token)

    return success(
        UserRead.model_validate(user).model_dump(),
        message="User registered successfully. Please verify your email.",
    )


@router.post("/login")
@limiter.limit(settings.rate_limit_auth, error_message=AUTH_MESSAGE)
def login(
    request: Request,
    payload: UserLogin,
    session: Session = Depends(get_session),
):
    user = session.exec(select(User).where(User.email == payload.email)).first()

    if not user:
        logger.warning(f"Login failed: unknown email {payload.email}")
        raise InvalidCredentials()

    if not verify_password(payload.password, user.password):
        logger.warning(f"Login failed: wrong password for user {user.id}")
        raise InvalidCredentials()

    return success(_token_payload(user), message="Login successful")


@router.post("/forgot-password")
def forgot_password(request: ForgotPasswordRequest, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == request.email)).first()
    if not user:
        raise NotFound("User not found")

    user.reset_token = secrets.token_urlsafe(32)
    user.reset_token_expires = datetime.utcnow() + RESET_TOKEN_TTL
    user.updated_at = datetime.utcnow()

    session.add(user)
    session.commit()

    send_password_reset(user, user.reset_token)

    return success(message="Password reset email sent")


@router.post("/reset-password")
def reset_password(request: ResetPasswordRequest, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.reset_token == request.token)).first()

    if (
        not user
        or user.reset_token_expires is None
        or user.reset_token_expires < datetime.utcnow()
    ):
        raise ValidationError("Invalid or expired reset token")

    user.password = hash_password(request.password)
    user.reset_token = None
    user.reset_token_expires = None
    user.updated_at = datetime.utcnow()

    session.add(user)
    session.commit()

    logger.info(f"Password reset for user {user.id}")
    return success(message="Password reset successfully")


@router.get("/verify-email/{token}")
def verify_email(token: str, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.verification_token == token)).first()
    if not user:
        raise ValidationError("Invalid verification token")

    user.is_verified = True
    user.verification_token = None
    user.updated_at = datetime.utcnow()

    session.add(user)
    session.commit()

    return success(message="Email verified successfully")


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return success(UserRead.model_validate(current_user).model_dump())


@router.post("/refresh-token")
def refresh_token(current_user: User = Depends(get_current_user)):
    return success(_token_payload(current_user), message="Token refreshed")


@router.post("/logout")
def logout(current_user: User = Depends(get_current_user)):
    # tokens are stateless; the client drops its copy
    return success(message="Logout successful")
