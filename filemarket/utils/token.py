import logging
from jose import jwt
from datetime import datetime, timedelta
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session
from filemarket.config import settings
from filemarket.database import get_session
from filemarket.exceptions import Unauthenticated
from filemarket.models.user import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()

    expire = datetime.utcnow() + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.access_token_expire_minutes)
    )

    to_encode.update({"exp": expire})

    encoded_jwt = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.algorithm
    )
    return encoded_jwt


def create_user_token(user: User) -> str:
    # admin rights are read from the stored row on every request, not from claims
    return create_access_token({"sub": str(user.id)})


def decode_access_token(token: str):
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
        return payload
    except jwt.JWTError:
        return None


def authenticate(token: str, session: Session) -> User:
    payload = decode_access_token(token)

    if payload is None:
        logger.warning("Authentication failed: invalid or expired token")
        raise Unauthenticated("Invalid token")

    user_id = payload.get("sub")

    if user_id is None or not str(user_id).isdigit():
        logger.warning("Authentication failed: invalid token payload")
        raise Unauthenticated("Invalid token")

    user = session.get(User, int(user_id))

    if user is None:
        logger.warning(f"Authentication failed: user {user_id} not found")
        raise Unauthenticated("User not found")

    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_session)
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        logger.warning("Authentication failed: no token provided")
        raise Unauthenticated("No token provided")

    return authenticate(credentials.credentials, session)
