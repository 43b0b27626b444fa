import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from filemarket.database import get_session
from filemarket.dependencies.admin import require_admin
from filemarket.exceptions import NotFound, Unauthenticated, ValidationError
from filemarket.models.user import User
from filemarket.schemas.user_schemas import (
    AdminUserUpdate,
    ChangePasswordRequest,
    ProfileUpdate,
    UserRead,
)
from filemarket.services.search_service import LIKE_ESCAPE, like_pattern
from filemarket.utils.hash import hash_password, verify_password
from filemarket.utils.pagination import paginate
from filemarket.utils.responses import success
from filemarket.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_email_free(session: Session, email: str, user_id: int):
    taken = session.exec(
        select(User).where(User.email == email).where(User.id != user_id)
    ).first()
    if taken:
        raise ValidationError("Email already taken")


def _get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


# ---------------- SELF SERVICE ----------------

@router.get("/me")
def get_profile(current_user: User = Depends(get_current_user)):
    return success(UserRead.model_validate(current_user).model_dump())


@router.put("/me")
def update_profile(
    data: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    changes = data.model_dump(exclude_unset=True)

    if changes.get("email"):
        _ensure_email_free(session, changes["email"], current_user.id)

    for key, value in changes.items():
        setattr(current_user, key, value)
    current_user.updated_at = datetime.utcnow()

    session.add(current_user)
    session.commit()
    session.refresh(current_user)

    return success(
        UserRead.model_validate(current_user).model_dump(),
        message="Profile updated successfully",
    )


@router.put("/me/password")
def change_password(
    data: ChangePasswordRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if not verify_password(data.current_password, current_user.password):
        logger.warning(f"Password change rejected for user {current_user.id}")
        raise Unauthenticated("Current password is incorrect")

    current_user.password = hash_password(data.new_password)
    current_user.updated_at = datetime.utcnow()

    session.add(current_user)
    session.commit()

    return success(message="Password changed successfully")


# ---------------- ADMIN ----------------

@router.get("")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    query = select(User)
    if search:
        pattern = like_pattern(search)
        query = query.where(
            User.name.ilike(pattern, escape=LIKE_ESCAPE)
            | User.email.ilike(pattern, escape=LIKE_ESCAPE)
        )
    query = query.order_by(User.created_at.desc(), User.id.desc())

    users, meta = paginate(session=session, query=query, page=page, limit=limit)

    return success({
        "users": [UserRead.model_validate(u).model_dump() for u in users],
        "pagination": meta,
    })


@router.get("/{user_id}")
def get_user(
    user_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    return success(UserRead.model_validate(_get_user(session, user_id)).model_dump())


@router.put("/{user_id}")
def update_user(
    user_id: int,
    data: AdminUserUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    user = _get_user(session, user_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("email"):
        _ensure_email_free(session, changes["email"], user.id)

    for key, value in changes.items():
        if value is not None:
            setattr(user, key, value)
    user.updated_at = datetime.utcnow()

    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info(f"Admin {admin.id} updated user {user.id}")
    return success(UserRead.model_validate(user).model_dump(), message="User updated")


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    user = _get_user(session, user_id)

    session.delete(user)
    session.commit()

    logger.info(f"Admin {admin.id} deleted user {user_id}")
    return success(message="User deleted")
