import logging
import time
from datetime import datetime
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, status
from slugify import slugify
from sqlalchemy import or_
from sqlmodel import Session, select

from filemarket.database import engine, get_session
from filemarket.dependencies.admin import require_admin
from filemarket.exceptions import NotFound, ValidationError
from filemarket.models.category import Category
from filemarket.models.user import User
from filemarket.schemas.category_schemas import CategoryCreate, CategoryRead, CategoryUpdate
from filemarket.utils.responses import success

logger = logging.getLogger(__name__)

router = APIRouter()
CACHE_TTL = 60 * 60  # 60 minutes


def _ttl_bucket() -> int:
    """
    Changes every 60 minutes -> auto cache expiry
    """
    return int(time.time() // CACHE_TTL)


@lru_cache(maxsize=8)
def _cached_list_categories(bucket: int):
    with Session(engine) as session:
        categories = session.exec(select(Category).order_by(Category.name)).all()
        return [CategoryRead.model_validate(c).model_dump() for c in categories]


def clear_categories_cache():
    _cached_list_categories.cache_clear()


def _ensure_unique(session: Session, name: str, slug: str, exclude_id: Optional[int] = None):
    query = select(Category).where(or_(Category.name == name, Category.slug == slug))
    if exclude_id is not None:
        query = query.where(Category.id != exclude_id)
    if session.exec(query).first():
        raise ValidationError("Category with this name or slug already exists")


def _get_category(session: Session, category_id: int) -> Category:
    category = session.get(Category, category_id)
    if not category:
        raise NotFound("Category not found")
    return category


# ---------------- PUBLIC ----------------

@router.get("")
def list_categories():
    return success(_cached_list_categories(_ttl_bucket()))


@router.get("/{category_id}")
def get_category(category_id: int, session: Session = Depends(get_session)):
    category = _get_category(session, category_id)
    return success(CategoryRead.model_validate(category).model_dump())


# ---------------- ADMIN ----------------

@router.post("", status_code=status.HTTP_201_CREATED)
def create_category(
    data: CategoryCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    slug = data.slug or slugify(data.name)
    if not slug:
        raise ValidationError("Category name must produce a non-empty slug")
    _ensure_unique(session, data.name, slug)

    category = Category(name=data.name, slug=slug, description=data.description)

    session.add(category)
    session.commit()
    session.refresh(category)
    clear_categories_cache()

    logger.info(f"Category {category.id} ({category.slug}) created")
    return success(
        CategoryRead.model_validate(category).model_dump(),
        message="Category created successfully",
    )


@router.put("/{category_id}")
def update_category(
    category_id: int,
    data: CategoryUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    category = _get_category(session, category_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    name = changes.get("name", category.name)
    slug = changes.get("slug", category.slug)
    _ensure_unique(session, name, slug, exclude_id=category.id)

    for key, value in changes.items():
        setattr(category, key, value)
    category.updated_at = datetime.utcnow()

    session.add(category)
    session.commit()
    session.refresh(category)
    clear_categories_cache()

    return success(
        CategoryRead.model_validate(category).model_dump(),
        message="Category updated successfully",
    )


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    category = _get_category(session, category_id)

    session.delete(category)
    session.commit()
    clear_categories_cache()

    logger.info(f"Category {category_id} deleted")
    return success(message="Category deleted successfully")
