import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from sqlmodel import Session, select

from filemarket.config import settings
from filemarket.database import get_session
from filemarket.dependencies.admin import require_admin
from filemarket.exceptions import NotFound, ValidationError
from filemarket.middleware.rate_limit import UPLOAD_MESSAGE, limiter
from filemarket.models.category import Category
from filemarket.models.digital_file import DigitalFile
from filemarket.models.user import User
from filemarket.schemas.file_schemas import FileRead
from filemarket.services.download_service import download_response
from filemarket.services.storage import delete_asset, save_upload
from filemarket.utils.responses import success
from filemarket.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def resolve_price(is_free: bool, price: Optional[float]) -> float:
    """Free files cost nothing; paid files must cost something."""
    if is_free:
        if price:
            raise ValidationError("Free files cannot have a price")
        return 0.0

    if price is None or price <= 0:
        raise ValidationError("Paid files must have a price greater than 0")
    return price


def _check_category(session: Session, category_id: Optional[int]):
    if category_id is not None and not session.get(Category, category_id):
        raise ValidationError("Invalid category_id")


def _file_read(session: Session, file: DigitalFile) -> dict:
    category = session.get(Category, file.category_id) if file.category_id else None
    return FileRead.from_row(file, category.name if category else None).model_dump()


def _get_file(session: Session, file_id: int) -> DigitalFile:
    file = session.get(DigitalFile, file_id)
    if not file:
        raise NotFound("File not found")
    return file


# ---------------- PUBLIC ----------------

@router.get("")
def list_files(session: Session = Depends(get_session)):
    rows = session.exec(
        select(DigitalFile, Category.name)
        .outerjoin(Category, Category.id == DigitalFile.category_id)
        .order_by(DigitalFile.created_at.desc(), DigitalFile.id.desc())
    ).all()

    return success([
        FileRead.from_row(file, category_name).model_dump()
        for file, category_name in rows
    ])


@router.get("/{file_id}")
def get_file(file_id: int, session: Session = Depends(get_session)):
    return success(_file_read(session, _get_file(session, file_id)))


@router.get("/{file_id}/download")
def download_file(
    file_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return download_response(session, current_user, file_id)


# ---------------- ADMIN ----------------

@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit_upload, error_message=UPLOAD_MESSAGE)
def create_file(
    request: Request,
    title: str = Form(..., min_length=1),
    description: Optional[str] = Form(None),
    category_id: Optional[int] = Form(None),
    price: Optional[float] = Form(None, ge=0),
    is_free: bool = Form(False),
    is_downloadable: bool = Form(True),
    download_limit_days: Optional[int] = Form(None, gt=0),
    preview_url: Optional[str] = Form(None),
    file: UploadFile = File(None),

    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    if not file or not file.filename:
        raise ValidationError("No file uploaded")

    resolved_price = resolve_price(is_free, price)
    _check_category(session, category_id)

    asset = save_upload(file)

    record = DigitalFile(
        title=title,
        description=description,
        category_id=category_id,
        price=resolved_price,
        is_free=is_free,
        file_name=asset.file_name,
        file_path=asset.file_path,
        file_size=asset.file_size,
        file_type=asset.file_type,
        preview_url=preview_url,
        is_downloadable=is_downloadable,
        download_limit_days=download_limit_days,
    )

    try:
        session.add(record)
        session.flush()
        record.download_url = f"/files/{record.id}/download"
        session.commit()
    except Exception:
        session.rollback()
        logger.error(f"Saving file '{title}' failed, removing stored asset {asset.stored_name}")
        delete_asset(asset.file_path)
        raise

    session.refresh(record)
    logger.info(f"File {record.id} created by admin {admin.id}")

    return success(_file_read(session, record), message="File uploaded successfully")


@router.put("/{file_id}")
def update_file(
    file_id: int,
    title: Optional[str] = Form(None, min_length=1),
    description: Optional[str] = Form(None),
    category_id: Optional[int] = Form(None),
    price: Optional[float] = Form(None, ge=0),
    is_free: Optional[bool] = Form(None),
    is_downloadable: Optional[bool] = Form(None),
    download_limit_days: Optional[int] = Form(None, gt=0),
    preview_url: Optional[str] = Form(None),
    file: UploadFile = File(None),

    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    record = _get_file(session, file_id)

    merged_free = record.is_free if is_free is None else is_free
    if merged_free:
        merged_price = resolve_price(True, price)
    else:
        merged_price = resolve_price(False, record.price if price is None else price)

    if category_id is not None:
        _check_category(session, category_id)
        record.category_id = category_id

    for key, value in (
        ("title", title),
        ("description", description),
        ("is_downloadable", is_downloadable),
        ("download_limit_days", download_limit_days),
        ("preview_url", preview_url),
    ):
        if value is not None:
            setattr(record, key, value)

    record.is_free = merged_free
    record.price = merged_price
    record.updated_at = datetime.utcnow()

    old_path = None
    new_asset = None
    if file and file.filename:
        new_asset = save_upload(file)
        old_path = record.file_path
        record.file_name = new_asset.file_name
        record.file_path = new_asset.file_path
        record.file_size = new_asset.file_size
        record.file_type = new_asset.file_type

    try:
        session.add(record)
        session.commit()
    except Exception:
        session.rollback()
        if new_asset:
            logger.error(f"Updating file {file_id} failed, removing new asset {new_asset.stored_name}")
            delete_asset(new_asset.file_path)
        raise

    if old_path:
        delete_asset(old_path)

    session.refresh(record)
    logger.info(f"File {record.id} updated by admin {admin.id}")

    return success(_file_read(session, record), message="File updated successfully")


@router.delete("/{file_id}")
def delete_file(
    file_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    record = _get_file(session, file_id)
    file_path = record.file_path

    session.delete(record)
    session.commit()
    delete_asset(file_path)

    logger.info(f"File {file_id} deleted by admin {admin.id}")
    return success(message="File deleted successfully")
