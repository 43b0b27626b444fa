"""Local disk storage for uploaded assets.

Every upload is written under a freshly generated name (uuid + original
extension) so two uploads never collide. Rows keep the stored path; callers
pass it back to delete or resolve the asset.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from uuid import uuid4

from fastapi import UploadFile

from filemarket.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredAsset:
    file_name: str       # name the uploader gave the file
    stored_name: str
    file_path: str
    file_size: int
    file_type: str


def upload_root() -> Path:
    root = Path(settings.upload_dir)
    root.mkdir(parents=True, exist_ok=True)
    return root


def save_upload(upload: UploadFile) -> StoredAsset:
    original = Path(upload.filename or "upload").name
    stored_name = f"{uuid4().hex}{Path(original).suffix.lower()}"
    destination = upload_root() / stored_name

    upload.file.seek(0)
    with destination.open("wb") as out:
        shutil.copyfileobj(upload.file, out)

    asset = StoredAsset(
        file_name=original,
        stored_name=stored_name,
        file_path=str(destination),
        file_size=destination.stat().st_size,
        file_type=upload.content_type or "application/octet-stream",
    )
    logger.info(f"Stored upload {original} as {stored_name} ({asset.file_size} bytes)")
    return asset


def delete_asset(file_path: Optional[str]) -> None:
    """Best-effort removal; failures are logged and never raised."""
    if not file_path:
        return
    try:
        Path(file_path).unlink(missing_ok=True)
    except OSError:
        logger.exception(f"Could not delete stored asset {file_path}")


def resolve_asset(file_path: Optional[str]) -> Optional[Path]:
    if not file_path:
        return None
    # only ever serve from the upload root, whatever the row says
    candidate = upload_root() / Path(file_path).name
    return candidate if candidate.is_file() else None
