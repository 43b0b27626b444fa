import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Tuple

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
from starlette.background import BackgroundTask
from starlette.responses import FileResponse

from filemarket.database import engine
from filemarket.exceptions import NotFound
from filemarket.models.digital_file import DigitalFile
from filemarket.models.download import Download
from filemarket.models.purchase import Purchase
from filemarket.models.user import User
from filemarket.services.entitlement import check_entitlement
from filemarket.services.storage import resolve_asset

logger = logging.getLogger(__name__)


def prepare_download(
    session: Session,
    user: User,
    file_id: int,
    now: Optional[datetime] = None,
) -> Tuple[DigitalFile, Path, Optional[Purchase]]:
    file = session.get(DigitalFile, file_id)
    if not file:
        raise NotFound("File not found")

    purchase = check_entitlement(session, user, file, now)

    path = resolve_asset(file.file_path)
    if path is None:
        logger.error(f"Asset for file {file.id} missing at {file.file_path}")
        raise NotFound("File not found on server")

    return file, path, purchase


def upsert_download(
    session: Session,
    user_id: int,
    file_id: int,
    purchase_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> None:
    """Count one download for (user, file).

    The increment happens inside the UPDATE statement so concurrent downloads
    of the same pair never lose a count. A concurrent first insert surfaces
    as a unique violation and is retried as an update.
    """
    now = now or datetime.utcnow()
    values = {
        "download_count": Download.download_count + 1,
        "last_downloaded_at": now,
    }
    if purchase_id is not None:
        values["purchase_id"] = func.coalesce(Download.purchase_id, purchase_id)

    increment = (
        update(Download)
        .where(Download.user_id == user_id)
        .where(Download.file_id == file_id)
        .values(**values)
    )

    result = session.exec(increment)
    if result.rowcount:
        session.commit()
        return

    session.add(Download(
        user_id=user_id,
        file_id=file_id,
        purchase_id=purchase_id,
        download_count=1,
        last_downloaded_at=now,
    ))
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        session.exec(increment)
        session.commit()


def record_download(user_id: int, file_id: int, purchase_id: Optional[int] = None):
    """Runs after the response body went out, in its own session."""
    with Session(engine) as session:
        upsert_download(session, user_id, file_id, purchase_id)
    logger.info(f"User {user_id} downloaded file {file_id}")


def download_stats(session: Session, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()

    top = session.exec(
        select(
            DigitalFile.id,
            DigitalFile.title,
            DigitalFile.preview_url,
            func.sum(Download.download_count).label("total_downloads"),
            func.count(func.distinct(Download.user_id)).label("unique_users"),
        )
        .join(Download, Download.file_id == DigitalFile.id)
        .where(Download.download_count > 0)
        .group_by(DigitalFile.id, DigitalFile.title, DigitalFile.preview_url)
        .order_by(func.sum(Download.download_count).desc())
        .limit(10)
    ).all()

    day = func.date(Download.last_downloaded_at)
    trends = session.exec(
        select(day, func.count(Download.id))
        .where(Download.last_downloaded_at >= now - timedelta(days=30))
        .group_by(day)
        .order_by(day)
    ).all()

    total_downloads, total_users, files_downloaded = session.exec(
        select(
            func.coalesce(func.sum(Download.download_count), 0),
            func.count(func.distinct(Download.user_id)),
            func.count(func.distinct(Download.file_id)),
        ).where(Download.download_count > 0)
    ).one()

    return {
        "topDownloads": [
            {
                "id": file_id,
                "title": title,
                "preview_url": preview_url,
                "total_downloads": int(total or 0),
                "unique_users": unique_users,
            }
            for file_id, title, preview_url, total, unique_users in top
        ],
        "downloadTrends": [
            {"download_date": str(d), "downloads": count}
            for d, count in trends
        ],
        "totalStats": {
            "total_downloads": int(total_downloads or 0),
            "total_users": total_users,
            "files_downloaded": files_downloaded,
        },
    }


def download_response(
    session: Session,
    user: User,
    file_id: int,
    now: Optional[datetime] = None,
) -> FileResponse:
    """Stream the asset; the count is recorded only once the body went out."""
    file, path, purchase = prepare_download(session, user, file_id, now)

    return FileResponse(
        path,
        filename=file.title,
        media_type=file.file_type or "application/octet-stream",
        background=BackgroundTask(
            record_download,
            user.id,
            file.id,
            purchase.id if purchase else None,
        ),
    )
