from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from filemarket.database import get_session
from filemarket.dependencies.admin import require_admin
from filemarket.models.digital_file import DigitalFile
from filemarket.models.download import Download
from filemarket.models.user import User
from filemarket.schemas.download_schemas import DownloadRead
from filemarket.services.download_service import download_response, download_stats
from filemarket.utils.pagination import paginate
from filemarket.utils.responses import success
from filemarket.utils.token import get_current_user

router = APIRouter()


# fixed paths first so "/history/me" and "/stats" never match "/{file_id}"

@router.get("/history/me")
def download_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    query = (
        select(Download, DigitalFile.title, DigitalFile.preview_url, DigitalFile.price)
        .join(DigitalFile, DigitalFile.id == Download.file_id)
        .where(Download.user_id == current_user.id)
        .where(Download.download_count > 0)
        .order_by(Download.last_downloaded_at.desc(), Download.id.desc())
    )

    rows, meta = paginate(session=session, query=query, page=page, limit=limit)

    return success({
        "downloads": [
            DownloadRead(
                **download.model_dump(),
                file_title=title,
                preview_url=preview_url,
                price=price,
            ).model_dump()
            for download, title, preview_url, price in rows
        ],
        "pagination": meta,
    })


@router.get("/stats")
def stats(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    return success(download_stats(session))


@router.get("/{file_id}")
def download(
    file_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return download_response(session, current_user, file_id)
