from datetime import datetime

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from filemarket.database import get_session
from filemarket.dependencies.admin import require_admin
from filemarket.models.user import User
from filemarket.services.analytics_service import (
    dashboard,
    export_dashboard_workbook,
    file_analytics,
    user_analytics,
)
from filemarket.utils.responses import success

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/dashboard")
def get_dashboard(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    return success(dashboard(session))


@router.get("/files/{file_id}")
def get_file_analytics(
    file_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    return success(file_analytics(session, file_id))


@router.get("/users/{user_id}")
def get_user_analytics(
    user_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    return success(user_analytics(session, user_id))


@router.get("/export")
def export_dashboard(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    content = export_dashboard_workbook(dashboard(session))
    filename = f"dashboard_{datetime.utcnow():%Y%m%d}.xlsx"

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
