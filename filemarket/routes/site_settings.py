import logging

from fastapi import APIRouter, Depends
from sqlmodel import Session

from filemarket.database import get_session
from filemarket.dependencies.admin import require_admin
from filemarket.models.user import User
from filemarket.schemas.settings_schemas import SiteSettingsRead, SiteSettingsUpdate
from filemarket.services.settings_service import get_site_settings, update_site_settings
from filemarket.utils.responses import success

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def read_settings(session: Session = Depends(get_session)):
    return success(SiteSettingsRead(**get_site_settings(session)).model_dump())


@router.put("")
def write_settings(
    data: SiteSettingsUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if "currency" in changes:
        changes["currency"] = changes["currency"].upper()

    current = update_site_settings(session, changes)
    logger.info(f"Site settings {sorted(changes)} updated by admin {admin.id}")

    return success(SiteSettingsRead(**current).model_dump(), message="Settings updated successfully")
