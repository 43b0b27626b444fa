import logging
from fastapi import Depends
from filemarket.exceptions import Forbidden
from filemarket.models.user import User
from filemarket.utils.token import get_current_user

logger = logging.getLogger(__name__)


def require_admin(current_user: User = Depends(get_current_user)):
    if not current_user.is_admin:
        logger.warning(f"Access denied: {current_user.email} attempted an admin route")
        raise Forbidden("Admin access required")
    return current_user
