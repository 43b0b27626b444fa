"""Who may download what.

A free file is open to any authenticated user. A paid file needs a completed
purchase, and when the file sets ``download_limit_days`` the purchase only
grants access until ``created_at + download_limit_days`` (inclusive).
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlmodel import Session, select

from filemarket.constants.statuses import PurchaseStatus
from filemarket.exceptions import Forbidden
from filemarket.models.digital_file import DigitalFile
from filemarket.models.purchase import Purchase
from filemarket.models.user import User


def access_expires_at(file: DigitalFile, purchase: Purchase) -> Optional[datetime]:
    if not file.download_limit_days or file.download_limit_days <= 0:
        return None
    return purchase.created_at + timedelta(days=file.download_limit_days)


def can_download(
    file: DigitalFile,
    purchase: Optional[Purchase],
    now: Optional[datetime] = None,
) -> bool:
    if file.is_free:
        return True
    if purchase is None or purchase.status != PurchaseStatus.completed.value:
        return False
    expires_at = access_expires_at(file, purchase)
    if expires_at is None:
        return True
    return (now or datetime.utcnow()) <= expires_at


def find_purchase(session: Session, user_id: int, file_id: int) -> Optional[Purchase]:
    return session.exec(
        select(Purchase)
        .where(Purchase.user_id == user_id)
        .where(Purchase.file_id == file_id)
    ).first()


def check_entitlement(
    session: Session,
    user: User,
    file: DigitalFile,
    now: Optional[datetime] = None,
) -> Optional[Purchase]:
    """Raise ``Forbidden`` unless ``user`` may download ``file`` right now.

    Returns the purchase backing the access, or ``None`` for free files.
    """
    if not file.is_downloadable:
        raise Forbidden("This file is not available for download")

    if file.is_free:
        return None

    purchase = find_purchase(session, user.id, file.id)

    if purchase is None or purchase.status != PurchaseStatus.completed.value:
        raise Forbidden("You have not purchased this file")

    if not can_download(file, purchase, now):
        raise Forbidden("Download link has expired")

    return purchase
