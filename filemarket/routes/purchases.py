import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from filemarket.constants.statuses import PaymentStatus, PurchaseStatus
from filemarket.database import get_session
from filemarket.dependencies.admin import require_admin
from filemarket.exceptions import Conflict, InvalidState, NotFound, ValidationError
from filemarket.models.digital_file import DigitalFile
from filemarket.models.download import Download
from filemarket.models.payment import Payment
from filemarket.models.purchase import Purchase
from filemarket.models.user import User
from filemarket.schemas.purchase_schemas import PurchaseCreate, PurchaseRead, PurchaseStatusUpdate
from filemarket.utils.responses import success
from filemarket.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _purchase_rows(session: Session, *clauses):
    query = (
        select(Purchase, DigitalFile.title, DigitalFile.preview_url, User.name, User.email)
        .join(DigitalFile, DigitalFile.id == Purchase.file_id)
        .join(User, User.id == Purchase.user_id)
    )
    for clause in clauses:
        query = query.where(clause)
    query = query.order_by(Purchase.created_at.desc(), Purchase.id.desc())

    return [
        PurchaseRead.model_validate(purchase).model_copy(update={
            "file_title": title,
            "preview_url": preview_url,
            "user_name": user_name,
            "user_email": user_email,
        }).model_dump()
        for purchase, title, preview_url, user_name, user_email in session.exec(query).all()
    ]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_purchase(
    data: PurchaseCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    file = session.get(DigitalFile, data.file_id)
    if not file:
        raise NotFound("File not found")

    if file.is_free:
        raise ValidationError("Free files do not need to be purchased")

    purchase = Purchase(
        user_id=current_user.id,
        file_id=file.id,
        amount=file.price,
        status=PurchaseStatus.pending.value,
    )

    try:
        session.add(purchase)
        session.flush()

        download = session.exec(
            select(Download)
            .where(Download.user_id == current_user.id)
            .where(Download.file_id == file.id)
        ).first()
        if download:
            download.purchase_id = purchase.id
        else:
            download = Download(
                user_id=current_user.id,
                file_id=file.id,
                purchase_id=purchase.id,
                download_count=0,
            )
        session.add(download)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise Conflict("You have already purchased this file")

    session.refresh(purchase)
    logger.info(f"User {current_user.id} started purchase {purchase.id} of file {file.id}")

    return success(
        PurchaseRead.model_validate(purchase).model_copy(update={
            "file_title": file.title,
            "preview_url": file.preview_url,
        }).model_dump(),
        message="Purchase created successfully",
    )


@router.get("")
def list_purchases(
    user_id: Optional[int] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if current_user.is_admin:
        clauses = [Purchase.user_id == user_id] if user_id is not None else []
    else:
        clauses = [Purchase.user_id == current_user.id]

    return success(_purchase_rows(session, *clauses))


@router.get("/{purchase_id}")
def get_purchase(
    purchase_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    clauses = [Purchase.id == purchase_id]
    if not current_user.is_admin:
        clauses.append(Purchase.user_id == current_user.id)

    rows = _purchase_rows(session, *clauses)
    if not rows:
        raise NotFound("Purchase not found")

    return success(rows[0])


@router.put("/{purchase_id}/status")
def update_purchase_status(
    purchase_id: int,
    data: PurchaseStatusUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    purchase = session.get(Purchase, purchase_id)
    if not purchase:
        raise NotFound("Purchase not found")

    now = datetime.utcnow()
    purchase.status = data.status.value
    purchase.updated_at = now
    session.add(purchase)

    if data.status == PurchaseStatus.completed and purchase.payment_id:
        payment = session.get(Payment, purchase.payment_id)
        if payment:
            payment.status = PaymentStatus.completed.value
            payment.verified_at = now
            payment.updated_at = now
            session.add(payment)

    session.commit()
    session.refresh(purchase)

    logger.info(f"Purchase {purchase.id} set to {purchase.status} by admin {admin.id}")
    return success(
        PurchaseRead.model_validate(purchase).model_dump(),
        message="Purchase status updated successfully",
    )


@router.delete("/{purchase_id}")
def delete_purchase(
    purchase_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    purchase = session.get(Purchase, purchase_id)
    if not purchase:
        raise NotFound("Purchase not found")

    if purchase.status == PurchaseStatus.completed.value:
        raise InvalidState("Cannot delete a completed purchase")

    session.exec(delete(Download).where(Download.purchase_id == purchase.id))
    session.delete(purchase)
    session.commit()

    logger.info(f"Purchase {purchase_id} deleted by admin {admin.id}")
    return success(message="Purchase deleted successfully")
