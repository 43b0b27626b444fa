import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session, select

from filemarket.config import settings
from filemarket.constants.statuses import PAYMENT_TRANSITIONS, PaymentStatus, PurchaseStatus
from filemarket.database import get_session
from filemarket.dependencies.admin import require_admin
from filemarket.exceptions import Conflict, InvalidState, NotFound, ValidationError
from filemarket.middleware.rate_limit import PAYMENT_MESSAGE, limiter
from filemarket.models.digital_file import DigitalFile
from filemarket.models.payment import Payment
from filemarket.models.payment_method import PaymentMethod
from filemarket.models.purchase import Purchase
from filemarket.models.user import User
from filemarket.schemas.payment_schemas import (
    PaymentCreate,
    PaymentMethodCreate,
    PaymentMethodRead,
    PaymentMethodUpdate,
    PaymentRead,
    PaymentVerify,
)
from filemarket.services.email_service import send_payment_result
from filemarket.services.entitlement import find_purchase
from filemarket.services.invoice_service import build_payment_invoice
from filemarket.utils.responses import success
from filemarket.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _payment_rows(session: Session, *clauses):
    query = (
        select(Payment, DigitalFile.title, PaymentMethod.name)
        .join(DigitalFile, DigitalFile.id == Payment.file_id)
        .outerjoin(PaymentMethod, PaymentMethod.id == Payment.payment_method_id)
    )
    for clause in clauses:
        query = query.where(clause)
    query = query.order_by(Payment.created_at.desc(), Payment.id.desc())

    return [
        PaymentRead.model_validate(payment).model_copy(update={
            "file_title": title,
            "payment_method_name": method_name,
        }).model_dump()
        for payment, title, method_name in session.exec(query).all()
    ]


def _get_visible_payment(session: Session, payment_id: int, user: User) -> Payment:
    payment = session.get(Payment, payment_id)
    if not payment or (not user.is_admin and payment.user_id != user.id):
        raise NotFound("Payment not found")
    return payment


def _get_method(session: Session, method_id: int) -> PaymentMethod:
    method = session.get(PaymentMethod, method_id)
    if not method:
        raise NotFound("Payment method not found")
    return method


# ---------------- PAYMENT METHODS ----------------

@router.get("/methods")
def list_payment_methods(
    include_inactive: bool = False,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    query = select(PaymentMethod).order_by(PaymentMethod.name)
    if not (include_inactive and current_user.is_admin):
        query = query.where(PaymentMethod.is_active == True)  # noqa: E712

    methods = session.exec(query).all()
    return success([PaymentMethodRead.model_validate(m).model_dump() for m in methods])


@router.post("/methods", status_code=status.HTTP_201_CREATED)
def create_payment_method(
    data: PaymentMethodCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    method = PaymentMethod(**data.model_dump())

    session.add(method)
    session.commit()
    session.refresh(method)

    return success(
        PaymentMethodRead.model_validate(method).model_dump(),
        message="Payment method created successfully",
    )


@router.put("/methods/{method_id}")
def update_payment_method(
    method_id: int,
    data: PaymentMethodUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    method = _get_method(session, method_id)

    for key, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(method, key, value)
    method.updated_at = datetime.utcnow()

    session.add(method)
    session.commit()
    session.refresh(method)

    return success(
        PaymentMethodRead.model_validate(method).model_dump(),
        message="Payment method updated successfully",
    )


@router.delete("/methods/{method_id}")
def delete_payment_method(
    method_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    method = _get_method(session, method_id)

    session.delete(method)
    session.commit()

    return success(message="Payment method deleted successfully")


# ---------------- PAYMENTS ----------------

@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit_payment, error_message=PAYMENT_MESSAGE)
def create_payment(
    request: Request,
    data: PaymentCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    file = session.get(DigitalFile, data.file_id)
    if not file:
        raise NotFound("File not found")

    if file.is_free:
        raise ValidationError("Free files do not require payment")

    purchase = find_purchase(session, current_user.id, file.id)
    if purchase and purchase.status == PurchaseStatus.completed.value:
        raise Conflict("You have already purchased this file")

    method = session.get(PaymentMethod, data.payment_method_id)
    if not method or not method.is_active:
        raise ValidationError("Invalid payment method")

    payment = Payment(
        user_id=current_user.id,
        file_id=file.id,
        payment_method_id=method.id,
        amount=file.price,
        status=PaymentStatus.pending.value,
        payment_details=method.details,
        payment_instructions=method.instructions,
    )

    session.add(payment)
    session.commit()
    session.refresh(payment)

    logger.info(f"Payment {payment.id} created by user {current_user.id} for file {file.id}")

    return success(
        {
            "payment_id": payment.id,
            "amount": payment.amount,
            "status": payment.status,
            "payment_method": method.name,
            "instructions": method.instructions,
            "details": method.details,
        },
        message="Payment created successfully",
    )


@router.get("")
def list_payments(
    user_id: Optional[int] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if current_user.is_admin:
        clauses = [Payment.user_id == user_id] if user_id is not None else []
    else:
        clauses = [Payment.user_id == current_user.id]

    return success(_payment_rows(session, *clauses))


@router.get("/{payment_id}")
def get_payment(
    payment_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    payment = _get_visible_payment(session, payment_id, current_user)
    return success(_payment_rows(session, Payment.id == payment.id)[0])


@router.post("/{payment_id}/verify")
def verify_payment(
    payment_id: int,
    data: PaymentVerify,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    payment = session.get(Payment, payment_id)
    if not payment:
        raise NotFound("Payment not found")

    if data.status not in PAYMENT_TRANSITIONS.get(payment.status, []):
        raise InvalidState("Payment is not pending")

    purchase = None
    if data.status == PaymentStatus.completed.value:
        purchase = find_purchase(session, payment.user_id, payment.file_id)
        if (
            purchase is not None
            and purchase.status == PurchaseStatus.completed.value
            and purchase.payment_id != payment.id
        ):
            raise Conflict("File has already been paid for by another payment")

    now = datetime.utcnow()
    payment.status = data.status
    payment.transaction_id = data.transaction_id
    payment.admin_notes = data.notes
    payment.verified_at = now
    payment.updated_at = now
    session.add(payment)

    if data.status == PaymentStatus.completed.value:
        if purchase is None:
            purchase = Purchase(
                user_id=payment.user_id,
                file_id=payment.file_id,
                amount=payment.amount,
            )
        purchase.payment_id = payment.id
        purchase.status = PurchaseStatus.completed.value
        purchase.updated_at = now
        session.add(purchase)

    session.commit()
    session.refresh(payment)

    logger.info(f"Payment {payment.id} verified as {payment.status} by admin {admin.id}")

    buyer = session.get(User, payment.user_id)
    file = session.get(DigitalFile, payment.file_id)
    if buyer and file:
        send_payment_result(buyer, file.title, payment.status, payment.amount)

    return success(
        _payment_rows(session, Payment.id == payment.id)[0],
        message=f"Payment {payment.status} successfully",
    )


@router.get("/{payment_id}/invoice")
def payment_invoice(
    payment_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    payment = _get_visible_payment(session, payment_id, current_user)
    return success(build_payment_invoice(session, payment).model_dump())
