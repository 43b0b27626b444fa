from datetime import date, datetime, time, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session, select

from filemarket.constants.statuses import PurchaseStatus
from filemarket.database import get_session
from filemarket.dependencies.admin import require_admin
from filemarket.exceptions import NotFound
from filemarket.models.purchase import Purchase
from filemarket.models.user import User
from filemarket.services.invoice_service import (
    build_invoice,
    get_visible_purchase,
    render_invoice_pdf,
)
from filemarket.services.settings_service import get_site_settings
from filemarket.utils.responses import success
from filemarket.utils.token import get_current_user

router = APIRouter()


@router.get("")
def list_invoices(
    status: Optional[PurchaseStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    query = select(Purchase)

    if not current_user.is_admin:
        query = query.where(Purchase.user_id == current_user.id)
    if status:
        query = query.where(Purchase.status == status.value)
    if start_date:
        query = query.where(Purchase.created_at >= datetime.combine(start_date, time.min))
    if end_date:
        # the whole end day is included
        query = query.where(
            Purchase.created_at < datetime.combine(end_date + timedelta(days=1), time.min)
        )

    purchases = session.exec(
        query.order_by(Purchase.created_at.desc(), Purchase.id.desc())
    ).all()

    site = get_site_settings(session)
    return success([
        build_invoice(session, purchase, site).model_dump() for purchase in purchases
    ])


@router.get("/{purchase_id}")
def get_invoice(
    purchase_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    purchase = get_visible_purchase(session, purchase_id, current_user)
    return success(build_invoice(session, purchase).model_dump())


@router.get("/{purchase_id}/pdf")
def get_invoice_pdf(
    purchase_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    purchase = get_visible_purchase(session, purchase_id, current_user)
    invoice = build_invoice(session, purchase)

    return Response(
        content=render_invoice_pdf(invoice),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{invoice.id}.pdf"'},
    )


@router.post("/{purchase_id}/generate")
def generate_invoice(
    purchase_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    purchase = session.get(Purchase, purchase_id)
    if not purchase:
        raise NotFound("Invoice (purchase) not found")

    return success(
        build_invoice(session, purchase).model_dump(),
        message="Invoice generated successfully",
    )
