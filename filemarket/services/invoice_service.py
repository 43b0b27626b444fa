"""Invoices are never stored: each one is assembled from the purchase, its
file, the buyer, the optional payment and the site settings."""

import io
from datetime import datetime
from typing import Optional

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from sqlmodel import Session

from filemarket.exceptions import NotFound
from filemarket.models.digital_file import DigitalFile
from filemarket.models.payment import Payment
from filemarket.models.payment_method import PaymentMethod
from filemarket.models.purchase import Purchase
from filemarket.models.user import User
from filemarket.schemas.invoice_schemas import (
    InvoiceFile,
    InvoicePurchase,
    InvoiceUser,
    InvoiceView,
    PaymentInvoice,
    PaymentInvoiceCustomer,
    PaymentInvoiceItem,
)
from filemarket.services.settings_service import get_site_settings


def get_visible_purchase(session: Session, purchase_id: int, user: User) -> Purchase:
    """Load a purchase the caller may see.

    Someone else's purchase answers exactly like a missing one.
    """
    purchase = session.get(Purchase, purchase_id)
    if not purchase or (not user.is_admin and purchase.user_id != user.id):
        raise NotFound("Invoice (purchase) not found")
    return purchase


def build_invoice(
    session: Session,
    purchase: Purchase,
    site_settings: Optional[dict] = None,
) -> InvoiceView:
    file = session.get(DigitalFile, purchase.file_id)
    buyer = session.get(User, purchase.user_id)
    if not file or not buyer:
        raise NotFound("Invoice (purchase) not found")

    payment = session.get(Payment, purchase.payment_id) if purchase.payment_id else None
    method = None
    if payment and payment.payment_method_id:
        method = session.get(PaymentMethod, payment.payment_method_id)

    site = site_settings or get_site_settings(session)
    tax_amount = round(purchase.amount * site["tax_rate"] / 100, 2)

    return InvoiceView(
        id=f"INV-{purchase.id}",
        purchase_id=purchase.id,
        amount=purchase.amount,
        status=purchase.status,
        created_at=purchase.created_at,
        purchase=InvoicePurchase(
            id=purchase.id,
            file_id=purchase.file_id,
            user_id=purchase.user_id,
            payment_id=purchase.payment_id,
            payment_method=method.name if method else None,
            transaction_id=payment.transaction_id if payment else None,
            amount=purchase.amount,
            status=purchase.status,
            created_at=purchase.created_at,
            updated_at=purchase.updated_at,
            file=InvoiceFile(
                id=file.id,
                title=file.title,
                description=file.description,
                price=file.price,
            ),
            user=InvoiceUser(id=buyer.id, name=buyer.name, email=buyer.email),
        ),
        site_name=site["site_name"],
        currency=site["currency"],
        tax_rate=site["tax_rate"],
        tax_amount=tax_amount,
        total=round(purchase.amount + tax_amount, 2),
    )


def render_invoice_pdf(invoice: InvoiceView) -> bytes:
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    c.setTitle(invoice.id)

    y = 800
    c.setFont("Helvetica-Bold", 16)
    c.drawString(60, y, invoice.site_name)
    c.setFont("Helvetica", 11)
    y -= 30
    c.drawString(60, y, f"Invoice {invoice.id}")
    y -= 18
    c.drawString(60, y, f"Date: {invoice.created_at:%Y-%m-%d}")
    y -= 18
    c.drawString(60, y, f"Status: {invoice.status}")

    buyer = invoice.purchase.user
    y -= 30
    c.drawString(60, y, f"Billed to: {buyer.name} <{buyer.email}>")

    y -= 36
    c.setFont("Helvetica-Bold", 11)
    c.drawString(60, y, "Item")
    c.drawRightString(530, y, f"Amount ({invoice.currency})")
    c.setFont("Helvetica", 11)
    y -= 20
    c.drawString(60, y, invoice.purchase.file.title[:70])
    c.drawRightString(530, y, f"{invoice.amount:.2f}")

    y -= 30
    c.drawString(340, y, f"Tax ({invoice.tax_rate:g}%)")
    c.drawRightString(530, y, f"{invoice.tax_amount:.2f}")
    y -= 18
    c.setFont("Helvetica-Bold", 11)
    c.drawString(340, y, "Total")
    c.drawRightString(530, y, f"{invoice.total:.2f}")

    if invoice.purchase.payment_method:
        c.setFont("Helvetica", 10)
        y -= 36
        c.drawString(60, y, f"Paid with: {invoice.purchase.payment_method}")
        if invoice.purchase.transaction_id:
            y -= 14
            c.drawString(60, y, f"Transaction: {invoice.purchase.transaction_id}")

    c.showPage()
    c.save()
    return buffer.getvalue()


def build_payment_invoice(
    session: Session,
    payment: Payment,
    now: Optional[datetime] = None,
) -> PaymentInvoice:
    now = now or datetime.utcnow()
    buyer = session.get(User, payment.user_id)
    file = session.get(DigitalFile, payment.file_id)
    method = (
        session.get(PaymentMethod, payment.payment_method_id)
        if payment.payment_method_id
        else None
    )

    stamp = str(int(now.timestamp() * 1000))[-6:]

    return PaymentInvoice(
        invoice_number=f"INV-{payment.id}-{stamp}",
        date=f"{payment.created_at:%B} {payment.created_at.day}, {payment.created_at:%Y}",
        customer=PaymentInvoiceCustomer(
            name=buyer.name if buyer else None,
            email=buyer.email if buyer else None,
        ),
        items=[
            PaymentInvoiceItem(
                description=file.title if file else None,
                amount=payment.amount,
            )
        ],
        payment_method=method.name if method else None,
        status=payment.status,
        total=payment.amount,
        transaction_id=payment.transaction_id or "Pending",
        notes=payment.admin_notes or "",
    )
