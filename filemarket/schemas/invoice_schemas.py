from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class InvoiceFile(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    price: float


class InvoiceUser(BaseModel):
    id: int
    name: str
    email: str


class InvoicePurchase(BaseModel):
    id: int
    file_id: int
    user_id: int
    payment_id: Optional[int] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    amount: float
    status: str
    created_at: datetime
    updated_at: datetime
    file: InvoiceFile
    user: InvoiceUser


class InvoiceView(BaseModel):
    id: str
    purchase_id: int
    amount: float
    status: str
    created_at: datetime
    purchase: InvoicePurchase
    site_name: str
    currency: str
    tax_rate: float
    tax_amount: float
    total: float


class PaymentInvoiceCustomer(BaseModel):
    name: Optional[str]
    email: Optional[str]


class PaymentInvoiceItem(BaseModel):
    description: Optional[str]
    amount: float


class PaymentInvoice(BaseModel):
    invoice_number: str
    date: str
    customer: PaymentInvoiceCustomer
    items: List[PaymentInvoiceItem]
    payment_method: Optional[str]
    status: str
    total: float
    transaction_id: str
    notes: str
