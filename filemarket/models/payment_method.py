from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class PaymentMethod(SQLModel, table=True):
    __tablename__ = "payment_methods"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    type: str
    details: Optional[str] = None   # opaque payload, usually JSON text
    instructions: Optional[str] = None
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
