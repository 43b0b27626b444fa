from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime


class PaymentMethodCreate(BaseModel):
    name: str = Field(min_length=1)
    type: str = Field(min_length=1)
    details: str
    instructions: str
    is_active: bool = True


class PaymentMethodUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    details: Optional[str] = None
    instructions: Optional[str] = None
    is_active: Optional[bool] = None


class PaymentMethodRead(BaseModel):
    id: int
    name: str
    type: str
    details: Optional[str]
    instructions: Optional[str]
    is_active: bool

    class Config:
        from_attributes = True


class PaymentCreate(BaseModel):
    file_id: int
    payment_method_id: int


class PaymentVerify(BaseModel):
    transaction_id: str = Field(min_length=1)
    status: Literal["completed", "failed", "refunded"]
    notes: Optional[str] = None


class PaymentRead(BaseModel):
    id: int
    user_id: int
    file_id: int
    payment_method_id: Optional[int]
    amount: float
    status: str
    transaction_id: Optional[str]
    payment_details: Optional[str]
    payment_instructions: Optional[str]
    admin_notes: Optional[str]
    verified_at: Optional[datetime]
    created_at: datetime
    file_title: Optional[str] = None
    payment_method_name: Optional[str] = None

    class Config:
        from_attributes = True
