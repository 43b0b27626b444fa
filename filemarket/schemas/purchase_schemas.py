from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from filemarket.constants.statuses import PurchaseStatus


class PurchaseCreate(BaseModel):
    file_id: int


class PurchaseStatusUpdate(BaseModel):
    status: PurchaseStatus


class PurchaseRead(BaseModel):
    id: int
    user_id: int
    file_id: int
    payment_id: Optional[int]
    amount: float
    status: str
    created_at: datetime
    updated_at: datetime
    file_title: Optional[str] = None
    preview_url: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None

    class Config:
        from_attributes = True
