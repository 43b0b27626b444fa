from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Payment(SQLModel, table=True):
    __tablename__ = "payments"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    file_id: int = Field(foreign_key="files.id", ondelete="CASCADE", index=True)
    payment_method_id: Optional[int] = Field(
        default=None, foreign_key="payment_methods.id", ondelete="SET NULL"
    )

    amount: float
    status: str = Field(default="pending")  # pending | completed | failed | refunded
    transaction_id: Optional[str] = None

    # snapshot of the method at payment time
    payment_details: Optional[str] = None
    payment_instructions: Optional[str] = None

    admin_notes: Optional[str] = None
    verified_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
