from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from typing import Optional
from datetime import datetime


class Purchase(SQLModel, table=True):
    __tablename__ = "purchases"
    __table_args__ = (
        UniqueConstraint("user_id", "file_id", name="uq_purchases_user_file"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    file_id: int = Field(foreign_key="files.id", ondelete="CASCADE", index=True)
    payment_id: Optional[int] = Field(
        default=None, foreign_key="payments.id", ondelete="SET NULL"
    )

    amount: float = Field(nullable=False)
    status: str = Field(default="pending")  # pending | completed | failed | refunded

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
