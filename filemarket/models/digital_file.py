from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint
from typing import Optional
from datetime import datetime


class DigitalFile(SQLModel, table=True):
    __tablename__ = "files"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_files_price_non_negative"),
    )

    #main info
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    description: Optional[str] = None
    category_id: Optional[int] = Field(
        default=None, foreign_key="categories.id", ondelete="SET NULL"
    )

    #pricing
    price: float = Field(default=0.0)
    is_free: bool = Field(default=False)

    #stored asset
    file_name: str
    file_path: str
    file_size: int = 0
    file_type: Optional[str] = None
    preview_url: Optional[str] = None
    download_url: Optional[str] = None

    #access
    is_downloadable: bool = Field(default=True)
    download_limit_days: Optional[int] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
