from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from typing import Optional
from datetime import datetime


class Download(SQLModel, table=True):
    __tablename__ = "downloads"
    __table_args__ = (
        UniqueConstraint("user_id", "file_id", name="uq_downloads_user_file"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    file_id: int = Field(foreign_key="files.id", ondelete="CASCADE", index=True)
    purchase_id: Optional[int] = Field(
        default=None, foreign_key="purchases.id", ondelete="SET NULL"
    )

    download_count: int = Field(default=0)
    last_downloaded_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
