from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class SiteSetting(SQLModel, table=True):
    __tablename__ = "site_settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    key_name: str = Field(index=True, unique=True)
    value: Optional[str] = None

    updated_at: datetime = Field(default_factory=datetime.utcnow)
