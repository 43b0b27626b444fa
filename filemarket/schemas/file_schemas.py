from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class FileRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    price: float
    is_free: bool
    file_name: str
    file_size: int
    file_type: Optional[str] = None
    preview_url: Optional[str] = None
    download_url: Optional[str] = None
    is_downloadable: bool
    download_limit_days: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @classmethod
    def from_row(cls, file, category_name: Optional[str] = None) -> "FileRead":
        return cls.model_validate(file).model_copy(update={"category_name": category_name})


class SearchFileRead(FileRead):
    category_slug: Optional[str] = None
    purchase_count: int = 0
