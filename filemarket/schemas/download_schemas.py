from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class DownloadRead(BaseModel):
    id: int
    user_id: int
    file_id: int
    purchase_id: Optional[int]
    download_count: int
    last_downloaded_at: Optional[datetime]
    file_title: str
    preview_url: Optional[str]
    price: float

    class Config:
        from_attributes = True
