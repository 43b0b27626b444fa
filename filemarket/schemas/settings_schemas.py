from pydantic import BaseModel, Field
from typing import Optional


class SiteSettingsRead(BaseModel):
    site_name: str
    currency: str
    tax_rate: float


class SiteSettingsUpdate(BaseModel):
    site_name: Optional[str] = Field(default=None, min_length=1)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    tax_rate: Optional[float] = Field(default=None, ge=0, le=100)
