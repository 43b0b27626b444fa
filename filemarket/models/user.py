from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    password: str
    is_admin: bool = Field(default=False)
    is_verified: bool = Field(default=False)
    bio: Optional[str] = None
    avatar_url: Optional[str] = None

    reset_token: Optional[str] = Field(default=None, index=True)
    reset_token_expires: Optional[datetime] = None
    verification_token: Optional[str] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
