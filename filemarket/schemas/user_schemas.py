import re
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime

PASSWORD_RULES = (
    (re.compile(r"[a-z]"), "one lowercase letter"),
    (re.compile(r"[A-Z]"), "one uppercase letter"),
    (re.compile(r"\d"), "one number"),
    (re.compile(r"[^A-Za-z\d]"), "one special character"),
)


def check_password_strength(password: str) -> str:
    missing = [label for rule, label in PASSWORD_RULES if not rule.search(password)]
    if missing:
        raise ValueError("Password must contain at least " + ", ".join(missing))
    return password


class NewPasswordMixin(BaseModel):
    password: str = Field(min_length=8, max_length=72)
    confirm_password: str

    @model_validator(mode="after")
    def validate_passwords(self):
        check_password_strength(self.password)
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserRegister(NewPasswordMixin):
    name: str = Field(min_length=2, max_length=50)
    email: EmailStr


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(NewPasswordMixin):
    token: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8, max_length=72)
    confirm_password: str

    @model_validator(mode="after")
    def validate_passwords(self):
        check_password_strength(self.new_password)
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None

    # bio and avatar_url may be cleared with null, name and email may not
    @field_validator("name", "email")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class AdminUserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    is_admin: Optional[bool] = None
    is_verified: Optional[bool] = None


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    is_admin: bool
    is_verified: bool
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
