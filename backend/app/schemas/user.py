from datetime import datetime
import re
from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator, model_validator

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)[a-zA-Z\d@$!%*?&]{8,}$")
PASSWORD_RULES = "Password must be at least 8 characters with an uppercase letter, a lowercase letter and a digit"


def _normalize_email(value: str) -> str:
    return value.strip().lower()


def _normalize_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    normalized = value.strip()
    if len(normalized) < 2:
        raise ValueError("Name must be at least 2 characters")
    return normalized


def _check_password(value: str) -> str:
    if not PASSWORD_PATTERN.match(value):
        raise ValueError(PASSWORD_RULES)
    return value


class UserBase(BaseModel):
    email: EmailStr
    full_name: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value) if isinstance(value, str) else value

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_name(value)


class UserCreate(UserBase):
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _check_password(value)


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_email(value) if isinstance(value, str) else value

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_name(value)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return _check_password(value)

    @model_validator(mode="after")
    def validate_passwords_differ(self) -> "PasswordChange":
        if self.current_password == self.new_password:
            raise ValueError("New password must differ from the current one")
        return self


class UserPublic(BaseModel):
    """Public user information exposed to other users"""
    id: int
    email: EmailStr
    full_name: Optional[str] = None

    class Config:
        from_attributes = True


class UserRead(UserPublic):
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
