"""
Pydantic schemas for User accounts.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

PASSWORD_MIN_LENGTH = 6
# bcrypt ignores everything past 72 bytes
PASSWORD_MAX_LENGTH = 72


def check_password(value: str) -> str:
    if " " in value or "\t" in value:
        raise ValueError("Password must not contain spaces")
    return value


class UserBase(BaseModel):
    """Base schema for user with common fields"""
    username: str = Field(..., min_length=2, max_length=50)
    email: EmailStr

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class UserCreate(UserBase):
    """Schema for signing up"""
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    confirm_password: str

    @field_validator("password")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        return check_password(v)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserOut(UserBase):
    """Schema for user output"""
    id: str
    profile_image: Optional[str] = None
    is_admin: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileImageIn(BaseModel):
    """Declared metadata of an uploaded profile image; the bytes live elsewhere"""
    reference: str = Field(..., min_length=1, max_length=500)
    filename: str = Field(..., min_length=1, max_length=255)
    mime_type: str = Field(..., min_length=1, max_length=100)
    size: int = Field(..., ge=0)
