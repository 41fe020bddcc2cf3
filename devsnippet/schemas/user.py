"""
schemas/user.py
---------------
Pydantic models for registration, login, profile edits and responses.

Security note:
  - hashed_password is NEVER included in any response schema.
  - UserPublic (profile lookup by username) also omits the email.
"""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator

from devsnippet.models.user import UserRole


def _strip(value):
    """Trim surrounding whitespace before length constraints are checked."""
    return value.strip() if isinstance(value, str) else value


class UserRegister(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, examples=["alice"])
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v):
        return _strip(v)


class LoginRequest(BaseModel):
    # Plain str: a malformed email must fail exactly like an unknown one
    email: str
    password: str


class ProfileUpdate(BaseModel):
    """Self-service edit. Omitted fields are left unchanged; bio may be ''."""
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    bio: Optional[str] = Field(default=None, max_length=500)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v):
        return _strip(v)


class AvatarUpdate(BaseModel):
    url: str = Field(..., min_length=1)
    public_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("public_id", "publicId"),
    )


class AdminUserUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    bio: Optional[str] = Field(default=None, max_length=500)
    role: Optional[UserRole] = None

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v):
        return _strip(v)


class UserRead(BaseModel):
    id: str
    username: str
    email: str
    role: str
    bio: str = ""
    profile_pic: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AdminUserRead(UserRead):
    post_count: int = 0


class UserPublic(BaseModel):
    id: str
    username: str
    role: str
    bio: str = ""
    profile_pic: Optional[str] = None
    created_at: datetime
    post_count: int = 0

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: UserRead


class AvatarResponse(BaseModel):
    url: str
    user: UserRead


class MessageResponse(BaseModel):
    message: str
