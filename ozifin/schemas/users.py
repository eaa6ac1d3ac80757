from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from ozifin.schemas.transactions import no_control_chars

ROLE_PATTERN = "^(admin|manager|sale)$"


# ------------------------------
# User Schemas
# ------------------------------
class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    display_name: str = Field(..., min_length=1, max_length=100)
    role: str = Field("sale", pattern=ROLE_PATTERN)


class UserCreate(UserBase):
    password: str = Field(..., min_length=6)


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    avatar_url: Optional[str] = None

    @field_validator("display_name")
    @classmethod
    def check_display_name(cls, v: Optional[str]) -> Optional[str]:
        return no_control_chars(v)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)


class UserResponse(UserBase):
    id: int
    avatar_url: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    users: list[UserResponse]
    count: int


# ------------------------------
# Login / Auth Schemas
# ------------------------------
class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
