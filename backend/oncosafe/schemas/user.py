"""Pydantic schemas for user management."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from oncosafe.models.user import UserRole


class UserCreate(BaseModel):
    """Registration payload."""

    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    full_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: UserRole = UserRole.USER
    institution: str | None = None
    specialty: str | None = None
    license_number: str | None = None
    years_experience: int | None = Field(default=None, ge=0)
    preferences: dict[str, Any] | None = None
    password: str | None = Field(
        default=None,
        min_length=8,
        description="Only used when no external identity provider manages credentials",
    )


class UserUpdate(BaseModel):
    """Profile or role change. Only fields that are set are applied."""

    full_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: UserRole | None = None
    institution: str | None = None
    specialty: str | None = None
    license_number: str | None = None
    years_experience: int | None = Field(default=None, ge=0)
    preferences: dict[str, Any] | None = None
    is_active: bool | None = None


class UserResponse(BaseModel):
    """User as returned by the API. Never includes the credential hash."""

    model_config = ConfigDict(extra="ignore")

    id: str
    email: str
    full_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: str
    institution: str | None = None
    specialty: str | None = None
    license_number: str | None = None
    years_experience: int | None = None
    preferences: dict[str, Any] | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None


class UserDeleteResponse(BaseModel):
    success: bool
    hard: bool
    user: UserResponse | None = None
    error: str | None = None
