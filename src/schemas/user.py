"""Pydantic schemas for auth endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

MIN_PASSWORD_LENGTH = 6


class UserRegister(BaseModel):
    """Schema for registering a new user."""

    name: str = Field(max_length=100)
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=1024)

    @field_validator("name")
    @classmethod
    def check_name_not_empty(cls, v: str) -> str:
        """Validate name is not empty and trim surrounding whitespace."""
        if not v or not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()


class UserLogin(BaseModel):
    """Schema for logging in."""

    email: EmailStr
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    """Bearer token returned by register and login."""

    token: str


class UserResponse(BaseModel):
    """Response model for user info. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    created_at: datetime
