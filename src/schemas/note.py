"""Pydantic schemas for note endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.note import MAX_TITLE_LENGTH


def _require_text(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{field} cannot be empty")
    return value


class NoteCreate(BaseModel):
    """
    Schema for creating a new note.

    Any owner/user field in the body is ignored; ownership comes from the
    authenticated token only.
    """

    title: str = Field(max_length=MAX_TITLE_LENGTH)
    content: str

    @field_validator("title")
    @classmethod
    def check_title_not_empty(cls, v: str) -> str:
        """Validate title is not empty."""
        return _require_text(v, "Title")

    @field_validator("content")
    @classmethod
    def check_content_not_empty(cls, v: str) -> str:
        """Validate content is not empty."""
        return _require_text(v, "Content")


class NoteUpdate(BaseModel):
    """
    Schema for a partial note update.

    Omitted (or null) fields are left unchanged; a field that is sent must
    not be empty.
    """

    title: str | None = Field(default=None, max_length=MAX_TITLE_LENGTH)
    content: str | None = None

    @field_validator("title")
    @classmethod
    def check_title_not_empty(cls, v: str | None) -> str | None:
        """Validate title is not empty (if provided)."""
        if v is None:
            return v
        return _require_text(v, "Title")

    @field_validator("content")
    @classmethod
    def check_content_not_empty(cls, v: str | None) -> str | None:
        """Validate content is not empty (if provided)."""
        if v is None:
            return v
        return _require_text(v, "Content")

    def changed_fields(self) -> dict[str, str]:
        """Fields to write: those sent with a non-null value."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class NoteResponse(BaseModel):
    """Schema for note responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    title: str
    content: str
    created_at: datetime
    updated_at: datetime


class NoteDeleteResponse(BaseModel):
    """Confirmation returned by DELETE."""

    msg: str = "Note removed"


class NoteTestUpdateResponse(BaseModel):
    """Response of the fallback update endpoint."""

    success: bool
    note: NoteResponse
