"""Client-side views of API resources."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Note(BaseModel):
    """A note as returned by the API."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    user_id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match on title or content; empty term matches all."""
        if not term:
            return True
        needle = term.casefold()
        return needle in self.title.casefold() or needle in self.content.casefold()


class User(BaseModel):
    """The authenticated user's public profile."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str
    email: str
    created_at: datetime
