"""Read-only snapshots handed out by the stores"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, field_validator


class UserRecord(BaseModel):
    """A persisted identity. ``password`` is always the bcrypt digest."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    username: str
    email: str
    password: str
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite drops the offset on the way back out
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    def public(self) -> Dict[str, Any]:
        """Projection safe to return to clients (no digest)."""
        return {"id": self.id, "username": self.username, "email": self.email}


class BookRecord(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    title: str
    author: str
    genre: str

    def public(self) -> Dict[str, Any]:
        return {"title": self.title, "author": self.author, "genre": self.genre}
