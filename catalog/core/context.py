"""
Per-request and per-process state.

RequestContext belongs to exactly one request: the web layer creates it,
the pipeline executor threads it through each step, and it is dropped once
the response is written. Services is built once at startup and shared
read-only by every request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from catalog.auth.hasher import PasswordHasher
from catalog.auth.tokens import TokenService
from catalog.core.config import Settings
from catalog.models import UserRecord
from catalog.stores.books import BookStore
from catalog.stores.users import UserStore


@dataclass
class RequestContext:
    """Everything a pipeline step may read or write for one request."""
    path_params: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)
    body: Dict[str, Any] = field(default_factory=dict)
    token: Optional[str] = None

    # written by steps
    claims: Optional[Dict[str, Any]] = None
    user: Optional[UserRecord] = None
    username_changed: bool = False
    email_changed: bool = False
    password_changed: bool = False
    fields: Dict[str, Any] = field(default_factory=dict)  # sanitized body values
    digest: Optional[str] = None  # hash of fields["password"], never the plaintext

    def submitted(self, name: str) -> Any:
        """Sanitized value if a validator ran, else the raw body value."""
        if name in self.fields:
            return self.fields[name]
        return self.body.get(name)


@dataclass(frozen=True)
class Services:
    """Collaborators injected into every step and handler"""
    settings: Settings
    users: UserStore
    books: BookStore
    hasher: PasswordHasher
    tokens: TokenService

    @property
    def debug(self) -> bool:
        return self.settings.app.debug and not self.settings.is_production()
