"""Route handlers and the startup wiring that builds their collaborators."""

from __future__ import annotations

from catalog.auth import PasswordHasher, TokenService
from catalog.core.config import Settings
from catalog.core.context import Services
from catalog.stores import BookStore, Database, UserStore


def build_services(settings: Settings, db: Database) -> Services:
    """Wire stores, hasher and token service around one database handle."""
    return Services(
        settings=settings,
        users=UserStore(db),
        books=BookStore(db),
        hasher=PasswordHasher(settings.auth.salt_rounds),
        tokens=TokenService(
            settings.auth.secret,
            settings.auth.token_ttl_minutes,
            settings.auth.algorithm,
        ),
    )
