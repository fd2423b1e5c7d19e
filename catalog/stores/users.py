"""
User storage backed by the relational store.
Uniqueness of username and email is enforced by the database; collisions
surface here as ConflictError naming the offending field.
"""

from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from catalog.core.exceptions import ConflictError, InternalError
from catalog.core.logger import get_logger
from catalog.models import UserRecord

from .database import Database, UserRow

logger = get_logger(__name__)

LOOKUP_FIELDS = ("id", "username", "email")
UPDATABLE_FIELDS = ("username", "email", "password")
UNIQUE_FIELDS = ("username", "email")


def _conflicting_field(error: IntegrityError) -> Optional[str]:
    """Work out which unique column an IntegrityError refers to."""
    message = str(error.orig).lower()
    for field in UNIQUE_FIELDS:
        # sqlite: "users.email", postgres: "(email)=", mysql: "users.email" / "'email'"
        if f"users.{field}" in message or f"({field})" in message or f"'{field}'" in message:
            return field
    return None


def _translate(error: IntegrityError) -> Exception:
    field = _conflicting_field(error)
    if field is None:
        return InternalError("Could not save user")
    return ConflictError(field, f"A user with that {field} already exists")


class UserStore:
    """CRUD operations on users"""

    def __init__(self, db: Database):
        self.db = db

    def find_one(self, **criteria: Any) -> Optional[UserRecord]:
        """Return the user matching every criterion, or None."""
        unknown = set(criteria) - set(LOOKUP_FIELDS)
        if unknown or not criteria:
            raise ValueError(f"Unsupported lookup: {sorted(unknown) or 'no criteria'}")
        with self.db.session() as session:
            row = session.scalars(select(UserRow).filter_by(**criteria)).first()
            return UserRecord.model_validate(row) if row else None

    def find_all(self, username_prefix: Optional[str] = None) -> List[UserRecord]:
        stmt = select(UserRow).order_by(UserRow.id)
        if username_prefix:
            stmt = stmt.where(UserRow.username.startswith(username_prefix, autoescape=True))
        with self.db.session() as session:
            return [UserRecord.model_validate(row) for row in session.scalars(stmt)]

    def create(self, username: str, email: str, password: str) -> UserRecord:
        """Insert a user. ``password`` must already be a digest."""
        try:
            with self.db.session() as session:
                row = UserRow(username=username, email=email, password=password)
                session.add(row)
                session.flush()
                record = UserRecord.model_validate(row)
        except IntegrityError as e:
            raise _translate(e) from e
        logger.info("User created", user_id=record.id, username=record.username)
        return record

    def update(self, user_id: int, **fields: Any) -> Optional[UserRecord]:
        """Apply the given fields; return the new snapshot, or None if the user is gone."""
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")
        try:
            with self.db.session() as session:
                row = session.get(UserRow, user_id)
                if row is None:
                    return None
                for key, value in fields.items():
                    setattr(row, key, value)
                session.flush()
                record = UserRecord.model_validate(row)
        except IntegrityError as e:
            raise _translate(e) from e
        logger.info("User updated", user_id=user_id, fields=sorted(fields))
        return record

    def destroy(self, user_id: int) -> bool:
        with self.db.session() as session:
            result = session.execute(delete(UserRow).where(UserRow.id == user_id))
            deleted = result.rowcount > 0
        if deleted:
            logger.info("User deleted", user_id=user_id)
        return deleted
