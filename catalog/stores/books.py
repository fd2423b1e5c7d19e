"""Book catalog and the user <-> book library association"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError

from catalog.core.exceptions import NotFoundError
from catalog.core.logger import get_logger
from catalog.models import BookRecord

from .database import BookRow, Database, user_books

logger = get_logger(__name__)


def _is_duplicate_entry(error: IntegrityError) -> bool:
    """True for a primary-key collision, False for a dangling foreign key."""
    # sqlite: "UNIQUE constraint failed", postgres: "duplicate key value", mysql: "Duplicate entry"
    message = str(error.orig).lower()
    return "unique" in message or "duplicate" in message


class BookStore:
    def __init__(self, db: Database):
        self.db = db

    def find_all(self) -> List[BookRecord]:
        with self.db.session() as session:
            rows = session.scalars(select(BookRow).order_by(BookRow.id))
            return [BookRecord.model_validate(row) for row in rows]

    def find_by_title(self, title: str) -> Optional[BookRecord]:
        with self.db.session() as session:
            row = session.scalars(select(BookRow).where(BookRow.title == title)).first()
            return BookRecord.model_validate(row) if row else None

    def create_many(self, books: Iterable[Dict[str, str]]) -> List[BookRecord]:
        with self.db.session() as session:
            rows = [BookRow(title=b["title"], author=b["author"], genre=b["genre"]) for b in books]
            session.add_all(rows)
            session.flush()
            records = [BookRecord.model_validate(row) for row in rows]
        logger.info("Books added", count=len(records))
        return records

    def add_to_library(self, user_id: int, book_id: int) -> bool:
        """
        Associate a book with a user. Returns False if it was already there.

        Raises NotFoundError when the user or the book no longer exists.
        """
        try:
            with self.db.session() as session:
                session.execute(insert(user_books).values(user_id=user_id, book_id=book_id))
        except IntegrityError as e:
            if _is_duplicate_entry(e):
                return False
            raise NotFoundError("User or book no longer exists") from e
        return True

    def remove_from_library(self, user_id: int, book_id: int) -> bool:
        with self.db.session() as session:
            result = session.execute(
                delete(user_books).where(
                    user_books.c.user_id == user_id, user_books.c.book_id == book_id
                )
            )
            return result.rowcount > 0

    def books_for(self, user_id: int) -> List[BookRecord]:
        stmt = (
            select(BookRow)
            .join(user_books, user_books.c.book_id == BookRow.id)
            .where(user_books.c.user_id == user_id)
            .order_by(BookRow.title)
        )
        with self.db.session() as session:
            return [BookRecord.model_validate(row) for row in session.scalars(stmt)]

    def count_for(self, user_id: int) -> int:
        stmt = select(func.count()).select_from(user_books).where(user_books.c.user_id == user_id)
        with self.db.session() as session:
            return session.scalar(stmt) or 0
