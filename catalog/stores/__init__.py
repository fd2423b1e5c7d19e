"""Persistence layer: SQLAlchemy engine, ORM rows and stores."""

from .books import BookStore
from .database import Database, create_db_engine, init_database
from .users import UserStore

__all__ = ["BookStore", "Database", "UserStore", "create_db_engine", "init_database"]
