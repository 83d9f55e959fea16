"""Database layer for finctl application."""

from finctl.database.base import Database
from finctl.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
