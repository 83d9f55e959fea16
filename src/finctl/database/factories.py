"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from finctl.database.sqlalchemy_db import SQLAlchemyDatabase


def default_database_path() -> str:
    """The ledger file under ~/.finctl, creating the directory if needed."""
    ledger_dir = Path.home() / ".finctl"
    ledger_dir.mkdir(exist_ok=True)
    return str(ledger_dir / "finctl.db")


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite-backed database.

    The path falls back to FINCTL_DB_PATH and then to
    :func:`default_database_path`.
    """
    path = database_path or os.environ.get("FINCTL_DB_PATH") or default_database_path()
    return SQLAlchemyDatabase(f"sqlite:///{path}")


def create_database(
    database_url: Optional[str] = None, database_path: Optional[str] = None
) -> SQLAlchemyDatabase:
    """Create a database from a SQLAlchemy URL, falling back to SQLite.

    Args:
        database_url: Any SQLAlchemy URL. If None, checks FINCTL_DATABASE_URL.
        database_path: SQLite file used when no URL is configured.
    """
    url = database_url or os.environ.get("FINCTL_DATABASE_URL")
    if url:
        return SQLAlchemyDatabase(url)
    return create_sqlite_database(database_path=database_path)
