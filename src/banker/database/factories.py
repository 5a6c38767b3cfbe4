"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from banker.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV = "BANKER_DB_PATH"


def resolve_database_path(database_path: Optional[str] = None) -> str:
    """Resolve the SQLite file path.

    Args:
        database_path: Explicit path. If None, checks BANKER_DB_PATH environment
            variable, then defaults to ~/.banker/banker.db
    """
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV)

    if database_path is None:
        db_dir = Path.home() / ".banker"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "banker.db")

    return database_path


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    database_url = f"sqlite:///{resolve_database_path(database_path)}"
    return SQLAlchemyDatabase(database_url)
