"""Database layer for banker application."""

from banker.database.base import Database
from banker.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
