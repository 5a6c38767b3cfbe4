#!/usr/bin/env python3
"""Migration script to add the denormalized columns to the transactions table.

Databases created before these columns existed lack:
- bank_code (TEXT, nullable) copied from banks.code
- reference (TEXT, nullable) promoted from the raw bank record
- last_synced_at (DATETIME, nullable) downstream sync marker

After adding the columns the migration backfills bank_code and reference.
Running it again is harmless.

Usage:
    python migrations/migrate_add_bank_code.py [--db-path PATH]
"""

import sys

from sqlalchemy import inspect, text
from banker.database.factories import create_sqlite_database
from banker.domain.ingestion import IngestionService

NEW_COLUMNS = {
    "bank_code": "VARCHAR",
    "reference": "VARCHAR",
    "last_synced_at": "DATETIME",
}

NEW_INDEXES = {
    "ix_transactions_bank_code": "bank_code",
    "ix_transactions_bank_code_date": "bank_code, date",
}


def missing_columns(engine, table_name: str) -> list[str]:
    """Return the NEW_COLUMNS the table does not have yet."""
    inspector = inspect(engine)
    existing = {col["name"] for col in inspector.get_columns(table_name)}
    return [name for name in NEW_COLUMNS if name not in existing]


def migrate_database(database_path: str | None = None) -> dict[str, int]:
    """Add missing columns and backfill them.

    Args:
        database_path: Path to database file. If None, uses default location.

    Returns:
        Dict with the number of columns added and rows backfilled
    """
    db = create_sqlite_database(database_path=database_path)
    db.connect()

    try:
        # Get engine from sessionmaker by creating a session and accessing its bind
        session = db.session_factory()
        try:
            engine = session.bind
        finally:
            session.close()

        if "transactions" not in inspect(engine).get_table_names():
            raise RuntimeError(
                "Table 'transactions' does not exist. Please initialize the database schema first."
            )

        added = missing_columns(engine, "transactions")
        with engine.begin() as conn:
            for name in added:
                conn.execute(text(f"ALTER TABLE transactions ADD COLUMN {name} {NEW_COLUMNS[name]}"))
                print(f"  Added column: {name}")
            for index_name, columns in NEW_INDEXES.items():
                conn.execute(
                    text(f"CREATE INDEX IF NOT EXISTS {index_name} ON transactions ({columns})")
                )

        service = IngestionService(db)
        bank_codes = service.backfill_bank_codes()
        references = service.backfill_references()
        print(f"  Backfilled bank_code on {bank_codes.updated} of {bank_codes.total} transactions")
        print(f"  Backfilled reference on {references.updated} of {references.total} transactions")

        return {
            "columns_added": len(added),
            "bank_codes": bank_codes.updated,
            "references": references.updated,
        }
    finally:
        db.disconnect()


def main():
    """Main entry point for migration script."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Migrate database to add bank_code, reference and last_synced_at"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to database file (overrides BANKER_DB_PATH environment variable)",
    )
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path)
        print("Migration completed successfully!")
        return 0
    except Exception as e:
        print(f"\nMigration failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
