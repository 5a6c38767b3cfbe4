"""Shared pytest fixtures for banker tests."""

import tempfile
import os
from decimal import Decimal
import pytest
from loguru import logger

from banker.database.factories import create_sqlite_database
from banker.domain.bank import BankService
from banker.domain.entities import NormalizedTransaction
from banker.domain.events import EventService
from banker.domain.fingerprint import fingerprint_transaction
from banker.domain.ingestion import IngestionService
from banker.domain.transaction import TransactionService
from banker.utils.keyed_lock import KeyedLock


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def bank_service(temp_db):
    """Create a BankService with a temporary database."""
    return BankService(temp_db)


@pytest.fixture
def ingestion_service(temp_db):
    """Create an IngestionService with its own lock table."""
    return IngestionService(temp_db, locks=KeyedLock())


@pytest.fixture
def event_service(temp_db):
    """Create an EventService with a temporary database."""
    return EventService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def make_transaction():
    """Build a NormalizedTransaction with a real fingerprint."""

    def _make(
        bank="banesco",
        date="2025-01-15",
        amount="100.50",
        description="Test transaction",
        type="debit",
        reference=None,
        account_id=None,
        raw=None,
        balance=None,
    ):
        amount = Decimal(str(amount))
        return NormalizedTransaction(
            bank=bank,
            txn_key=fingerprint_transaction(bank, date, amount, type, description, reference),
            date=date,
            amount=abs(amount),
            description=description,
            type=type,
            reference=reference,
            account_id=account_id,
            raw=raw,
            balance=Decimal(str(balance)) if balance is not None else None,
        )

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop sinks the CLI attached to a runner's stderr once a test ends."""
    yield
    logger.remove()
