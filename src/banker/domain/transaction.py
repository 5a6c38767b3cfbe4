"""Transaction read paths and the external sync marker."""

from datetime import datetime, UTC
from typing import Optional
from banker.database.base import Database
from banker.domain.entities import Transaction as TransactionEntity
from banker.domain.errors import ValidationError


def _check_limit(limit: int) -> None:
    if limit <= 0:
        raise ValidationError(f"Limit must be positive, got {limit}")


class TransactionService:
    """Service for reading stored transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID."""
        return self.db.get_transaction(transaction_id)

    def get_transaction_by_key(self, txn_key: str) -> Optional[TransactionEntity]:
        """Get transaction by fingerprint."""
        return self.db.get_transaction_by_key(txn_key)

    def get_recent_transactions(
        self, bank_code: Optional[str] = None, limit: int = 50
    ) -> list[TransactionEntity]:
        """List most recently ingested transactions.

        Args:
            bank_code: Optional bank code filter
            limit: Maximum number of transactions

        Returns:
            List of transactions, newest first

        Raises:
            ValidationError: If limit is not positive
        """
        _check_limit(limit)
        return self.db.list_recent_transactions(bank_code=bank_code, limit=limit)

    def get_transactions_by_bank(self, bank_id: int, limit: int = 50) -> list[TransactionEntity]:
        """List most recently ingested transactions of one bank."""
        _check_limit(limit)
        return self.db.list_transactions_by_bank(bank_id, limit=limit)

    def get_transactions_pending_sync(self, limit: int = 100) -> list[TransactionEntity]:
        """Transactions the downstream integration has not seen in their current form."""
        _check_limit(limit)
        return self.db.list_transactions_pending_sync(limit=limit)

    def mark_transactions_synced(
        self, transaction_ids: list[int], synced_at: Optional[datetime] = None
    ) -> int:
        """Record that the downstream integration has pulled these transactions.

        Returns:
            Number of transactions marked
        """
        return self.db.set_last_synced_at(transaction_ids, synced_at or datetime.now(UTC))
