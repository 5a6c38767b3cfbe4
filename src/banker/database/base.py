"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from banker.domain.entities import Bank, Event, NormalizedTransaction, Transaction


class Database(ABC):
    """Abstract store interface for banker.

    Implementations must enforce uniqueness of ``transactions.txn_key`` and
    ``banks.code`` and report violations as ``DuplicateTransactionError`` and
    ``DuplicateBankError`` rather than storing a second row.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Bank operations
    @abstractmethod
    def create_bank(
        self,
        code: str,
        name: str,
        logo_url: Optional[str] = None,
        color: Optional[str] = None,
        active: bool = True,
    ) -> int:
        """Create a bank. Returns bank ID.

        Raises:
            DuplicateBankError: If a bank with this code exists
        """
        pass

    @abstractmethod
    def get_bank(self, bank_id: int) -> Optional[Bank]:
        """Get bank by ID."""
        pass

    @abstractmethod
    def get_bank_by_code(self, code: str) -> Optional[Bank]:
        """Get bank by its unique code."""
        pass

    @abstractmethod
    def list_banks(self) -> list[Bank]:
        """List all banks."""
        pass

    @abstractmethod
    def update_bank(self, bank_id: int, fields: dict[str, Any]) -> None:
        """Patch bank fields (name, logo_url, color, active) and bump updated_at."""
        pass

    # Transaction operations
    @abstractmethod
    def insert_transaction_with_event(
        self,
        transaction: NormalizedTransaction,
        bank_id: int,
        event_type: str,
        account_id: Optional[str] = None,
        reference: Optional[str] = None,
        event_metadata: Optional[dict[str, Any]] = None,
    ) -> tuple[int, int]:
        """Insert a transaction and its creation event atomically.

        Returns:
            Tuple of (transaction ID, event ID)

        Raises:
            DuplicateTransactionError: If the txn_key is already stored
        """
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def get_transaction_by_key(self, txn_key: str) -> Optional[Transaction]:
        """Get transaction by fingerprint."""
        pass

    @abstractmethod
    def patch_transaction(self, transaction_id: int, fields: dict[str, Any]) -> None:
        """Patch backfillable fields (reference, bank_code, description) and bump updated_at."""
        pass

    @abstractmethod
    def list_recent_transactions(
        self, bank_code: Optional[str] = None, limit: int = 50
    ) -> list[Transaction]:
        """List transactions, most recently created first."""
        pass

    @abstractmethod
    def list_transactions_by_bank(self, bank_id: int, limit: int = 50) -> list[Transaction]:
        """List transactions of one bank, most recently created first."""
        pass

    @abstractmethod
    def list_transactions_missing_bank_code(self) -> list[Transaction]:
        """List transactions whose bank_code is empty."""
        pass

    @abstractmethod
    def list_transactions_missing_reference(
        self, bank_code: Optional[str] = None
    ) -> list[Transaction]:
        """List transactions whose reference is empty, optionally for one bank."""
        pass

    @abstractmethod
    def count_transactions(self) -> int:
        """Count all stored transactions."""
        pass

    @abstractmethod
    def list_transactions_pending_sync(self, limit: int = 100) -> list[Transaction]:
        """List transactions never synced externally or updated since their last sync."""
        pass

    @abstractmethod
    def set_last_synced_at(self, transaction_ids: list[int], synced_at: datetime) -> int:
        """Stamp the external sync marker. Returns number of rows changed."""
        pass

    @abstractmethod
    def clear_last_synced_at(self, bank_code: Optional[str] = None) -> int:
        """Clear the external sync marker. Returns number of rows changed."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> int:
        """Delete a transaction and its events. Returns number of events deleted."""
        pass

    # Event operations
    @abstractmethod
    def get_event(self, event_id: int) -> Optional[Event]:
        """Get event by ID."""
        pass

    @abstractmethod
    def list_events(
        self,
        event_type: Optional[str] = None,
        acknowledged: Optional[bool] = None,
        limit: int = 50,
        since: Optional[datetime] = None,
    ) -> list[Event]:
        """List events, most recently created first."""
        pass

    @abstractmethod
    def list_events_for_transaction(self, transaction_id: int) -> list[Event]:
        """List the events referencing a transaction."""
        pass

    @abstractmethod
    def set_event_acknowledged(self, event_id: int) -> bool:
        """Mark an event acknowledged. Returns False if it already was."""
        pass

    @abstractmethod
    def acknowledge_events(self, event_type: Optional[str] = None) -> int:
        """Acknowledge all pending events, optionally of one type. Returns count."""
        pass
