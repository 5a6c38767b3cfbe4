"""Domain model entities for banker.

These are pure data classes representing business concepts, independent of
the database schema. Services exchange these with the database layer so the
ingestion rules stay stable when the storage backend changes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

TransactionType = Literal["debit", "credit"]

TRANSACTION_TYPES: tuple[str, ...] = ("debit", "credit")


@dataclass(frozen=True)
class Bank:
    """Bank institution domain entity."""

    id: int
    code: str
    name: str
    logo_url: Optional[str]
    color: Optional[str]
    active: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Stored transaction domain entity."""

    id: int
    bank_id: int
    bank_code: Optional[str]
    account_id: Optional[str]
    txn_key: str
    reference: Optional[str]
    date: str
    amount: Decimal
    description: str
    type: str
    balance: Optional[Decimal]
    raw: Any
    last_synced_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Event:
    """Notification event domain entity."""

    id: int
    type: str
    transaction_id: Optional[int]
    bank_id: Optional[int]
    bank_code: Optional[str]
    amount: Optional[Decimal]
    description: Optional[str]
    metadata: Optional[dict[str, Any]]
    acknowledged: bool
    created_at: datetime


@dataclass(frozen=True)
class NormalizedTransaction:
    """Canonical cross-bank transaction, ready for ingestion.

    ``amount`` is always a non-negative magnitude; the sign lives in ``type``.
    ``raw`` holds the untransformed bank record and may be None when the
    caller asked for a lightweight payload.
    """

    bank: str
    txn_key: str
    date: str
    amount: Decimal
    description: str
    type: str
    reference: Optional[str] = None
    account_id: Optional[str] = None
    balance: Optional[Decimal] = None
    raw: Any = None


@dataclass(frozen=True)
class Account:
    """Bank account as reported by a fetcher."""

    id: str
    name: Optional[str] = None
    currency: Optional[str] = None


@dataclass
class IngestResult:
    """Outcome of one ingestion batch.

    ``inserted_count + skipped_duplicates + rejected == total_processed``.
    """

    inserted_count: int = 0
    skipped_duplicates: int = 0
    inserted_ids: list[int] = field(default_factory=list)
    total_processed: int = 0
    rejected: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class BackfillResult:
    """Outcome of a bulk backfill pass."""

    updated: int
    total: int
