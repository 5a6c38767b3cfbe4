"""Idempotent transaction ingestion."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping, Optional, Sequence

import loguru
from loguru import logger

from banker.database.base import Database
from banker.domain.bank import BankService
from banker.domain.entities import (
    BackfillResult,
    IngestResult,
    NormalizedTransaction,
    Transaction as TransactionEntity,
)
from banker.domain.errors import (
    DuplicateTransactionError,
    NotFoundError,
    ValidationError,
    transaction_not_found,
)
from banker.domain.events import EVENT_TRANSACTION_CREATED
from banker.domain.validation import validate_transaction_input
from banker.utils.keyed_lock import KeyedLock

# Process-wide, so separate IngestionService instances exclude each other
_TXN_KEY_LOCKS = KeyedLock()

RAW_REFERENCE_FIELDS = ("reference", "referenceNumber")


def reference_from_raw(raw: Any) -> Optional[str]:
    """Extract a reference number from a raw bank payload, if it carries one."""
    if not isinstance(raw, Mapping):
        return None
    for name in RAW_REFERENCE_FIELDS:
        value = raw.get(name)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def resolve_reference(transaction: NormalizedTransaction) -> Optional[str]:
    """Reference to store: the top-level one, else one found in ``raw``."""
    if transaction.reference and transaction.reference.strip():
        return transaction.reference.strip()
    return reference_from_raw(transaction.raw)


class IngestionLogger:
    """Handles all logging for IngestionService with business logic separated."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance

    def batch_start(self, count: int, source: str) -> None:
        """Log start of a batch."""
        self._logger.bind(count=count, source=source).debug(
            "Ingesting {} transactions ({})", count, source
        )

    def inserted(self, txn_key: str, transaction_id: int) -> None:
        """Log a newly stored transaction."""
        self._logger.bind(txn_key=txn_key, transaction_id=transaction_id).debug(
            "Stored {} as transaction {}", txn_key, transaction_id
        )

    def backfilled(self, txn_key: str, fields: list[str]) -> None:
        """Log fields backfilled on a duplicate."""
        self._logger.bind(txn_key=txn_key, fields=fields).info(
            "Backfilled {} on existing transaction {}", ", ".join(fields), txn_key
        )

    def lost_race(self, txn_key: str) -> None:
        """Log a uniqueness violation resolved as a duplicate."""
        self._logger.bind(txn_key=txn_key).warning(
            "Concurrent insert of {} detected, treating as duplicate", txn_key
        )

    def rejected(self, position: int, error: Exception) -> None:
        """Log a record rejected at the boundary."""
        self._logger.bind(position=position).warning(
            "Rejected transaction {}: {}", position, error
        )

    def batch_complete(self, result: IngestResult) -> None:
        """Log batch summary."""
        self._logger.bind(
            inserted=result.inserted_count,
            skipped=result.skipped_duplicates,
            rejected=result.rejected,
            total=result.total_processed,
        ).info(
            "Ingestion complete: {} new, {} duplicates, {} rejected of {}",
            result.inserted_count,
            result.skipped_duplicates,
            result.rejected,
            result.total_processed,
        )

    def backfill_complete(self, name: str, result: BackfillResult) -> None:
        """Log a bulk backfill summary."""
        self._logger.bind(updated=result.updated, total=result.total).info(
            "Backfill {}: updated {} of {} transactions", name, result.updated, result.total
        )


class IngestionService:
    """Service for idempotent ingestion of normalized transactions.

    For each record the lookup by ``txn_key`` and the insert run under a
    per-key lock, so two callers in this process never both insert the same
    fingerprint. Across processes the unique index on ``txn_key`` rejects the
    second insert and the loser falls back to the duplicate branch.
    """

    def __init__(
        self,
        db: Database,
        locks: Optional[KeyedLock] = None,
        logger_instance: loguru.Logger = logger,
    ):
        """Initialize ingestion service.

        Args:
            db: Database instance
            locks: Per-key lock table (defaults to the process-wide one)
            logger_instance: Logger to report through
        """
        self.db = db
        self.bank_service = BankService(db)
        self._locks = locks if locks is not None else _TXN_KEY_LOCKS
        self._logger = IngestionLogger(logger_instance)

    def ingest(
        self,
        transactions: Sequence[NormalizedTransaction],
        default_account_id: Optional[str] = None,
        source: str = "internal",
    ) -> IngestResult:
        """Store new transactions, skip known ones and emit creation events.

        Records are processed one at a time in input order and each one
        commits on its own, so an interrupted batch can be re-submitted whole:
        already stored records come back as duplicates.

        Args:
            transactions: Normalized transactions
            default_account_id: Account ID for records that carry none
            source: Label recorded in event metadata ("internal" or "external")

        Returns:
            IngestResult with ``inserted_count + skipped_duplicates == total_processed``
            (``rejected`` is always zero here)
        """
        result = IngestResult(total_processed=len(transactions))
        self._logger.batch_start(len(transactions), source)

        # Scoped to this call only
        bank_ids: dict[str, int] = {}

        for transaction in transactions:
            transaction_id = self._ingest_one(transaction, default_account_id, bank_ids, source)
            if transaction_id is None:
                result.skipped_duplicates += 1
            else:
                result.inserted_count += 1
                result.inserted_ids.append(transaction_id)

        self._logger.batch_complete(result)
        return result

    def ingest_transactions(
        self,
        account_id: Optional[str],
        transactions: Sequence[NormalizedTransaction],
    ) -> IngestResult:
        """Trusted ingestion path used by scheduled sync jobs.

        An explicit ``account_id`` replaces the account of every record.
        """
        if account_id:
            transactions = [replace(txn, account_id=account_id) for txn in transactions]
        return self.ingest(transactions, source="internal")

    def ingest_from_external(
        self,
        records: Sequence[Mapping[str, Any]],
        fail_fast: bool = False,
    ) -> IngestResult:
        """Ingestion path for callers outside the trusted boundary.

        Every record is validated first. Invalid records are skipped and
        reported in ``errors`` (counted in ``rejected``) unless ``fail_fast``
        is set, in which case the first one aborts before anything is stored.

        Returns:
            IngestResult whose ``total_processed`` counts every record given, so
            ``inserted_count + skipped_duplicates + rejected == total_processed``

        Raises:
            ValidationError: On the first invalid record when ``fail_fast``
        """
        valid: list[NormalizedTransaction] = []
        errors: list[str] = []

        for position, record in enumerate(records, start=1):
            try:
                valid.append(validate_transaction_input(record))
            except ValidationError as e:
                if fail_fast:
                    raise ValidationError(f"Transaction {position}: {e}") from e
                self._logger.rejected(position, e)
                errors.append(f"Transaction {position}: {e}")

        result = self.ingest(valid, source="external")
        result.total_processed = len(records)
        result.rejected = len(errors)
        result.errors = errors
        return result

    def _ingest_one(
        self,
        transaction: NormalizedTransaction,
        default_account_id: Optional[str],
        bank_ids: dict[str, int],
        source: str,
    ) -> Optional[int]:
        """Insert one transaction. Returns its ID, or None when it was a duplicate."""
        with self._locks.lock(transaction.txn_key):
            existing = self.db.get_transaction_by_key(transaction.txn_key)
            if existing is not None:
                self._backfill_duplicate(existing, transaction)
                return None

            bank_id = bank_ids.get(transaction.bank)
            if bank_id is None:
                bank_id = self.bank_service.get_or_create_bank(transaction.bank).id
                bank_ids[transaction.bank] = bank_id

            try:
                transaction_id, _ = self.db.insert_transaction_with_event(
                    transaction,
                    bank_id=bank_id,
                    event_type=EVENT_TRANSACTION_CREATED,
                    account_id=transaction.account_id or default_account_id,
                    reference=resolve_reference(transaction),
                    event_metadata={"source": source, "txnKey": transaction.txn_key},
                )
            except DuplicateTransactionError:
                # Another process stored it between our lookup and insert
                self._logger.lost_race(transaction.txn_key)
                existing = self.db.get_transaction_by_key(transaction.txn_key)
                if existing is None:
                    raise
                self._backfill_duplicate(existing, transaction)
                return None

        self._logger.inserted(transaction.txn_key, transaction_id)
        return transaction_id

    def _backfill_duplicate(
        self, existing: TransactionEntity, incoming: NormalizedTransaction
    ) -> list[str]:
        """Fill fields the stored copy lacks from an incoming duplicate.

        Populated fields are never overwritten, and ``raw`` is left as first
        stored. Returns the names of the fields written.
        """
        patches: dict[str, Any] = {}

        reference = resolve_reference(incoming)
        if reference and not existing.reference:
            patches["reference"] = reference
        if incoming.bank and not existing.bank_code:
            patches["bank_code"] = incoming.bank
        if incoming.description.strip() and not (existing.description or "").strip():
            patches["description"] = incoming.description

        if patches:
            self.db.patch_transaction(existing.id, patches)
            self._logger.backfilled(existing.txn_key, sorted(patches))
        return sorted(patches)

    # Maintenance operations
    def backfill_bank_codes(self) -> BackfillResult:
        """Set ``bank_code`` on transactions missing it, from their bank row.

        Safe to re-run; a second pass finds nothing to update.
        """
        codes = {bank.id: bank.code for bank in self.db.list_banks()}
        updated = 0
        for txn in self.db.list_transactions_missing_bank_code():
            code = codes.get(txn.bank_id)
            if code:
                self.db.patch_transaction(txn.id, {"bank_code": code})
                updated += 1

        result = BackfillResult(updated=updated, total=self.db.count_transactions())
        self._logger.backfill_complete("bank codes", result)
        return result

    def backfill_references(self) -> BackfillResult:
        """Promote a reference found in ``raw`` to the top-level field.

        Only transactions whose reference is empty are touched.
        """
        updated = 0
        for txn in self.db.list_transactions_missing_reference():
            reference = reference_from_raw(txn.raw)
            if reference:
                self.db.patch_transaction(txn.id, {"reference": reference})
                updated += 1

        result = BackfillResult(updated=updated, total=self.db.count_transactions())
        self._logger.backfill_complete("references", result)
        return result

    def force_resync(self, bank_code: Optional[str] = None) -> int:
        """Clear the external sync marker so the downstream integration re-pulls.

        Returns:
            Number of transactions whose marker was cleared
        """
        return self.db.clear_last_synced_at(bank_code)

    def find_cleanup_candidates(
        self, bank_code: Optional[str] = None, missing_reference: bool = True
    ) -> list[TransactionEntity]:
        """List transactions a cleanup pass would consider.

        A missing reference marks rows ingested before the reference was
        promoted. With ``missing_reference=False`` every transaction of the
        bank is a candidate.
        """
        if missing_reference:
            return self.db.list_transactions_missing_reference(bank_code)
        limit = max(self.db.count_transactions(), 1)
        return self.db.list_recent_transactions(bank_code=bank_code, limit=limit)

    def cleanup_transaction(self, transaction_id: int) -> int:
        """Delete a transaction and cascade-delete its events.

        Returns:
            Number of events deleted

        Raises:
            NotFoundError: If the transaction does not exist
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        with self._locks.lock(txn.txn_key):
            return self.db.delete_transaction(transaction_id)
