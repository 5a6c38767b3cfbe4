"""Tests for the ingestion service."""

import threading
from datetime import datetime, UTC
from decimal import Decimal

import pytest

from banker.database.models import Transaction as ORMTransaction
from banker.domain.errors import DuplicateTransactionError, NotFoundError, ValidationError
from banker.domain.events import EVENT_TRANSACTION_CREATED
from banker.domain.ingestion import IngestionService, reference_from_raw
from banker.domain.normalizer import normalize_transaction
from banker.utils.keyed_lock import KeyedLock


def test_ingest_new_transaction(ingestion_service, temp_db, make_transaction):
    """A new transaction is stored with one creation event."""
    txn = make_transaction(reference="REF1", account_id="0134")

    result = ingestion_service.ingest([txn])

    assert result.inserted_count == 1
    assert result.skipped_duplicates == 0
    assert result.total_processed == 1

    stored = temp_db.get_transaction(result.inserted_ids[0])
    assert stored.txn_key == txn.txn_key
    assert stored.bank_code == "banesco"
    assert stored.reference == "REF1"
    assert stored.account_id == "0134"
    assert stored.amount == Decimal("100.50")

    events = temp_db.list_events_for_transaction(stored.id)
    assert len(events) == 1
    assert events[0].type == EVENT_TRANSACTION_CREATED
    assert events[0].acknowledged is False
    assert events[0].bank_code == "banesco"
    assert events[0].amount == Decimal("100.50")
    assert events[0].description == "Test transaction"


def test_reingest_is_idempotent(ingestion_service, temp_db, make_transaction):
    """Ingesting the same batch twice stores nothing new."""
    batch = [make_transaction(description=f"Movimiento {i}") for i in range(3)]

    first = ingestion_service.ingest(batch)
    second = ingestion_service.ingest(batch)

    assert first.inserted_count == 3
    assert second.inserted_count == 0
    assert second.skipped_duplicates == 3
    assert second.inserted_ids == []
    assert temp_db.count_transactions() == 3
    assert len(temp_db.list_events(limit=100)) == 3


def test_duplicates_within_one_batch(ingestion_service, temp_db, make_transaction):
    """Repeated records in one batch are stored once."""
    txn = make_transaction()

    result = ingestion_service.ingest([txn, txn, txn])

    assert result.inserted_count == 1
    assert result.skipped_duplicates == 2
    assert result.inserted_count + result.skipped_duplicates == result.total_processed


def test_sign_does_not_create_second_row(ingestion_service, temp_db):
    """Positive and negative forms of an amount are the same transaction."""
    base = {"date": "2025-01-15", "description": "Test transaction", "type": "debit"}
    positive = normalize_transaction("banesco", {**base, "amount": 100.50})
    negative = normalize_transaction("banesco", {**base, "amount": -100.50})

    result = ingestion_service.ingest([positive, negative])

    assert result.inserted_count == 1
    assert result.skipped_duplicates == 1


def test_duplicate_keeps_original_description(ingestion_service, temp_db, make_transaction):
    """A duplicate matched by reference does not overwrite the description."""
    first = make_transaction(reference="REF123456", description="X")
    second = make_transaction(reference="REF123456", description="Y")
    assert first.txn_key == second.txn_key

    ingestion_service.ingest([first])
    result = ingestion_service.ingest([second])

    assert result.skipped_duplicates == 1
    stored = temp_db.get_transaction_by_key(first.txn_key)
    assert stored.description == "X"


def test_duplicate_backfills_empty_description(ingestion_service, temp_db, make_transaction):
    """A stored row with an empty description takes the duplicate's one."""
    legacy = make_transaction(reference="REF777", description="X")
    txn_id = ingestion_service.ingest([legacy]).inserted_ids[0]

    # Legacy rows could be written with a blank description
    session = temp_db._get_session()
    row = session.query(ORMTransaction).filter(ORMTransaction.id == txn_id).one()
    row.description = ""
    row.updated_at = datetime(2024, 1, 1, tzinfo=UTC)
    session.commit()
    before = temp_db.get_transaction(txn_id)
    assert before.description == ""

    duplicate = make_transaction(reference="REF777", description="Y")
    assert duplicate.txn_key == legacy.txn_key
    result = ingestion_service.ingest([duplicate])

    assert result.skipped_duplicates == 1
    after = temp_db.get_transaction(txn_id)
    assert after.description == "Y"
    assert after.updated_at > before.updated_at
    assert len(temp_db.list_events_for_transaction(txn_id)) == 1
    assert len(temp_db.list_events(limit=100)) == 1


def test_amount_keeps_input_precision(ingestion_service, temp_db, make_transaction):
    """Amounts with more than two decimals are stored as given."""
    txn = make_transaction(amount="12.345", balance="-1000.125")

    result = ingestion_service.ingest([txn])

    stored = temp_db.get_transaction_by_key(txn.txn_key)
    assert stored.amount == Decimal("12.345")
    assert str(stored.amount) == "12.345"
    assert stored.balance == Decimal("-1000.125")
    assert stored.txn_key == make_transaction(amount=stored.amount).txn_key
    event = temp_db.list_events_for_transaction(result.inserted_ids[0])[0]
    assert event.amount == Decimal("12.345")


def test_whole_amount_reads_back_without_padding(ingestion_service, temp_db, make_transaction):
    """A whole amount is not returned with trailing decimal zeros."""
    txn = make_transaction(amount="100")

    ingestion_service.ingest([txn])

    assert str(temp_db.get_transaction_by_key(txn.txn_key).amount) == "100"


def test_duplicate_backfills_missing_reference(ingestion_service, temp_db, make_transaction):
    """A duplicate carrying a reference fills the empty stored one."""
    without = make_transaction()
    # Same key, reference only found inside raw
    with_ref = make_transaction(raw={"referenceNumber": "998877"})
    assert without.txn_key == with_ref.txn_key

    ingestion_service.ingest([without])
    before = temp_db.get_transaction_by_key(without.txn_key)
    assert before.reference is None

    ingestion_service.ingest([with_ref])

    after = temp_db.get_transaction_by_key(without.txn_key)
    assert after.reference == "998877"
    assert after.updated_at >= before.updated_at
    # raw is not refreshed from the duplicate
    assert after.raw is None


def test_duplicate_never_overwrites_reference(ingestion_service, temp_db, make_transaction):
    """An already stored reference is kept."""
    first = make_transaction(raw={"reference": "AAA"})
    second = make_transaction(raw={"reference": "BBB"})

    ingestion_service.ingest([first])
    ingestion_service.ingest([second])

    assert temp_db.get_transaction_by_key(first.txn_key).reference == "AAA"


def test_new_bank_created_once(ingestion_service, temp_db, make_transaction):
    """A batch for an unseen bank creates exactly one bank."""
    batch = [make_transaction(bank="mercantil", description=f"Mov {i}") for i in range(10)]

    result = ingestion_service.ingest(batch)

    assert result.inserted_count == 10
    banks = temp_db.list_banks()
    assert [b.code for b in banks] == ["mercantil"]
    assert banks[0].name == "Mercantil"
    assert banks[0].color == "#666666"

    stored = temp_db.list_recent_transactions(limit=100)
    assert len(stored) == 10
    assert {t.bank_id for t in stored} == {banks[0].id}
    assert {t.bank_code for t in stored} == {"mercantil"}


def test_known_bank_defaults(ingestion_service, temp_db, make_transaction):
    """Known banks get their curated name and color."""
    ingestion_service.ingest([make_transaction(bank="bnc")])

    bank = temp_db.get_bank_by_code("bnc")
    assert bank.name == "BNC"
    assert bank.color == "#E31837"


def test_default_account_fills_missing_only(ingestion_service, temp_db, make_transaction):
    """default_account_id applies only to records without an account."""
    own = make_transaction(description="A", account_id="OWN")
    bare = make_transaction(description="B")

    result = ingestion_service.ingest([own, bare], default_account_id="DEFAULT")

    accounts = [temp_db.get_transaction(i).account_id for i in result.inserted_ids]
    assert accounts == ["OWN", "DEFAULT"]


def test_ingest_transactions_account_override(ingestion_service, temp_db, make_transaction):
    """The trusted path's explicit account replaces the record's."""
    txn = make_transaction(account_id="OWN")

    result = ingestion_service.ingest_transactions("OVERRIDE", [txn])

    assert temp_db.get_transaction(result.inserted_ids[0]).account_id == "OVERRIDE"


def test_event_metadata_records_source(ingestion_service, temp_db, make_transaction):
    """Events note which ingestion path created them."""
    result = ingestion_service.ingest_transactions(None, [make_transaction()])

    events = temp_db.list_events_for_transaction(result.inserted_ids[0])
    assert events[0].metadata["source"] == "internal"


def test_ingest_from_external(ingestion_service, temp_db, make_transaction):
    """Valid external records are stored and invalid ones reported."""
    txn = make_transaction()
    records = [
        {
            "bank": txn.bank,
            "txnKey": txn.txn_key,
            "date": txn.date,
            "amount": 100.5,
            "description": txn.description,
            "type": txn.type,
        },
        {"bank": "banesco", "txnKey": "banesco-x", "date": "2025-01-15", "type": "debit"},
    ]

    result = ingestion_service.ingest_from_external(records)

    assert result.inserted_count == 1
    assert result.rejected == 1
    assert result.total_processed == 2
    assert result.inserted_count + result.skipped_duplicates + result.rejected == 2
    assert "Transaction 2" in result.errors[0]
    event = temp_db.list_events_for_transaction(result.inserted_ids[0])[0]
    assert event.metadata["source"] == "external"


def test_ingest_from_external_fail_fast(ingestion_service, temp_db):
    """fail_fast aborts before anything is stored."""
    records = [
        {
            "bank": "banesco",
            "txnKey": "banesco-0000000000000001",
            "date": "2025-01-15",
            "amount": 1,
            "description": "ok",
            "type": "debit",
        },
        {"bank": "banesco"},
    ]

    with pytest.raises(ValidationError, match="Transaction 2"):
        ingestion_service.ingest_from_external(records, fail_fast=True)

    assert temp_db.count_transactions() == 0


def test_empty_batch(ingestion_service):
    """An empty batch is a no-op."""
    result = ingestion_service.ingest([])

    assert result.inserted_count == 0
    assert result.skipped_duplicates == 0
    assert result.total_processed == 0


def test_lost_insert_race_counts_as_duplicate(temp_db, make_transaction, monkeypatch):
    """A uniqueness violation on insert falls back to the duplicate branch."""
    service = IngestionService(temp_db, locks=KeyedLock())
    txn = make_transaction()
    service.ingest([txn])

    # Simulate another process: the lookup misses, the insert collides
    real_lookup = temp_db.get_transaction_by_key
    calls = {"n": 0}

    def stale_lookup(key):
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return real_lookup(key)

    monkeypatch.setattr(temp_db, "get_transaction_by_key", stale_lookup)

    result = service.ingest([txn])

    assert result.inserted_count == 0
    assert result.skipped_duplicates == 1
    assert temp_db.count_transactions() == 1
    assert len(temp_db.list_events(limit=10)) == 1


def test_duplicate_insert_raises_at_store_level(temp_db, make_transaction):
    """The store itself refuses a second row with the same key."""
    txn = make_transaction()
    bank_id = temp_db.create_bank(code="banesco", name="Banesco")
    temp_db.insert_transaction_with_event(txn, bank_id, EVENT_TRANSACTION_CREATED)

    with pytest.raises(DuplicateTransactionError) as excinfo:
        temp_db.insert_transaction_with_event(txn, bank_id, EVENT_TRANSACTION_CREATED)

    assert excinfo.value.txn_key == txn.txn_key
    assert temp_db.count_transactions() == 1


def test_concurrent_ingest_same_key(temp_db, make_transaction):
    """Threads racing on one key insert it exactly once."""
    txn = make_transaction()
    results = []
    errors = []

    def worker():
        try:
            results.append(IngestionService(temp_db).ingest([txn]))
        except Exception as e:  # surfaced by the assertion below
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert sum(r.inserted_count for r in results) == 1
    assert sum(r.skipped_duplicates for r in results) == 7
    assert temp_db.count_transactions() == 1
    assert len(temp_db.list_events(limit=50)) == 1


def test_backfill_bank_codes(ingestion_service, temp_db, make_transaction):
    """Missing bank codes are copied from the bank row, once."""
    result = ingestion_service.ingest([make_transaction(), make_transaction(description="B")])
    txn_id = result.inserted_ids[0]
    temp_db.patch_transaction(txn_id, {"bank_code": None})

    first = ingestion_service.backfill_bank_codes()
    second = ingestion_service.backfill_bank_codes()

    assert (first.updated, first.total) == (1, 2)
    assert (second.updated, second.total) == (0, 2)
    assert temp_db.get_transaction(txn_id).bank_code == "banesco"


def test_backfill_references(ingestion_service, temp_db, make_transaction):
    """References found in raw are promoted to the top-level field."""
    ingestion_service.ingest(
        [
            make_transaction(description="A"),
            make_transaction(description="B", reference="KEEP"),
        ]
    )
    stored = temp_db.get_transaction_by_key(make_transaction(description="A").txn_key)
    # Rows ingested before references were promoted only had them in raw
    temp_db.patch_transaction(stored.id, {"reference": None})

    assert reference_from_raw({"referenceNumber": " 42 "}) == "42"
    assert reference_from_raw("not a mapping") is None

    result = ingestion_service.backfill_references()

    # Neither row has a reference inside raw, so nothing changes
    assert result.updated == 0
    assert result.total == 2


def test_backfill_references_from_raw(ingestion_service, temp_db, make_transaction):
    """A raw referenceNumber fills an empty reference."""
    txn = make_transaction(raw={"referenceNumber": "555"})
    result = ingestion_service.ingest([txn])
    txn_id = result.inserted_ids[0]
    temp_db.patch_transaction(txn_id, {"reference": None})

    backfill = ingestion_service.backfill_references()

    assert backfill.updated == 1
    assert temp_db.get_transaction(txn_id).reference == "555"
    assert ingestion_service.backfill_references().updated == 0


def test_cleanup_transaction(ingestion_service, temp_db, make_transaction):
    """Cleanup deletes the transaction and its events."""
    result = ingestion_service.ingest([make_transaction()])
    txn_id = result.inserted_ids[0]

    deleted_events = ingestion_service.cleanup_transaction(txn_id)

    assert deleted_events == 1
    assert temp_db.get_transaction(txn_id) is None
    assert temp_db.list_events(limit=10) == []

    with pytest.raises(NotFoundError):
        ingestion_service.cleanup_transaction(txn_id)


def test_cleaned_up_transaction_can_be_reingested(ingestion_service, temp_db, make_transaction):
    """Deleting a row frees its key."""
    txn = make_transaction()
    first = ingestion_service.ingest([txn])
    ingestion_service.cleanup_transaction(first.inserted_ids[0])

    second = ingestion_service.ingest([txn])

    assert second.inserted_count == 1


def test_find_cleanup_candidates(ingestion_service, make_transaction):
    """Candidates are transactions without reference, optionally per bank."""
    ingestion_service.ingest(
        [
            make_transaction(bank="banesco", description="A"),
            make_transaction(bank="banesco", description="B", reference="R"),
            make_transaction(bank="bnc", description="C"),
        ]
    )

    banesco = ingestion_service.find_cleanup_candidates("banesco")
    everything = ingestion_service.find_cleanup_candidates()
    all_banesco = ingestion_service.find_cleanup_candidates("banesco", missing_reference=False)

    assert [t.description for t in banesco] == ["A"]
    assert {t.description for t in everything} == {"A", "C"}
    assert {t.description for t in all_banesco} == {"A", "B"}


def test_force_resync(ingestion_service, transaction_service, make_transaction):
    """Clearing the sync marker makes transactions pending again."""
    result = ingestion_service.ingest(
        [make_transaction(bank="banesco"), make_transaction(bank="bnc")]
    )
    transaction_service.mark_transactions_synced(result.inserted_ids)
    assert transaction_service.get_transactions_pending_sync() == []

    assert ingestion_service.force_resync("bnc") == 1
    pending = transaction_service.get_transactions_pending_sync()
    assert [t.bank_code for t in pending] == ["bnc"]

    assert ingestion_service.force_resync() == 1
    assert len(transaction_service.get_transactions_pending_sync()) == 2
