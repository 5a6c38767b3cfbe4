"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, making it easy to change when
the database schema changes.
"""

from decimal import Decimal
from typing import Optional

from banker.domain import entities as domain
from banker.database.models import (
    Bank as ORMBank,
    Event as ORMEvent,
    Transaction as ORMTransaction,
)


def _exact_amount(value: Optional[Decimal]) -> Optional[Decimal]:
    """Drop the zero padding that backends without a native decimal type add on read.

    ``Decimal("12.3450000000")`` becomes ``Decimal("12.345")`` and
    ``Decimal("100.0000000000")`` becomes ``Decimal("100")``.
    """
    if value is None:
        return None
    value = Decimal(value)
    if value == value.to_integral_value():
        return value.quantize(Decimal(1))
    return value.normalize()


def bank_to_domain(orm_bank: ORMBank) -> domain.Bank:
    """Convert SQLAlchemy Bank model to domain Bank entity."""
    return domain.Bank(
        id=orm_bank.id,
        code=orm_bank.code,
        name=orm_bank.name,
        logo_url=orm_bank.logo_url,
        color=orm_bank.color,
        active=orm_bank.active,
        created_at=orm_bank.created_at,
        updated_at=orm_bank.updated_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        bank_id=orm_transaction.bank_id,
        bank_code=orm_transaction.bank_code,
        account_id=orm_transaction.account_id,
        txn_key=orm_transaction.txn_key,
        reference=orm_transaction.reference,
        date=orm_transaction.date,
        amount=_exact_amount(orm_transaction.amount),
        description=orm_transaction.description,
        type=orm_transaction.type,
        balance=_exact_amount(orm_transaction.balance),
        raw=orm_transaction.raw,
        last_synced_at=orm_transaction.last_synced_at,
        created_at=orm_transaction.created_at,
        updated_at=orm_transaction.updated_at,
    )


def event_to_domain(orm_event: ORMEvent) -> domain.Event:
    """Convert SQLAlchemy Event model to domain Event entity."""
    return domain.Event(
        id=orm_event.id,
        type=orm_event.type,
        transaction_id=orm_event.transaction_id,
        bank_id=orm_event.bank_id,
        bank_code=orm_event.bank_code,
        amount=_exact_amount(orm_event.amount),
        description=orm_event.description,
        metadata=orm_event.event_metadata,
        acknowledged=orm_event.acknowledged,
        created_at=orm_event.created_at,
    )
