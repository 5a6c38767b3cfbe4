"""Boundary validation for transactions pushed by external callers."""

from typing import Any, Mapping, Optional

from banker.domain.entities import TRANSACTION_TYPES, NormalizedTransaction
from banker.domain.errors import ValidationError, invalid_field, missing_field
from banker.domain.normalizer import coerce_amount


def _required_string(record: Mapping[str, Any], field_name: str) -> str:
    value = record.get(field_name)
    if value is None:
        raise ValidationError(missing_field(field_name))
    if not isinstance(value, str):
        raise ValidationError(invalid_field(field_name, value, "a string"))
    if not value.strip():
        raise ValidationError(missing_field(field_name))
    return value


def _optional_string(record: Mapping[str, Any], field_name: str) -> Optional[str]:
    value = record.get(field_name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(invalid_field(field_name, value, "a string"))
    return value or None


def validate_transaction_input(record: Mapping[str, Any]) -> NormalizedTransaction:
    """Validate one already-normalized transaction in wire form.

    The wire form uses the field names the scraper SDK emits: ``bank``,
    ``txnKey``, ``date``, ``amount``, ``description``, ``type`` and the
    optional ``reference``, ``accountId``, ``balance`` and ``raw``.

    Raises:
        ValidationError: If a required field is missing or has the wrong shape
    """
    if not isinstance(record, Mapping):
        raise ValidationError(invalid_field("transaction", record, "an object"))

    bank = _required_string(record, "bank")
    txn_key = _required_string(record, "txnKey")
    date = _required_string(record, "date")
    description = _required_string(record, "description")

    txn_type = record.get("type")
    if txn_type is None:
        raise ValidationError(missing_field("type"))
    if txn_type not in TRANSACTION_TYPES:
        raise ValidationError(invalid_field("type", txn_type, "'debit' or 'credit'"))

    amount = record.get("amount")
    if amount is None:
        raise ValidationError(missing_field("amount"))
    # Wire amounts must be numbers; bank-formatted strings belong to the normalizer.
    if isinstance(amount, str):
        raise ValidationError(invalid_field("amount", amount, "a number"))
    amount = coerce_amount(amount)

    balance = record.get("balance")
    if balance is not None:
        if isinstance(balance, str):
            raise ValidationError(invalid_field("balance", balance, "a number"))
        balance = coerce_amount(balance, "balance")

    return NormalizedTransaction(
        bank=bank,
        txn_key=txn_key,
        date=date,
        amount=abs(amount),
        description=description,
        type=txn_type,
        reference=_optional_string(record, "reference"),
        account_id=_optional_string(record, "accountId"),
        balance=balance,
        raw=record.get("raw"),
    )
