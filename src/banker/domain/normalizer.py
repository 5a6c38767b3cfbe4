"""Mapping of bank-specific raw transactions into the canonical shape."""

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Sequence

from banker.domain.entities import TRANSACTION_TYPES, NormalizedTransaction
from banker.domain.errors import ValidationError, invalid_field, missing_field
from banker.domain.fingerprint import fingerprint_transaction
from banker.utils.amount_parser import parse_amount

# Candidate field names, highest priority first. BNC emits referenceNumber
# and accountName; Banesco emits reference and accountId.
REFERENCE_FIELDS = ("referenceNumber", "reference", "reference_number")
ACCOUNT_FIELDS = ("accountId", "accountName", "account_id", "account_name")
PRECOMPUTED_KEY_FIELDS = ("id", "txnKey")


def _first_present(raw: Mapping[str, Any], fields: Sequence[str]) -> Optional[str]:
    for name in fields:
        value = raw.get(name)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def coerce_amount(value: Any, field_name: str = "amount") -> Decimal:
    """Turn a raw numeric or bank-formatted string amount into a signed Decimal.

    Raises:
        ValidationError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValidationError(invalid_field(field_name, value, "a number"))
    if isinstance(value, str):
        try:
            return parse_amount(value)
        except ValueError:
            raise ValidationError(invalid_field(field_name, value, "a number"))
    if isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, (int, Decimal)):
        result = Decimal(value)
    else:
        raise ValidationError(invalid_field(field_name, value, "a number"))
    if not result.is_finite():
        raise ValidationError(invalid_field(field_name, value, "a finite number"))
    return result


def _required_text(raw: Mapping[str, Any], field_name: str) -> str:
    value = raw.get(field_name)
    if value is None:
        raise ValidationError(missing_field(field_name))
    if not isinstance(value, str):
        raise ValidationError(invalid_field(field_name, value, "a string"))
    if not value.strip():
        raise ValidationError(missing_field(field_name))
    return value


def normalize_transaction(
    bank_code: str,
    raw: Mapping[str, Any],
    account_id: Optional[str] = None,
    include_raw: bool = True,
) -> NormalizedTransaction:
    """Normalize a bank-specific transaction into a NormalizedTransaction.

    Args:
        bank_code: Bank code (e.g., "banesco", "bnc")
        raw: Raw transaction as produced by the bank's fetcher
        account_id: Account identifier overriding any found in ``raw``
        include_raw: Attach the untransformed record as ``raw``

    Returns:
        The canonical transaction, with its fingerprint in ``txn_key``

    Raises:
        ValidationError: If ``date``, ``amount``, ``description`` or ``type``
            is missing or malformed
    """
    if not bank_code or not bank_code.strip():
        raise ValidationError(missing_field("bank"))
    if not isinstance(raw, Mapping):
        raise ValidationError("Transaction must be an object")

    date = _required_text(raw, "date")
    description = _required_text(raw, "description")

    if raw.get("amount") is None:
        raise ValidationError(missing_field("amount"))
    amount = coerce_amount(raw["amount"])

    txn_type = raw.get("type")
    if txn_type is None:
        raise ValidationError(missing_field("type"))
    if txn_type not in TRANSACTION_TYPES:
        raise ValidationError(invalid_field("type", txn_type, "'debit' or 'credit'"))

    reference = _first_present(raw, REFERENCE_FIELDS)
    resolved_account = account_id or _first_present(raw, ACCOUNT_FIELDS)

    balance = None
    if raw.get("balance") is not None:
        balance = coerce_amount(raw["balance"], "balance")

    # Some fetchers hash their own ids; reuse them so keys do not drift.
    existing_key = None
    for name in PRECOMPUTED_KEY_FIELDS:
        value = raw.get(name)
        if isinstance(value, str) and value:
            existing_key = value
            break

    txn_key = existing_key or fingerprint_transaction(
        bank_code, date, amount, txn_type, description, reference
    )

    return NormalizedTransaction(
        bank=bank_code,
        txn_key=txn_key,
        date=date,
        amount=abs(amount),
        description=description,
        type=txn_type,
        reference=reference,
        account_id=resolved_account,
        balance=balance,
        raw=dict(raw) if include_raw else None,
    )


def normalize_transactions(
    bank_code: str,
    raws: Sequence[Mapping[str, Any]],
    account_id: Optional[str] = None,
    include_raw: bool = True,
) -> list[NormalizedTransaction]:
    """Normalize multiple transactions with the same options."""
    return [
        normalize_transaction(bank_code, raw, account_id=account_id, include_raw=include_raw)
        for raw in raws
    ]
