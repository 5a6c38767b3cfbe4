"""Deterministic transaction fingerprints.

A fingerprint (``txn_key``) is the idempotency key for a transaction. It is
derived only from content the bank shows on every scrape, so re-fetching an
overlapping window of history yields the same keys:

    sha256("{bank}|{date}|{abs(amount)}|{type}|{identifier}")[:16]

prefixed with ``"{bank}-"``. The identifier is the bank reference when one
exists, otherwise the description. Two transactions with no reference that
share bank, date, amount, type and description collapse into one key; this
is accepted behaviour for re-scraped data and a known false-merge risk for
recurring fixed-amount movements.

Fields are joined with ``|``. A field that itself contains ``|`` can alias a
different tuple (``"a|b", "c"`` vs ``"a", "b|c"``); bank dates, amounts and
types never do, so in practice only a description or reference can trigger
it.
"""

import hashlib
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from banker.domain.errors import ValidationError, invalid_field

DELIMITER = "|"
DIGEST_LENGTH = 16

Number = Union[int, float, Decimal, str]


def format_amount(amount: Number) -> str:
    """Render the absolute value of an amount as a plain decimal string.

    Trailing zeros and a trailing decimal point are dropped and exponent
    notation is never used, so ``100.50`` and ``Decimal("100.500")`` both
    render as ``"100.5"`` and ``100.0`` renders as ``"100"``. Floats go
    through their shortest round-trip repr first.

    Raises:
        ValidationError: If the amount is not a finite number
    """
    if isinstance(amount, bool):
        raise ValidationError(invalid_field("amount", amount, "a number"))
    try:
        if isinstance(amount, float):
            value = Decimal(repr(amount))
        else:
            value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(invalid_field("amount", amount, "a number"))

    if not value.is_finite():
        raise ValidationError(invalid_field("amount", amount, "a finite number"))

    value = abs(value)
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def select_identifier(reference: Optional[str], description: Optional[str]) -> str:
    """Pick the fingerprint identifier: trimmed reference, else trimmed description."""
    if reference is not None:
        trimmed = str(reference).strip()
        if trimmed:
            return trimmed
    return (description or "").strip()


def make_txn_key(bank_code: str, date: str, amount: Number, txn_type: str, identifier: str) -> str:
    """Generate the deterministic fingerprint for a transaction.

    Args:
        bank_code: Bank code (e.g., "banesco")
        date: Bank-local date string, used verbatim
        amount: Signed or unsigned amount; only the magnitude is hashed
        txn_type: "debit" or "credit"
        identifier: Reference or description; surrounding whitespace is ignored

    Returns:
        Key in the form ``"{bank_code}-{16 hex chars}"``
    """
    joined = DELIMITER.join(
        [bank_code, date, format_amount(amount), txn_type, identifier.strip()]
    )
    digest = hashlib.sha256(joined.encode("utf-8")).hexdigest()
    return f"{bank_code}-{digest[:DIGEST_LENGTH]}"


def fingerprint_transaction(
    bank_code: str,
    date: str,
    amount: Number,
    txn_type: str,
    description: Optional[str],
    reference: Optional[str] = None,
) -> str:
    """Fingerprint a transaction, applying the reference-over-description policy."""
    return make_txn_key(bank_code, date, amount, txn_type, select_identifier(reference, description))
