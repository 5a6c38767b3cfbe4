"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def parse_amount(amount_str: str) -> Decimal:
    """Parse a bank amount string into a signed Decimal.

    Handles the formats the Venezuelan portals emit as well as plain ones:
    - "1.234,56" (dots for thousands, comma for decimals)
    - "Bs. 1.234,56" / "USD 12,00" (currency prefix)
    - "-50,00" / "50,00-" (leading or trailing minus)
    - "1,234.56" (US grouping)
    - "(123.45)" (negative in parentheses)

    Whichever of ``,`` and ``.`` appears last is taken as the decimal
    separator; the other one is a thousands separator.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    if "-" in amount_str:
        is_negative = True

    # Drop currency symbols, letters and spaces
    clean = re.sub(r"[^\d,.]", "", amount_str).strip(".,")

    last_dot = clean.rfind(".")
    last_comma = clean.rfind(",")
    if clean.count(".") > 1 and last_comma == -1:
        clean = clean.replace(".", "")
    elif clean.count(",") > 1 and last_dot == -1:
        clean = clean.replace(",", "")
    elif last_comma > last_dot:
        clean = clean.replace(".", "").replace(",", ".")
    else:
        clean = clean.replace(",", "")

    try:
        amount = Decimal(clean)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")

    return -amount if is_negative else amount
