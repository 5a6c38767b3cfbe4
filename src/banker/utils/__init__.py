"""Utility functions for banker."""

from banker.utils.date_parser import parse_date, to_iso_bank_date
from banker.utils.amount_parser import parse_amount
from banker.utils.keyed_lock import KeyedLock

__all__ = ["parse_date", "to_iso_bank_date", "parse_amount", "KeyedLock"]
