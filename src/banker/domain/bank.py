"""Bank domain service."""

from typing import Any, Optional
from banker.database.base import Database
from banker.domain.entities import Bank as BankEntity
from banker.domain.errors import DuplicateBankError, NotFoundError, ValidationError, bank_not_found

# Curated display data for the banks we scrape
BANK_DEFAULTS: dict[str, dict[str, str]] = {
    "banesco": {"name": "Banesco", "color": "#00529B"},
    "bnc": {"name": "BNC", "color": "#E31837"},
}

FALLBACK_COLOR = "#666666"


def default_bank_profile(code: str) -> dict[str, str]:
    """Return the name and color a bank gets when created on demand."""
    if code in BANK_DEFAULTS:
        return dict(BANK_DEFAULTS[code])
    return {"name": code[:1].upper() + code[1:], "color": FALLBACK_COLOR}


class BankService:
    """Service for managing banks."""

    def __init__(self, db: Database):
        """Initialize bank service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_bank(self, bank_id: int) -> Optional[BankEntity]:
        """Get bank by ID."""
        return self.db.get_bank(bank_id)

    def get_bank_by_code(self, code: str) -> Optional[BankEntity]:
        """Get bank by code."""
        return self.db.get_bank_by_code(code)

    def list_banks(self) -> list[BankEntity]:
        """List all banks ordered by code."""
        return self.db.list_banks()

    def get_or_create_bank(self, code: str) -> BankEntity:
        """Get a bank by code, creating it from the defaults table if absent.

        A concurrent creation of the same code is resolved by re-reading the
        winner's row.

        Args:
            code: Bank code

        Returns:
            Bank entity
        """
        if not code or not code.strip():
            raise ValidationError("Bank code must not be empty")

        existing = self.db.get_bank_by_code(code)
        if existing is not None:
            return existing

        profile = default_bank_profile(code)
        try:
            bank_id = self.db.create_bank(code=code, name=profile["name"], color=profile["color"])
        except DuplicateBankError:
            bank = self.db.get_bank_by_code(code)
            if bank is None:
                raise
            return bank

        bank = self.db.get_bank(bank_id)
        if bank is None:
            raise NotFoundError(bank_not_found(bank_id))
        return bank

    def upsert_bank(
        self,
        code: str,
        name: str,
        logo_url: Optional[str] = None,
        color: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> int:
        """Create a bank or patch an existing one with the same code.

        On the patch path only the fields supplied are written; ``active`` is
        left alone unless given. New banks default to active.

        Args:
            code: Bank code
            name: Display name
            logo_url: Optional logo URL
            color: Optional UI color
            active: Optional active flag

        Returns:
            Bank ID

        Raises:
            ValidationError: If code or name is empty
        """
        if not code or not code.strip():
            raise ValidationError("Bank code must not be empty")
        if not name or not name.strip():
            raise ValidationError("Bank name must not be empty")

        existing = self.db.get_bank_by_code(code)
        if existing is None:
            try:
                return self.db.create_bank(
                    code=code,
                    name=name,
                    logo_url=logo_url,
                    color=color,
                    active=True if active is None else active,
                )
            except DuplicateBankError:
                existing = self.db.get_bank_by_code(code)
                if existing is None:
                    raise

        fields: dict[str, Any] = {"name": name}
        if logo_url is not None:
            fields["logo_url"] = logo_url
        if color is not None:
            fields["color"] = color
        if active is not None:
            fields["active"] = active

        self.db.update_bank(existing.id, fields)
        return existing.id
