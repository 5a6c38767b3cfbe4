"""CLI helpers for bank resolution."""

from __future__ import annotations

import click
from banker.domain.bank import BankService
from banker.domain.errors import NotFoundError, bank_not_found


def resolve_bank(bank_service: BankService, bank: str | int) -> int:
    """Resolve a bank code or ID to a bank ID.

    Raises:
        NotFoundError: If no bank matches
    """
    if isinstance(bank, int) or str(bank).isdigit():
        bank_id = int(bank)
        if bank_service.get_bank(bank_id) is None:
            raise NotFoundError(bank_not_found(bank_id))
        return bank_id

    found = bank_service.get_bank_by_code(bank)
    if found is None:
        raise NotFoundError(bank_not_found(bank))
    return found.id


def resolve_bank_or_exit(ctx: click.Context, bank_service: BankService, bank: str | int) -> int:
    """Resolve bank code or ID, or exit with a CLI error."""
    try:
        return resolve_bank(bank_service, bank)
    except NotFoundError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
