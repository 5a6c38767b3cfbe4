"""Transaction listing command."""

import click
from banker.cli.bank_resolution import resolve_bank_or_exit
from banker.cli.error_handling import handle_domain_error
from banker.domain.bank import BankService
from banker.domain.errors import ValidationError
from banker.domain.transaction import TransactionService


def format_transaction_line(txn) -> str:
    """Render one stored transaction as a table row."""
    sign = "-" if txn.type == "debit" else "+"
    amount = f"{sign}{txn.amount:,.2f}"
    reference = txn.reference or ""
    return (
        f"{txn.id:5d} | {txn.date:10s} | {txn.bank_code or '?':8s} | "
        f"{amount:>14s} | {reference:12s} | {txn.description}"
    )


@click.command("transactions")
@click.option("--bank", help="Bank code or ID")
@click.option("--limit", type=int, default=50, show_default=True, help="Maximum rows")
@click.pass_context
def list_transactions(ctx, bank: str | None, limit: int):
    """List the most recently ingested transactions.

    Examples:
        banker transactions
        banker transactions --bank bnc --limit 10
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    try:
        if bank is None:
            transactions = service.get_recent_transactions(limit=limit)
        else:
            bank_id = resolve_bank_or_exit(ctx, BankService(db), bank)
            transactions = service.get_transactions_by_bank(bank_id, limit=limit)
    except ValidationError as e:
        handle_domain_error(ctx, e)
        return

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"{'ID':>5s} | {'Date':10s} | {'Bank':8s} | {'Amount':>14s} | {'Reference':12s} | Description")
    click.echo("-" * 90)
    for txn in transactions:
        click.echo(format_transaction_line(txn))


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(list_transactions)
