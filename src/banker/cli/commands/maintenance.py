"""Maintenance commands for stored transactions."""

import click
from banker.cli.error_handling import handle_domain_error
from banker.domain.errors import DomainError
from banker.domain.ingestion import IngestionService


@click.group()
def maintenance_group():
    """Backfill and clean up stored transactions."""
    pass


@maintenance_group.command("backfill-bank-codes")
@click.pass_context
def backfill_bank_codes(ctx):
    """Fill in missing bank codes from each transaction's bank."""
    service = IngestionService(ctx.obj["db"])
    result = service.backfill_bank_codes()
    click.echo(f"Updated {result.updated} of {result.total} transactions")


@maintenance_group.command("backfill-references")
@click.pass_context
def backfill_references(ctx):
    """Promote reference numbers found in raw bank records."""
    service = IngestionService(ctx.obj["db"])
    result = service.backfill_references()
    click.echo(f"Updated {result.updated} of {result.total} transactions")


@maintenance_group.command("force-resync")
@click.option("--bank", "bank_code", help="Only transactions of this bank code")
@click.pass_context
def force_resync(ctx, bank_code: str | None):
    """Mark transactions as not yet synced downstream."""
    service = IngestionService(ctx.obj["db"])
    count = service.force_resync(bank_code)
    click.echo(f"Cleared sync marker on {count} transactions")


@maintenance_group.command("cleanup")
@click.option("--bank", "bank_code", help="Only transactions of this bank code")
@click.option(
    "--missing-reference/--any",
    default=True,
    show_default=True,
    help="Only transactions stored without a reference",
)
@click.option("--dry-run", is_flag=True, help="List candidates without deleting")
@click.option("--yes", is_flag=True, help="Delete without asking for confirmation")
@click.pass_context
def cleanup(ctx, bank_code: str | None, missing_reference: bool, dry_run: bool, yes: bool):
    """Delete transactions (and their events) so they can be re-ingested.

    Examples:
        banker maintenance cleanup --bank banesco --dry-run
        banker maintenance cleanup --bank banesco --yes
    """
    service = IngestionService(ctx.obj["db"])
    candidates = service.find_cleanup_candidates(bank_code, missing_reference=missing_reference)

    if not candidates:
        click.echo("No transactions to clean up.")
        return

    click.echo(f"Found {len(candidates)} transaction(s):")
    for txn in candidates:
        click.echo(f"  {txn.id:5d} | {txn.date} | {txn.amount:,.2f} | {txn.description}")

    if dry_run:
        click.echo("Dry run: nothing deleted")
        return

    if not yes:
        click.confirm(f"Delete {len(candidates)} transaction(s)?", abort=True)

    deleted_events = 0
    try:
        for txn in candidates:
            deleted_events += service.cleanup_transaction(txn.id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Deleted {len(candidates)} transaction(s) and {deleted_events} event(s)")


def register_commands(cli):
    """Register maintenance commands with main CLI."""
    cli.add_command(maintenance_group, name="maintenance")
