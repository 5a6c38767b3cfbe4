"""Bank export ingestion command."""

import click
from banker.cli.error_handling import handle_domain_error
from banker.domain.errors import DomainError, SyncError
from banker.domain.ingestion import IngestionService
from banker.domain.sync import SyncOrchestrator, preview
from banker.sources.json_export import JsonExportFetcher, StaticAuthenticator


@click.command("ingest")
@click.argument("export_file", type=click.Path(exists=True))
@click.option("--bank", "bank_code", required=True, help="Bank code (e.g. banesco, bnc)")
@click.option("--account", help="Account ID to store on every transaction")
@click.option("--no-raw", is_flag=True, help="Do not keep the original bank records")
@click.option("--dry-run", is_flag=True, help="Normalize and preview without storing")
@click.option("--fail-fast", is_flag=True, help="Abort on the first invalid record")
@click.pass_context
def ingest(
    ctx,
    export_file: str,
    bank_code: str,
    account: str | None,
    no_raw: bool,
    dry_run: bool,
    fail_fast: bool,
):
    """Ingest a bank export saved as JSON.

    Transactions already stored are skipped, so the same export can be
    ingested any number of times.

    Examples:
        banker ingest movimientos.json --bank banesco
        banker ingest bnc.json --bank bnc --account 0191-0001 --dry-run
    """
    db = ctx.obj["db"]
    settings = ctx.obj["settings"]

    try:
        fetcher = JsonExportFetcher(export_file)
        orchestrator = SyncOrchestrator(
            authenticator=StaticAuthenticator(),
            fetcher=fetcher,
            ingestion=IngestionService(db),
            bank_code=bank_code,
        )
        report = orchestrator.run(
            {},
            account_id=account,
            include_raw=not no_raw,
            fail_fast=fail_fast,
            dry_run=dry_run,
        )
    except (DomainError, SyncError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Fetched {report.fetched} transactions from {report.accounts} account(s)")
    for line in preview(report.transactions, settings.preview_limit):
        click.echo(f"  {line}")

    for error in report.errors:
        click.echo(f"  {error}", err=True)

    if report.dry_run:
        click.echo(f"Dry run: {len(report.transactions)} transactions not stored")
    else:
        click.echo(f"New: {report.inserted} | Skipped: {report.skipped}")
    if report.invalid:
        click.echo(f"Invalid: {report.invalid}")


def register_commands(cli):
    """Register ingest command with main CLI."""
    cli.add_command(ingest)
