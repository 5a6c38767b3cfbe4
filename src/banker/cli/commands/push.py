"""Ingestion of already normalized transactions from outside callers."""

import json

import click
from banker.cli.error_handling import handle_domain_error
from banker.domain.errors import DomainError
from banker.domain.ingestion import IngestionService


@click.command("push")
@click.argument("json_file", type=click.Path(exists=True))
@click.option("--fail-fast", is_flag=True, help="Reject the whole file on the first invalid record")
@click.pass_context
def push(ctx, json_file: str, fail_fast: bool):
    """Push normalized transactions from a JSON file.

    The file holds a list of records with bank, txnKey, date, amount,
    description and type. Each record is validated before it is stored.
    """
    db = ctx.obj["db"]
    service = IngestionService(db)

    with open(json_file, "r", encoding="utf-8") as f:
        try:
            records = json.load(f)
        except json.JSONDecodeError as e:
            click.echo(f"Error: Invalid JSON: {e}", err=True)
            ctx.exit(1)

    if not isinstance(records, list):
        click.echo("Error: Expected a JSON list of transactions", err=True)
        ctx.exit(1)

    try:
        result = service.ingest_from_external(records, fail_fast=fail_fast)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"New: {result.inserted_count} | Skipped: {result.skipped_duplicates}")
    if result.errors:
        click.echo(f"Rejected: {result.rejected}")
        for error in result.errors:
            click.echo(f"  {error}", err=True)


def register_commands(cli):
    """Register push command with main CLI."""
    cli.add_command(push)
