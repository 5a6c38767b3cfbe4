"""Bank management commands."""

import click
from banker.cli.error_handling import handle_domain_error
from banker.domain.bank import BankService
from banker.domain.errors import DomainError


@click.group()
def bank_group():
    """Manage banks."""
    pass


@bank_group.command("list")
@click.pass_context
def list_banks(ctx):
    """List all banks."""
    db = ctx.obj["db"]
    service = BankService(db)

    banks = service.list_banks()
    if not banks:
        click.echo("No banks found.")
        return

    click.echo("\nBanks:")
    click.echo("-" * 60)
    for b in banks:
        status = "" if b.active else " (inactive)"
        click.echo(f"ID: {b.id:3d} | {b.code:10s} | {b.name:20s} | {b.color or '-'}{status}")


@bank_group.command("upsert")
@click.argument("code")
@click.argument("name")
@click.option("--logo-url", help="Logo URL")
@click.option("--color", help="UI color (e.g. #00529B)")
@click.option("--active/--inactive", default=None, help="Enable or disable the bank")
@click.pass_context
def upsert_bank(
    ctx,
    code: str,
    name: str,
    logo_url: str | None,
    color: str | None,
    active: bool | None,
):
    """Create a bank or update the one with the same code.

    Only the options given are changed on an existing bank.

    Examples:
        banker bank upsert banesco "Banesco Universal" --color "#00529B"
        banker bank upsert mercantil Mercantil --inactive
    """
    db = ctx.obj["db"]
    service = BankService(db)

    try:
        bank_id = service.upsert_bank(
            code=code, name=name, logo_url=logo_url, color=color, active=active
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Saved bank '{code}' (ID: {bank_id})")


def register_commands(cli):
    """Register bank commands with main CLI."""
    cli.add_command(bank_group, name="bank")
