"""CLI error handling helpers."""

import click

from banker.domain.errors import DomainError, SyncError


def handle_domain_error(ctx: click.Context, error: DomainError | SyncError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
