"""Main CLI entry point."""

import click
from banker.config import load_settings
from banker.database.factories import create_sqlite_database
from banker.logging_config import configure_logging

# Import and register all commands at module level
from banker.cli.commands import (
    bank,
    events,
    ingest_cmd,
    maintenance,
    push,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides BANKER_DB_PATH environment variable)",
    envvar="BANKER_DB_PATH",
)
@click.option("--verbose", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Banker - Venezuelan bank transaction ingestion.

    Normalize bank exports, store each movement exactly once and keep a
    feed of new-transaction events for notifications.
    """
    ctx.ensure_object(dict)
    settings = load_settings()
    configure_logging(level=settings.log_level, verbose=verbose or settings.verbose)
    ctx.obj["settings"] = settings

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path or settings.db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
ingest_cmd.register_commands(cli)
push.register_commands(cli)
transaction.register_commands(cli)
bank.register_commands(cli)
events.register_commands(cli)
maintenance.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
