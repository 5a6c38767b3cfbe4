"""Event feed commands."""

import click
from banker.cli.error_handling import handle_domain_error
from banker.domain.errors import DomainError
from banker.domain.events import EventService
from banker.utils.date_parser import parse_date


@click.group()
def events_group():
    """Inspect and acknowledge notification events."""
    pass


@events_group.command("list")
@click.option("--type", "event_type", help="Event type (e.g. transaction.created)")
@click.option(
    "--acknowledged/--pending",
    default=None,
    help="Only acknowledged or only pending events",
)
@click.option("--limit", type=int, default=50, show_default=True, help="Maximum rows")
@click.option("--since", help="Only events created on or after this date (e.g. 2024-06-01, 'this week')")
@click.pass_context
def list_events(ctx, event_type: str | None, acknowledged: bool | None, limit: int, since: str | None):
    """List events, most recent first."""
    db = ctx.obj["db"]
    service = EventService(db)

    since_date = None
    if since is not None:
        try:
            since_date = parse_date(since)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        events = service.get_events(
            event_type=event_type, acknowledged=acknowledged, limit=limit, since=since_date
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not events:
        click.echo("No events found.")
        return

    for evt in events:
        flag = "ack" if evt.acknowledged else "new"
        amount = f"{evt.amount:,.2f}" if evt.amount is not None else "-"
        click.echo(
            f"{evt.id:5d} | {flag:3s} | {evt.type} | {evt.bank_code or '?'} | "
            f"{amount} | {evt.description or ''}"
        )


@events_group.command("ack")
@click.argument("event_id", type=int)
@click.pass_context
def ack_event(ctx, event_id: int):
    """Acknowledge one event."""
    db = ctx.obj["db"]
    service = EventService(db)

    try:
        changed = service.acknowledge_event(event_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if changed:
        click.echo(f"Acknowledged event {event_id}")
    else:
        click.echo(f"Event {event_id} was already acknowledged")


@events_group.command("ack-all")
@click.option("--type", "event_type", help="Only events of this type")
@click.pass_context
def ack_all_events(ctx, event_type: str | None):
    """Acknowledge every pending event."""
    db = ctx.obj["db"]
    service = EventService(db)

    count = service.acknowledge_all_events(event_type)
    click.echo(f"Acknowledged {count} event(s)")


def register_commands(cli):
    """Register event commands with main CLI."""
    cli.add_command(events_group, name="events")
