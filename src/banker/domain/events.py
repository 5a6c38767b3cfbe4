"""Event domain service."""

from datetime import date, datetime, time, UTC
from typing import Optional, Union
from banker.database.base import Database
from banker.domain.entities import Event as EventEntity
from banker.domain.errors import ValidationError

EVENT_TRANSACTION_CREATED = "transaction.created"

NEW_TRANSACTION_EVENTS_LIMIT = 20


def _as_datetime(value: Union[date, datetime]) -> datetime:
    """Widen a date to midnight UTC; treat naive datetimes as UTC."""
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


class EventService:
    """Service for reading and acknowledging notification events."""

    def __init__(self, db: Database):
        """Initialize event service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_events(
        self,
        event_type: Optional[str] = None,
        acknowledged: Optional[bool] = None,
        limit: int = 50,
        since: Optional[Union[date, datetime]] = None,
    ) -> list[EventEntity]:
        """List events, most recent first.

        Args:
            event_type: Optional type filter (e.g. "transaction.created")
            acknowledged: Optional acknowledged-state filter
            limit: Maximum number of events
            since: Only events created at or after this moment

        Returns:
            List of events
        """
        if limit <= 0:
            raise ValidationError(f"Limit must be positive, got {limit}")
        return self.db.list_events(
            event_type=event_type,
            acknowledged=acknowledged,
            limit=limit,
            since=_as_datetime(since) if since is not None else None,
        )

    def get_new_transaction_events(
        self, limit: int = NEW_TRANSACTION_EVENTS_LIMIT
    ) -> list[EventEntity]:
        """Unacknowledged transaction-created events, most recent first."""
        return self.get_events(
            event_type=EVENT_TRANSACTION_CREATED, acknowledged=False, limit=limit
        )

    def get_event(self, event_id: int) -> Optional[EventEntity]:
        """Get event by ID."""
        return self.db.get_event(event_id)

    def get_events_for_transaction(self, transaction_id: int) -> list[EventEntity]:
        """List the events referencing a transaction."""
        return self.db.list_events_for_transaction(transaction_id)

    def acknowledge_event(self, event_id: int) -> bool:
        """Mark an event as acknowledged.

        Acknowledging twice is a no-op.

        Returns:
            True if the flag changed, False if it was already set

        Raises:
            NotFoundError: If the event does not exist
        """
        return self.db.set_event_acknowledged(event_id)

    def acknowledge_all_events(self, event_type: Optional[str] = None) -> int:
        """Acknowledge every pending event, optionally only of one type.

        Returns:
            Number of events acknowledged
        """
        return self.db.acknowledge_events(event_type)
