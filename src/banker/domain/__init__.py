"""Domain layer for banker application.

Services are resolved lazily: the database layer imports domain entities,
and the services import the database interface.
"""

_SERVICES = {
    "IngestionService": "banker.domain.ingestion",
    "BankService": "banker.domain.bank",
    "EventService": "banker.domain.events",
    "TransactionService": "banker.domain.transaction",
    "SyncOrchestrator": "banker.domain.sync",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
