"""Bank data sources usable with SyncOrchestrator."""

from banker.sources.json_export import JsonExportFetcher, StaticAuthenticator

__all__ = ["JsonExportFetcher", "StaticAuthenticator"]
