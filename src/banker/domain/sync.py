"""Bank sync orchestration: login, fetch, normalize, ingest."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol, Sequence

import loguru
from loguru import logger

from banker.domain.entities import Account, IngestResult, NormalizedTransaction
from banker.domain.errors import AuthenticationError, FetcherError, ValidationError
from banker.domain.ingestion import IngestionService
from banker.domain.normalizer import normalize_transaction


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a bank login attempt."""

    success: bool
    session: Any = None
    error: Optional[str] = None


class Authenticator(Protocol):
    """Logs in to a bank and hands back a session for the fetcher.

    Implementations may also define ``close()``; it is called after fetching.
    """

    def login(self, credentials: Mapping[str, str]) -> LoginResult: ...


class Fetcher(Protocol):
    """Reads accounts and raw transactions from a logged-in bank session."""

    def list_accounts(self, session: Any) -> list[Account]: ...

    def list_transactions(self, session: Any, account_id: str) -> list[dict[str, Any]]: ...


@dataclass
class SyncReport:
    """Outcome of one sync run."""

    bank_code: str
    accounts: int = 0
    fetched: int = 0
    invalid: int = 0
    errors: list[str] = field(default_factory=list)
    transactions: list[NormalizedTransaction] = field(default_factory=list)
    ingest: Optional[IngestResult] = None
    dry_run: bool = False

    @property
    def inserted(self) -> int:
        return self.ingest.inserted_count if self.ingest else 0

    @property
    def skipped(self) -> int:
        return self.ingest.skipped_duplicates if self.ingest else 0


class SyncLogger:
    """Handles all logging for SyncOrchestrator with business logic separated."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance

    def login_start(self, bank_code: str) -> None:
        """Log start of login."""
        self._logger.bind(bank=bank_code).info("Logging in to {}", bank_code)

    def login_failed(self, bank_code: str, error: Optional[str]) -> None:
        """Log failed login."""
        self._logger.bind(bank=bank_code).error("Login to {} failed: {}", bank_code, error)

    def accounts_found(self, bank_code: str, count: int) -> None:
        """Log accounts discovered."""
        self._logger.bind(bank=bank_code, accounts=count).info(
            "Found {} account(s) at {}", count, bank_code
        )

    def fetched(self, account_id: str, count: int) -> None:
        """Log transactions fetched for one account."""
        self._logger.bind(account=account_id, count=count).info(
            "Fetched {} transactions for account {}", count, account_id
        )

    def invalid_record(self, account_id: str, position: int, error: Exception) -> None:
        """Log a raw record that failed normalization."""
        self._logger.bind(account=account_id, position=position).warning(
            "Skipping record {} of account {}: {}", position, account_id, error
        )

    def dry_run(self, count: int) -> None:
        """Log that ingestion was skipped."""
        self._logger.bind(count=count).info("Dry run: {} transactions not ingested", count)

    def complete(self, report: SyncReport) -> None:
        """Log sync summary."""
        self._logger.bind(
            bank=report.bank_code, inserted=report.inserted, skipped=report.skipped
        ).info(
            "Sync of {} complete: {} new, {} skipped, {} invalid",
            report.bank_code,
            report.inserted,
            report.skipped,
            report.invalid,
        )


def preview(transactions: Sequence[NormalizedTransaction], limit: int = 5) -> list[str]:
    """Render the first ``limit`` transactions as one line each."""
    lines = []
    for txn in transactions[: max(limit, 0)]:
        sign = "-" if txn.type == "debit" else "+"
        reference = f" [{txn.reference}]" if txn.reference else ""
        lines.append(f"{txn.date}  {sign}{txn.amount:,.2f}  {txn.description}{reference}")
    remaining = len(transactions) - len(lines)
    if remaining > 0:
        lines.append(f"... and {remaining} more")
    return lines


class SyncOrchestrator:
    """Drive one bank sync end to end."""

    def __init__(
        self,
        authenticator: Authenticator,
        fetcher: Fetcher,
        ingestion: IngestionService,
        bank_code: str,
        logger_instance: loguru.Logger = logger,
    ):
        """Initialize orchestrator.

        Args:
            authenticator: Bank login collaborator
            fetcher: Bank data collaborator
            ingestion: Ingestion service to store results with
            bank_code: Code of the bank being synced
            logger_instance: Logger to report through
        """
        self.authenticator = authenticator
        self.fetcher = fetcher
        self.ingestion = ingestion
        self.bank_code = bank_code
        self._logger = SyncLogger(logger_instance)

    def run(
        self,
        credentials: Mapping[str, str],
        account_id: Optional[str] = None,
        include_raw: bool = True,
        fail_fast: bool = False,
        dry_run: bool = False,
    ) -> SyncReport:
        """Log in, fetch every account, normalize and ingest.

        Args:
            credentials: Passed through to the authenticator
            account_id: Override the account stored on every transaction
            include_raw: Keep the untransformed bank records
            fail_fast: Abort on the first record that fails normalization
            dry_run: Normalize but do not ingest

        Returns:
            SyncReport

        Raises:
            AuthenticationError: If login fails
            FetcherError: If listing accounts or transactions fails
            ValidationError: On an invalid record when ``fail_fast``
        """
        report = SyncReport(bank_code=self.bank_code, dry_run=dry_run)

        self._logger.login_start(self.bank_code)
        login = self.authenticator.login(credentials)
        if not login.success:
            self._logger.login_failed(self.bank_code, login.error)
            raise AuthenticationError(login.error or f"Login to {self.bank_code} failed")

        try:
            try:
                accounts = self.fetcher.list_accounts(login.session)
            except Exception as e:
                raise FetcherError(f"Could not list accounts: {e}") from e
            report.accounts = len(accounts)
            self._logger.accounts_found(self.bank_code, len(accounts))

            for account in accounts:
                try:
                    raws = self.fetcher.list_transactions(login.session, account.id)
                except Exception as e:
                    raise FetcherError(
                        f"Could not fetch transactions for account {account.id}: {e}"
                    ) from e
                report.fetched += len(raws)
                self._logger.fetched(account.id, len(raws))

                for position, raw in enumerate(raws, start=1):
                    try:
                        report.transactions.append(
                            normalize_transaction(
                                self.bank_code,
                                raw,
                                account_id=account_id or account.id,
                                include_raw=include_raw,
                            )
                        )
                    except ValidationError as e:
                        if fail_fast:
                            raise
                        report.invalid += 1
                        report.errors.append(f"Account {account.id}, record {position}: {e}")
                        self._logger.invalid_record(account.id, position, e)
        finally:
            close = getattr(self.authenticator, "close", None)
            if close is not None:
                close()

        if dry_run:
            self._logger.dry_run(len(report.transactions))
        else:
            report.ingest = self.ingestion.ingest_transactions(None, report.transactions)

        self._logger.complete(report)
        return report
