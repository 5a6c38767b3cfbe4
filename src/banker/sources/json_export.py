"""Fetch bank transactions from a JSON export on disk."""

import json
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from banker.domain.entities import Account
from banker.domain.errors import ValidationError
from banker.domain.sync import LoginResult
from banker.utils.date_parser import to_iso_bank_date

DEFAULT_ACCOUNT_ID = "default"


class StaticAuthenticator:
    """Authenticator for offline sources that only checks credentials are present."""

    def __init__(self, required_keys: Sequence[str] = ()):
        self.required_keys = tuple(required_keys)
        self.closed = False

    def login(self, credentials: Mapping[str, str]) -> LoginResult:
        missing = [key for key in self.required_keys if not credentials.get(key)]
        if missing:
            return LoginResult(success=False, error=f"Missing credentials: {', '.join(missing)}")
        return LoginResult(success=True, session=dict(credentials))

    def close(self) -> None:
        self.closed = True


class JsonExportFetcher:
    """Fetcher reading a bank export saved as JSON.

    The document is either a list of raw transaction records, filed under a
    single account, or an object of the form::

        {"accounts": [{"id": "0134...", "name": "...", "transactions": [...]}]}

    Day-first dates (``DD/MM/YYYY``) are rewritten to ISO as the bank
    fetchers do.
    """

    def __init__(self, path: str, default_account_id: str = DEFAULT_ACCOUNT_ID):
        """Initialize fetcher.

        Args:
            path: Path to the JSON export
            default_account_id: Account ID used when the file is a bare list

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValidationError: If the file is not a supported JSON document
        """
        export_path = Path(path)
        if not export_path.exists():
            raise FileNotFoundError(f"Export file not found: {path}")

        with open(export_path, "r", encoding="utf-8") as f:
            try:
                document = json.load(f)
            except json.JSONDecodeError as e:
                raise ValidationError(f"Invalid JSON in {path}: {e}")

        self._accounts: list[Account] = []
        self._transactions: dict[str, list[dict[str, Any]]] = {}

        if isinstance(document, list):
            self._add_account(Account(id=default_account_id), document)
        elif isinstance(document, dict) and isinstance(document.get("accounts"), list):
            for entry in document["accounts"]:
                if not isinstance(entry, dict) or not entry.get("id"):
                    raise ValidationError(f"Every account in {path} needs an 'id'")
                account = Account(
                    id=str(entry["id"]),
                    name=entry.get("name"),
                    currency=entry.get("currency"),
                )
                self._add_account(account, entry.get("transactions") or [])
        else:
            raise ValidationError(
                f"{path} must hold a list of transactions or an object with 'accounts'"
            )

    def _add_account(self, account: Account, records: Any) -> None:
        if not isinstance(records, list):
            raise ValidationError(f"Transactions of account {account.id} must be a list")
        self._accounts.append(account)
        self._transactions[account.id] = [_convert_record(record) for record in records]

    def list_accounts(self, session: Any) -> list[Account]:
        return list(self._accounts)

    def list_transactions(self, session: Any, account_id: str) -> list[dict[str, Any]]:
        return list(self._transactions.get(account_id, []))


def _convert_record(record: Any) -> Any:
    # Non-object records are passed through so the normalizer reports them
    if not isinstance(record, dict):
        return record
    converted = dict(record)
    date_value: Optional[Any] = converted.get("date")
    if isinstance(date_value, str):
        converted["date"] = to_iso_bank_date(date_value)
    return converted
