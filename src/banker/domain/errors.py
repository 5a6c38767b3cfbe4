"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DuplicateTransactionError(ConflictError):
    """A transaction with the same fingerprint is already stored."""

    def __init__(self, txn_key: str):
        super().__init__(duplicate_txn_key(txn_key))
        self.txn_key = txn_key


class DuplicateBankError(ConflictError):
    """A bank with the same code is already stored."""

    def __init__(self, code: str):
        super().__init__(f"Bank with code '{code}' already exists")
        self.code = code


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class SyncError(Exception):
    """Failure of a collaborator while syncing a bank."""


class AuthenticationError(SyncError):
    """The authenticator could not open a session."""


class FetcherError(SyncError):
    """The fetcher could not list accounts or transactions."""


def bank_not_found(bank: object) -> str:
    """Return message for missing bank by ID or code."""
    return f"Bank {bank!r} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def event_not_found(event_id: int) -> str:
    """Return message for missing event."""
    return f"Event {event_id} not found"


def duplicate_txn_key(txn_key: str) -> str:
    """Return message for duplicate transaction fingerprint."""
    return f"Transaction with txn_key '{txn_key}' already exists"


def missing_field(field_name: str) -> str:
    """Return message for a missing required transaction field."""
    return f"Missing required field '{field_name}'"


def invalid_field(field_name: str, value: object, expected: str) -> str:
    """Return message for a transaction field with the wrong shape."""
    return f"Invalid value for '{field_name}': {value!r} (expected {expected})"
