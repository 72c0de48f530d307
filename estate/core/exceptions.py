"""Error taxonomy shared by the ledger layers."""
from __future__ import annotations


class LedgerError(Exception):
    """Base class for every failure raised by the wage ledger."""


class ValidationError(LedgerError, ValueError):
    """Raised when input is malformed, before any persistence call."""


class PersistenceError(LedgerError):
    """Raised when the backing store rejects or fails a statement."""

    def __init__(self, message: str, *, table: str | None = None) -> None:
        super().__init__(message)
        self.table = table


class TenantSchemaError(PersistenceError):
    """Raised when a ledger table lacks the tenant column in strict mode."""


class NotFoundError(LedgerError, LookupError):
    """Raised when an edit or delete references a row that no longer exists."""


class PermissionDeniedError(LedgerError):
    """Raised when the caller's organization role does not allow the action."""
