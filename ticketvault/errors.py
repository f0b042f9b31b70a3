from __future__ import annotations

from typing import Iterable


class TicketVaultError(RuntimeError):
    """Base error for ticket collection issues."""


class ValidationError(TicketVaultError):
    """Raised when mandatory input is missing or malformed."""

    def __init__(self, message: str, *, fields: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.fields: tuple[str, ...] = tuple(fields)


class PolicyViolation(TicketVaultError):
    """Raised when attempting to mutate a ticket this device does not own."""


class SourceUnavailable(TicketVaultError):
    """Raised when the ledger could not be read."""


class PersistenceError(TicketVaultError):
    """Raised when the local key-value store fails to read or write."""
