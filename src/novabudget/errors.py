"""Exception types surfaced to callers of the ledger services."""

from __future__ import annotations

from typing import Optional


class NovaBudgetError(Exception):
    """Base class for all recoverable application errors."""


class ValidationError(NovaBudgetError, ValueError):
    """Input rejected before any write was attempted."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class MissingReferenceError(NovaBudgetError, LookupError):
    """A record referenced by an edit or delete is not known to the session."""


class RemoteWriteError(NovaBudgetError):
    """A write to the document store failed; the operation is not retried."""


class MutationInProgressError(NovaBudgetError):
    """A ledger mutation was issued while another one is still settling."""


class SubscriptionError(NovaBudgetError):
    """A snapshot listener failed to refresh its collection."""

    def __init__(self, collection: str, cause: BaseException) -> None:
        super().__init__(f"Error loading {collection}: {cause}")
        self.collection = collection
        self.cause = cause


class AuthError(NovaBudgetError):
    """Sign-in or sign-up failed; the message is safe to show to the user."""


class SessionExpiredError(AuthError):
    """An action needed a signed-in user and there was none."""
