"""Repository protocol definitions for the document store seam."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Optional, Protocol, Sequence, TypeVar

from ..models.account import Account
from ..models.budget import Budget
from ..models.transaction import Transaction

DocT = TypeVar("DocT")


class DocumentCollection(Protocol[DocT]):
    """Per-user collection with CRUD, ordered query and change subscription."""

    def get(self, doc_id: int, *, user_id: int) -> Optional[DocT]:
        """Retrieve a document by ID."""
        ...

    def query(self, *, user_id: int, order_by: Optional[Sequence[Any]] = None) -> list[DocT]:
        """List documents for a user."""
        ...

    def add(self, document: DocT, *, user_id: int) -> DocT:
        """Create a new document."""
        ...

    def update(self, doc_id: int, fields: dict[str, Any], *, user_id: int) -> DocT:
        """Apply a partial update."""
        ...

    def delete(self, doc_id: int, *, user_id: int) -> bool:
        """Delete a document by ID."""
        ...

    def subscribe(
        self,
        *,
        user_id: int,
        on_change: Callable[[Any], None],
        on_error: Optional[Callable[[Any], None]] = None,
        order_by: Optional[Sequence[Any]] = None,
    ) -> Callable[[], None]:
        """Register for snapshots; returns an unsubscribe handle."""
        ...


class AccountCollection(DocumentCollection[Account], Protocol):
    """Accounts additionally support atomic balance increments."""

    def increment_balance(self, account_id: int, delta: Decimal, *, user_id: int) -> bool:
        """Add delta to the balance; False when the account is gone."""
        ...


class TransactionCollection(DocumentCollection[Transaction], Protocol):
    """Ledger transactions."""


class BudgetCollection(DocumentCollection[Budget], Protocol):
    """Monthly category budgets."""


class DocumentStoreLike(Protocol):
    """Anything exposing the three collections."""

    accounts: AccountCollection
    transactions: TransactionCollection
    budgets: BudgetCollection
