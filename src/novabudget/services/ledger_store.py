"""Session-scoped mirror of the signed-in user's ledger collections."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from ..domain.repositories import DocumentStoreLike
from ..errors import SubscriptionError
from ..infra.feed import Snapshot
from ..logging_config import get_logger
from ..models.account import Account
from ..models.budget import Budget
from ..models.transaction import Transaction

logger = get_logger(__name__)

COLLECTIONS = ("accounts", "transactions", "budgets")

ChangeListener = Callable[[str], None]


class LedgerStore:
    """Holds the latest snapshot of accounts, transactions and budgets.

    The cache is never written through: it changes only when the document
    store delivers a snapshot. Readers must therefore not expect their own
    writes to be visible until the corresponding notification arrives.
    """

    def __init__(
        self,
        store: DocumentStoreLike,
        *,
        on_error: Optional[Callable[[SubscriptionError], None]] = None,
    ) -> None:
        self._store = store
        self._on_error = on_error
        self._lock = threading.RLock()
        self._user_id: Optional[int] = None
        # Bumped on every attach/detach so stale snapshot callbacks can be recognised.
        self._generation = 0
        self._unsubscribers: list[Callable[[], None]] = []
        self._listeners: list[ChangeListener] = []
        self._accounts: tuple[Account, ...] = ()
        self._transactions: tuple[Transaction, ...] = ()
        self._budgets: tuple[Budget, ...] = ()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def user_id(self) -> Optional[int]:
        return self._user_id

    @property
    def attached(self) -> bool:
        return self._user_id is not None

    def attach(self, user_id: int) -> None:
        """Start the three subscriptions for ``user_id``."""

        self.detach()
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._user_id = user_id

        handles = [
            self._store.accounts.subscribe(
                user_id=user_id,
                on_change=self._handler("accounts", generation),
                on_error=self._error_handler(generation),
            ),
            self._store.transactions.subscribe(
                user_id=user_id,
                on_change=self._handler("transactions", generation),
                on_error=self._error_handler(generation),
            ),
            self._store.budgets.subscribe(
                user_id=user_id,
                on_change=self._handler("budgets", generation),
                on_error=self._error_handler(generation),
            ),
        ]
        with self._lock:
            if generation == self._generation:
                self._unsubscribers.extend(handles)
                stale = []
            else:
                stale = handles
        # A detach raced with attach; do not leak its subscriptions.
        for unsubscribe in stale:
            unsubscribe()
        logger.info("Ledger store attached", extra={"user_id": user_id})

    def detach(self) -> None:
        """Cancel every subscription, then drop cached state."""

        with self._lock:
            handles, self._unsubscribers = self._unsubscribers, []
            was_attached = self._user_id is not None
            self._generation += 1
        for unsubscribe in handles:
            unsubscribe()
        with self._lock:
            self._user_id = None
            self._accounts = ()
            self._transactions = ()
            self._budgets = ()
        if was_attached:
            logger.info("Ledger store detached")
            for name in COLLECTIONS:
                self._notify(name)

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Call ``listener(collection)`` after each refresh; returns a remover."""

        with self._lock:
            self._listeners.append(listener)

        def remove() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------
    @property
    def accounts(self) -> tuple[Account, ...]:
        return self._accounts

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._transactions

    @property
    def budgets(self) -> tuple[Budget, ...]:
        return self._budgets

    def account(self, account_id: Optional[int]) -> Optional[Account]:
        if account_id is None:
            return None
        return next((a for a in self._accounts if a.id == account_id), None)

    def has_account(self, account_id: Optional[int]) -> bool:
        return self.account(account_id) is not None

    def transaction(self, transaction_id: int) -> Optional[Transaction]:
        return next((t for t in self._transactions if t.id == transaction_id), None)

    def budget(self, budget_id: int) -> Optional[Budget]:
        return next((b for b in self._budgets if b.id == budget_id), None)

    # ------------------------------------------------------------------
    # Snapshot plumbing
    # ------------------------------------------------------------------
    def _handler(self, name: str, generation: int) -> Callable[[Snapshot], None]:
        def apply(snapshot: Snapshot) -> None:
            with self._lock:
                if generation != self._generation:
                    logger.debug("Dropped stale snapshot", extra={"collection": name})
                    return
                setattr(self, f"_{name}", tuple(snapshot.documents))
            logger.debug(
                "Snapshot applied", extra={"collection": name, "size": len(snapshot.documents)}
            )
            self._notify(name)

        return apply

    def _error_handler(self, generation: int) -> Callable[[SubscriptionError], None]:
        def report(error: SubscriptionError) -> None:
            with self._lock:
                if generation != self._generation:
                    return
            logger.warning(str(error), extra={"collection": error.collection})
            if self._on_error is not None:
                self._on_error(error)

        return report

    def _notify(self, name: str) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(name)
