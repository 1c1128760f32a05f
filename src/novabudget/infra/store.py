"""Document store facade bundling the per-user collections."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from sqlmodel import Session

from .feed import ChangeFeed
from .repositories import (
    SQLModelAccountRepository,
    SQLModelBudgetRepository,
    SQLModelTransactionRepository,
)


@dataclass
class DocumentStore:
    """The accounts, transactions and budgets collections sharing one feed."""

    accounts: SQLModelAccountRepository
    transactions: SQLModelTransactionRepository
    budgets: SQLModelBudgetRepository
    feed: ChangeFeed = field(default_factory=ChangeFeed)

    @classmethod
    def from_session_factory(cls, session_factory: Callable[[], Session]) -> "DocumentStore":
        feed = ChangeFeed()
        return cls(
            accounts=SQLModelAccountRepository(session_factory, feed),
            transactions=SQLModelTransactionRepository(session_factory, feed),
            budgets=SQLModelBudgetRepository(session_factory, feed),
            feed=feed,
        )
