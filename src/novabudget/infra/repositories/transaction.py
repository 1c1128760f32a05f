"""SQLModel implementation of the transactions collection."""

from __future__ import annotations

from datetime import date
from typing import Any, Sequence

from sqlmodel import select

from ...models.transaction import Transaction
from .base import SQLModelCollection


class SQLModelTransactionRepository(SQLModelCollection[Transaction]):
    """SQLModel-based transaction repository implementation.

    Listings are newest first: by ``occurred_on``, then by creation time.
    """

    model = Transaction
    collection = "transactions"

    def default_order(self) -> Sequence[Any]:
        return (
            Transaction.occurred_on.desc(),  # type: ignore[attr-defined]
            Transaction.created_at.desc(),  # type: ignore[attr-defined]
            Transaction.id.desc(),  # type: ignore[union-attr]
        )

    def filter_by_date_range(
        self, start_date: date, end_date: date, *, user_id: int
    ) -> list[Transaction]:
        """Get transactions within an inclusive date range."""
        with self.session_factory() as session:
            statement = (
                select(Transaction)
                .where(Transaction.user_id == user_id)
                .where(Transaction.occurred_on >= start_date)
                .where(Transaction.occurred_on <= end_date)
                .order_by(*self.default_order())
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def filter_by_account(self, account_id: int, *, user_id: int) -> list[Transaction]:
        """Get every transaction touching an account on either side."""
        with self.session_factory() as session:
            statement = (
                select(Transaction)
                .where(Transaction.user_id == user_id)
                .where(
                    (Transaction.account_id == account_id)
                    | (Transaction.to_account_id == account_id)
                )
                .order_by(*self.default_order())
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows
