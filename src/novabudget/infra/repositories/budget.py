"""SQLModel implementation of the budgets collection."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from sqlmodel import select

from ...constants.categories import Category
from ...models.budget import Budget
from .base import SQLModelCollection


class SQLModelBudgetRepository(SQLModelCollection[Budget]):
    """SQLModel-based budget repository implementation."""

    model = Budget
    collection = "budgets"

    def default_order(self) -> Sequence[Any]:
        return (Budget.created_at, Budget.id)

    def get_for_category(self, category: Category, *, user_id: int) -> Optional[Budget]:
        """Return the oldest budget for a category, if any."""
        with self.session_factory() as session:
            statement = (
                select(Budget)
                .where(Budget.user_id == user_id)
                .where(Budget.category == category)
                .order_by(*self.default_order())
            )
            budget = session.exec(statement).first()
            if budget:
                session.expunge(budget)
            return budget
