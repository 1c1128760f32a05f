"""Concrete repository implementations using SQLModel."""

from .account import SQLModelAccountRepository
from .base import SQLModelCollection
from .budget import SQLModelBudgetRepository
from .transaction import SQLModelTransactionRepository

__all__ = [
    "SQLModelAccountRepository",
    "SQLModelBudgetRepository",
    "SQLModelCollection",
    "SQLModelTransactionRepository",
]
