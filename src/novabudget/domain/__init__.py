"""Domain-layer interfaces."""

from .repositories import (
    AccountCollection,
    BudgetCollection,
    DocumentCollection,
    DocumentStoreLike,
    TransactionCollection,
)

__all__ = [
    "AccountCollection",
    "BudgetCollection",
    "DocumentCollection",
    "DocumentStoreLike",
    "TransactionCollection",
]
