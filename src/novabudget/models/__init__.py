"""SQLModel table exports."""

from .account import Account
from .budget import Budget
from .transaction import Transaction
from .user import User

__all__ = [
    "Account",
    "Budget",
    "Transaction",
    "User",
]
