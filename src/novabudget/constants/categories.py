"""
Centralized category, account type and transaction type definitions.
Unknown stored values resolve to an explicit fallback instead of failing.
"""

from __future__ import annotations

from enum import Enum


class TransactionType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"
    TRANSFER = "transfer"


class AccountType(str, Enum):
    BANK = "bank"
    CASH = "cash"
    SAVINGS = "savings"
    CREDIT = "credit"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None

    @property
    def icon(self) -> str:
        return _ACCOUNT_ICONS.get(self, _ACCOUNT_ICONS[AccountType.BANK])


class Category(str, Enum):
    """Transaction/budget category; anything unrecognised becomes OTHER."""

    FOOD = "food"
    TRANSPORT = "transport"
    SHOPPING = "shopping"
    ENTERTAINMENT = "entertainment"
    BILLS = "bills"
    HEALTH = "health"
    EDUCATION = "education"
    SALARY = "salary"
    FREELANCE = "freelance"
    INVESTMENT = "investment"
    TRANSFER = "transfer"
    OTHER = "other"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return cls.OTHER

    @classmethod
    def parse(cls, value: "str | Category | None") -> "Category":
        if value is None or value == "":
            return cls.OTHER
        return cls(value)

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def icon(self) -> str:
        return _CATEGORY_ICONS.get(self, _CATEGORY_ICONS[Category.OTHER])


_CATEGORY_ICONS = {
    Category.FOOD: "\U0001F354",
    Category.TRANSPORT: "\U0001F697",
    Category.SHOPPING: "\U0001F6CD️",
    Category.ENTERTAINMENT: "\U0001F3AC",
    Category.BILLS: "\U0001F4C4",
    Category.HEALTH: "\U0001F48A",
    Category.EDUCATION: "\U0001F4DA",
    Category.SALARY: "\U0001F4B0",
    Category.FREELANCE: "\U0001F4BC",
    Category.INVESTMENT: "\U0001F4C8",
    Category.TRANSFER: "\U0001F504",
    Category.OTHER: "\U0001F4E6",
}

_ACCOUNT_ICONS = {
    AccountType.BANK: "\U0001F3E6",
    AccountType.CASH: "\U0001F4B5",
    AccountType.SAVINGS: "\U0001F3E7",
    AccountType.CREDIT: "\U0001F4B3",
}

# Picker groups
EXPENSE_CATEGORIES = [
    Category.FOOD,
    Category.TRANSPORT,
    Category.SHOPPING,
    Category.ENTERTAINMENT,
    Category.BILLS,
    Category.HEALTH,
    Category.EDUCATION,
    Category.OTHER,
]

INCOME_CATEGORIES = [
    Category.SALARY,
    Category.FREELANCE,
    Category.INVESTMENT,
    Category.OTHER,
]

# Budgets only make sense for spending categories
BUDGET_CATEGORIES = list(EXPENSE_CATEGORIES)

ACCOUNT_TYPES = list(AccountType)
TRANSACTION_TYPES = list(TransactionType)
