"""Account and budget maintenance outside the reconciler."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from ..constants.categories import AccountType, Category
from ..domain.repositories import DocumentStoreLike
from ..errors import ValidationError
from ..logging_config import get_logger
from ..models.account import Account
from ..models.budget import Budget

logger = get_logger(__name__)


def _parse_decimal(value: Any, *, field: str, label: str) -> Decimal:
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(f"Please enter {label}", field=field)
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        if not number.is_finite():
            raise InvalidOperation
        return number.quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{label.capitalize()} must be a number", field=field) from None


def create_account(
    store: DocumentStoreLike,
    *,
    user_id: int,
    name: str,
    type: AccountType | str = AccountType.BANK,
    balance: Any = Decimal("0"),
) -> Account:
    """Open an account with its starting balance.

    The opening balance may be negative (credit accounts carry debt).
    """

    name = (name or "").strip()
    if not name:
        raise ValidationError("Please enter an account name", field="name")
    try:
        account_type = AccountType(type)
    except ValueError:
        raise ValidationError(f"Unknown account type: {type}", field="type") from None
    opening = _parse_decimal(balance, field="balance", label="a balance")

    account = store.accounts.add(
        Account(name=name, type=account_type, balance=opening, user_id=user_id),
        user_id=user_id,
    )
    logger.info(
        "Account created",
        extra={"account_id": account.id, "type": account_type.value, "opening": str(opening)},
    )
    return account


def delete_account(store: DocumentStoreLike, account_id: int, *, user_id: int) -> bool:
    """Remove an account. Transactions that reference it are left untouched."""

    deleted = store.accounts.delete(account_id, user_id=user_id)
    if deleted:
        logger.info("Account deleted", extra={"account_id": account_id})
    return deleted


def create_budget(
    store: DocumentStoreLike,
    *,
    user_id: int,
    category: Category | str,
    limit: Any,
) -> Budget:
    """Set a monthly limit for a category."""

    parsed = Category.parse(category)
    if parsed is Category.TRANSFER:
        raise ValidationError("Transfers cannot be budgeted", field="category")
    amount = _parse_decimal(limit, field="limit", label="a limit")
    if amount <= 0:
        raise ValidationError("Limit must be greater than zero", field="limit")

    budget = store.budgets.add(
        Budget(category=parsed, limit=amount, user_id=user_id), user_id=user_id
    )
    logger.info(
        "Budget created",
        extra={"budget_id": budget.id, "category": parsed.value, "limit": str(amount)},
    )
    return budget


def delete_budget(store: DocumentStoreLike, budget_id: int, *, user_id: int) -> bool:
    deleted = store.budgets.delete(budget_id, user_id=user_id)
    if deleted:
        logger.info("Budget deleted", extra={"budget_id": budget_id})
    return deleted
