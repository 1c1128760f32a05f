"""Controller helpers for the primary user actions and view models.

Each action wraps a service call in ``AppContext.run_action`` so failures end
up as notifications rather than exceptions in the UI layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from .constants.categories import AccountType, Category, TransactionType
from .models.account import Account
from .models.budget import Budget
from .models.transaction import Transaction
from .models.user import User
from .services import aggregation, ledger_service, reports
from .services.reconciler import ReconcileResult, TransactionDraft

if TYPE_CHECKING:
    from .context import AppContext


# ----------------------------------------------------------------------
# Auth
# ----------------------------------------------------------------------
def sign_in(ctx: AppContext, email: str, password: str) -> Optional[User]:
    return ctx.run_action(ctx.auth.sign_in, email, password)


def sign_up(ctx: AppContext, email: str, password: str) -> Optional[User]:
    return ctx.run_action(ctx.auth.sign_up, email, password)


def sign_out(ctx: AppContext) -> None:
    ctx.auth.sign_out()


# ----------------------------------------------------------------------
# Mutations
# ----------------------------------------------------------------------
def add_transaction(
    ctx: AppContext,
    *,
    type: TransactionType | str,
    amount: Any,
    account_id: Optional[int],
    to_account_id: Optional[int] = None,
    category: Category | str = Category.OTHER,
    description: str = "",
    occurred_on: Optional[date] = None,
) -> Optional[ReconcileResult]:
    draft = TransactionDraft(
        type=type,
        amount=amount,
        account_id=account_id,
        to_account_id=to_account_id,
        category=category,
        description=description,
        occurred_on=occurred_on or date.today(),
    )
    return ctx.run_action(ctx.reconciler.create, draft)


def edit_transaction(ctx: AppContext, transaction_id: int, **changes: Any) -> Optional[ReconcileResult]:
    return ctx.run_action(ctx.reconciler.update, transaction_id, **changes)


def delete_transaction(ctx: AppContext, transaction_id: int) -> Optional[ReconcileResult]:
    return ctx.run_action(ctx.reconciler.delete, transaction_id)


def add_account(
    ctx: AppContext, *, name: str, type: AccountType | str = AccountType.BANK, balance: Any = 0
) -> Optional[Account]:
    def _create() -> Account:
        return ledger_service.create_account(
            ctx.store, user_id=ctx.require_user_id(), name=name, type=type, balance=balance
        )

    return ctx.run_action(_create)


def delete_account(ctx: AppContext, account_id: int) -> Optional[bool]:
    return ctx.run_action(
        lambda: ledger_service.delete_account(ctx.store, account_id, user_id=ctx.require_user_id())
    )


def add_budget(ctx: AppContext, *, category: Category | str, limit: Any) -> Optional[Budget]:
    return ctx.run_action(
        lambda: ledger_service.create_budget(
            ctx.store, user_id=ctx.require_user_id(), category=category, limit=limit
        )
    )


def delete_budget(ctx: AppContext, budget_id: int) -> Optional[bool]:
    return ctx.run_action(
        lambda: ledger_service.delete_budget(ctx.store, budget_id, user_id=ctx.require_user_id())
    )


# ----------------------------------------------------------------------
# View models
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Dashboard:
    total_balance: Decimal
    monthly: aggregation.MonthlyTotals
    recent: list[Transaction]


def dashboard(ctx: AppContext, *, today: Optional[date] = None) -> Dashboard:
    """Totals for the current month, recomputed from the live cache."""

    today = today or date.today()
    transactions = ctx.ledger.transactions
    return Dashboard(
        total_balance=aggregation.total_balance(ctx.ledger.accounts),
        monthly=aggregation.monthly_totals(transactions, today.year, today.month),
        recent=aggregation.recent_transactions(transactions, ctx.config.RECENT_TRANSACTIONS),
    )


def budgets_view(ctx: AppContext, *, today: Optional[date] = None) -> list[aggregation.BudgetProgress]:
    today = today or date.today()
    return aggregation.budget_overview(
        ctx.ledger.budgets, ctx.ledger.transactions, today.year, today.month
    )


def calendar_view(ctx: AppContext, *, today: Optional[date] = None) -> aggregation.CalendarMonth:
    month = ctx.current_month
    return aggregation.calendar_month(ctx.ledger.transactions, month.year, month.month, today=today)


def change_month(ctx: AppContext, step: int) -> date:
    """Move the calendar forward or back by ``step`` months."""

    year, month = aggregation.shift_month(ctx.current_month.year, ctx.current_month.month, step)
    ctx.current_month = date(year, month, 1)
    return ctx.current_month


def day_detail(ctx: AppContext, day: int) -> aggregation.DayBucket:
    """Transactions and totals for one day of the calendar month (empty if none)."""

    month = ctx.current_month
    buckets = aggregation.day_buckets(ctx.ledger.transactions, month.year, month.month)
    return buckets.get(day, aggregation.DayBucket())


# ----------------------------------------------------------------------
# Display text and chart export in the configured currency
# ----------------------------------------------------------------------
def format_money(ctx: AppContext, value: Decimal | int | float) -> str:
    return aggregation.format_amount(value, ctx.config.CURRENCY_LABEL)


def transaction_amount(ctx: AppContext, txn: Transaction) -> str:
    return aggregation.signed_amount(txn, ctx.config.CURRENCY_LABEL)


def day_summary(ctx: AppContext, day: int) -> str:
    return day_detail(ctx, day).summary(ctx.config.CURRENCY_LABEL)


def export_calendar_chart(
    ctx: AppContext,
    output_path: Path,
    *,
    today: Optional[date] = None,
    renderer: Optional[reports.ReportRenderer] = None,
) -> Path:
    """Render the calendar month currently on screen to a PNG."""

    figure = reports.build_calendar_chart(
        calendar_view(ctx, today=today),
        transactions=ctx.ledger.transactions,
        currency=ctx.config.CURRENCY_LABEL,
    )
    return reports.export_chart(figure, output_path, renderer=renderer)


def export_budget_chart(
    ctx: AppContext,
    output_path: Path,
    *,
    today: Optional[date] = None,
    renderer: Optional[reports.ReportRenderer] = None,
) -> Path:
    figure = reports.build_budget_chart(
        budgets_view(ctx, today=today), currency=ctx.config.CURRENCY_LABEL
    )
    return reports.export_chart(figure, output_path, renderer=renderer)
