"""Derived views over the transaction list.

Everything here is a pure function of its arguments and is recomputed from
the full list on every call; nothing is cached between calls.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..config import BaseConfig
from ..constants.categories import Category, TransactionType
from ..models.account import Account
from ..models.budget import Budget
from ..models.transaction import Transaction

ZERO = Decimal("0")
HUNDRED = Decimal("100")

TIER_SAFE = "safe"
TIER_WARNING = "warning"
TIER_DANGER = "danger"


def _in_month(txn: Transaction, year: int, month: int) -> bool:
    return txn.occurred_on.year == year and txn.occurred_on.month == month


def _kind(txn: Transaction) -> TransactionType:
    return TransactionType(txn.type)


# ----------------------------------------------------------------------
# Monthly totals
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class MonthlyTotals:
    income: Decimal
    expense: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


def monthly_totals(transactions: Iterable[Transaction], year: int, month: int) -> MonthlyTotals:
    """Sum income and expense for one month; transfers count for neither."""

    income = ZERO
    expense = ZERO
    for txn in transactions:
        if not _in_month(txn, year, month):
            continue
        kind = _kind(txn)
        if kind is TransactionType.INCOME:
            income += Decimal(txn.amount)
        elif kind is TransactionType.EXPENSE:
            expense += Decimal(txn.amount)
    return MonthlyTotals(income=income, expense=expense)


# ----------------------------------------------------------------------
# Category spend and budget progress
# ----------------------------------------------------------------------
def category_spend(
    transactions: Iterable[Transaction], year: int, month: int
) -> dict[Category, Decimal]:
    """Expense totals per category for one month."""

    totals: dict[Category, Decimal] = {}
    for txn in transactions:
        if _kind(txn) is not TransactionType.EXPENSE or not _in_month(txn, year, month):
            continue
        category = Category.parse(txn.category)
        totals[category] = totals.get(category, ZERO) + Decimal(txn.amount)
    return totals


def spend_for(spend: dict[Category, Decimal], category: Category | str) -> Decimal:
    return spend.get(Category.parse(category), ZERO)


@dataclass(frozen=True)
class BudgetProgress:
    category: Category
    spent: Decimal
    limit: Decimal
    percentage: Decimal
    tier: str
    budget_id: Optional[int] = None

    @property
    def remaining(self) -> Decimal:
        return self.limit - self.spent


def progress_tier(percentage: Decimal) -> str:
    if percentage >= BaseConfig.BUDGET_DANGER_PERCENT:
        return TIER_DANGER
    if percentage >= BaseConfig.BUDGET_WARNING_PERCENT:
        return TIER_WARNING
    return TIER_SAFE


def budget_progress(budget: Budget, spent: Decimal) -> BudgetProgress:
    """Percentage of the limit used, clamped to [0, 100], with its tier."""

    limit = Decimal(budget.limit)
    spent = Decimal(spent)
    if limit <= 0:
        percentage = HUNDRED if spent > 0 else ZERO
    else:
        percentage = min(spent / limit * HUNDRED, HUNDRED)
    percentage = max(percentage, ZERO)
    return BudgetProgress(
        category=Category.parse(budget.category),
        spent=spent,
        limit=limit,
        percentage=percentage,
        tier=progress_tier(percentage),
        budget_id=budget.id,
    )


def budget_overview(
    budgets: Iterable[Budget], transactions: Iterable[Transaction], year: int, month: int
) -> list[BudgetProgress]:
    """Progress rows for every budget, in budget order."""

    spend = category_spend(transactions, year, month)
    return [budget_progress(b, spend_for(spend, b.category)) for b in budgets]


# ----------------------------------------------------------------------
# Day buckets and the calendar month
# ----------------------------------------------------------------------
@dataclass
class DayBucket:
    income: Decimal = ZERO
    expense: Decimal = ZERO
    transactions: list[Transaction] = field(default_factory=list)

    @property
    def net(self) -> Decimal:
        return self.income - self.expense

    def summary(self, currency: str = "Rs.") -> str:
        count = len(self.transactions)
        plural = "" if count == 1 else "s"
        sign = "+" if self.net >= 0 else "-"
        return f"{count} transaction{plural} · {sign}{format_amount(abs(self.net), currency)}"


def day_buckets(
    transactions: Iterable[Transaction], year: int, month: int
) -> dict[int, DayBucket]:
    """Group a month's transactions by day-of-month.

    Only days with at least one transaction appear. Transfers are listed but
    add to neither income nor expense. Within a day the input order is kept.
    """

    buckets: dict[int, DayBucket] = {}
    for txn in transactions:
        if not _in_month(txn, year, month):
            continue
        bucket = buckets.setdefault(txn.occurred_on.day, DayBucket())
        bucket.transactions.append(txn)
        kind = _kind(txn)
        if kind is TransactionType.INCOME:
            bucket.income += Decimal(txn.amount)
        elif kind is TransactionType.EXPENSE:
            bucket.expense += Decimal(txn.amount)
    return dict(sorted(buckets.items()))


def bar_heights(
    income: Decimal, expense: Decimal, *, min_height: int = BaseConfig.BAR_MIN_HEIGHT
) -> tuple[Optional[Decimal], Optional[Decimal]]:
    """Percent heights for a day's income/expense bars, scaled to that day's max.

    A zero amount has no bar (None); non-zero bars never drop below
    ``min_height`` so small amounts stay visible.
    """

    peak = max(income, expense)
    if peak <= 0:
        return None, None

    def scale(value: Decimal) -> Optional[Decimal]:
        if value <= 0:
            return None
        return max(value / peak * HUNDRED, Decimal(min_height))

    return scale(income), scale(expense)


@dataclass(frozen=True)
class CalendarDay:
    day: int
    is_today: bool
    bucket: Optional[DayBucket]
    income_bar: Optional[Decimal]
    expense_bar: Optional[Decimal]

    @property
    def transaction_count(self) -> int:
        return len(self.bucket.transactions) if self.bucket else 0

    @property
    def net(self) -> Decimal:
        return self.bucket.net if self.bucket else ZERO

    @property
    def trend(self) -> Optional[str]:
        """positive / negative / neutral for days with activity."""
        if not self.bucket:
            return None
        if self.net > 0:
            return "positive"
        if self.net < 0:
            return "negative"
        return "neutral"


@dataclass(frozen=True)
class CalendarMonth:
    year: int
    month: int
    leading_blanks: int
    days: tuple[CalendarDay, ...]

    @property
    def title(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"

    def day(self, day: int) -> CalendarDay:
        return self.days[day - 1]


def calendar_month(
    transactions: Sequence[Transaction],
    year: int,
    month: int,
    *,
    today: Optional[date] = None,
) -> CalendarMonth:
    """Cells for a Sunday-first month grid with per-day mini chart heights."""

    first_weekday, days_in_month = calendar.monthrange(year, month)
    # calendar.monthrange is Monday=0; the grid starts on Sunday.
    leading = (first_weekday + 1) % 7
    buckets = day_buckets(transactions, year, month)
    today = today or date.today()

    cells = []
    for day in range(1, days_in_month + 1):
        bucket = buckets.get(day)
        income_bar, expense_bar = (
            bar_heights(bucket.income, bucket.expense) if bucket else (None, None)
        )
        cells.append(
            CalendarDay(
                day=day,
                is_today=(today.year, today.month, today.day) == (year, month, day),
                bucket=bucket,
                income_bar=income_bar,
                expense_bar=expense_bar,
            )
        )
    return CalendarMonth(year=year, month=month, leading_blanks=leading, days=tuple(cells))


def shift_month(year: int, month: int, step: int) -> tuple[int, int]:
    """Move ``step`` months forward (negative for back)."""

    index = year * 12 + (month - 1) + step
    return index // 12, index % 12 + 1


def rolling_cash_flow(
    transactions: Iterable[Transaction], year: int, month: int
) -> list[tuple[int, Decimal]]:
    """Running net total by day for the days of a month that had activity."""

    running = ZERO
    points: list[tuple[int, Decimal]] = []
    for day, bucket in day_buckets(transactions, year, month).items():
        running += bucket.net
        points.append((day, running))
    return points


# ----------------------------------------------------------------------
# Dashboard helpers
# ----------------------------------------------------------------------
def total_balance(accounts: Iterable[Account]) -> Decimal:
    return sum((Decimal(a.balance) for a in accounts), ZERO)


def recent_transactions(
    transactions: Sequence[Transaction], limit: int = BaseConfig.RECENT_TRANSACTIONS
) -> list[Transaction]:
    """First ``limit`` entries of an already newest-first list."""

    return list(transactions[: max(limit, 0)])


def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_number(value: Decimal | int | float) -> str:
    """Indian digit grouping, trailing zero decimals dropped (1,23,456.5)."""

    amount = Decimal(str(value)).quantize(Decimal("0.01"))
    sign = "-" if amount < 0 else ""
    whole, _, fraction = f"{abs(amount):.2f}".partition(".")
    fraction = fraction.rstrip("0")
    text = _group_indian(whole)
    return f"{sign}{text}.{fraction}" if fraction else f"{sign}{text}"


def format_amount(value: Decimal | int | float, currency: str = "Rs.") -> str:
    return f"{currency} {format_number(value)}"


def signed_amount(txn: Transaction, currency: str = "Rs.") -> str:
    """List rendering: expenses get a minus sign, everything else a plus."""

    prefix = "-" if _kind(txn) is TransactionType.EXPENSE else "+"
    return f"{prefix}{format_amount(txn.amount, currency)}"
