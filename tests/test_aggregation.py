"""Derived views: monthly totals, category spend, budgets and the calendar."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from novabudget.constants.categories import AccountType, Category, TransactionType
from novabudget.models import Account, Budget
from novabudget.services import aggregation
from tests.conftest import make_txn

EXPENSE = TransactionType.EXPENSE
INCOME = TransactionType.INCOME
TRANSFER = TransactionType.TRANSFER


@pytest.fixture
def march_ledger():
    return [
        make_txn(INCOME, 5000, date(2025, 3, 1), category=Category.SALARY, txn_id=1),
        make_txn(EXPENSE, 120, date(2025, 3, 1), category=Category.FOOD, txn_id=2),
        make_txn(EXPENSE, 80, date(2025, 3, 3), category=Category.FOOD, txn_id=3),
        make_txn(EXPENSE, 400, date(2025, 3, 3), category=Category.BILLS, txn_id=4),
        make_txn(TRANSFER, 1000, date(2025, 3, 10), category=Category.TRANSFER,
                 account_id=1, to_account_id=2, txn_id=5),
        make_txn(EXPENSE, 999, date(2025, 2, 28), category=Category.FOOD, txn_id=6),
        make_txn(INCOME, 777, date(2024, 3, 3), category=Category.SALARY, txn_id=7),
    ]


def test_monthly_totals_excludes_transfers_and_other_months(march_ledger):
    totals = aggregation.monthly_totals(march_ledger, 2025, 3)

    assert totals.income == Decimal("5000")
    assert totals.expense == Decimal("600")
    assert totals.net == Decimal("4400")


def test_monthly_totals_empty_month():
    totals = aggregation.monthly_totals([], 2025, 1)
    assert (totals.income, totals.expense) == (0, 0)


def test_category_spend_counts_only_expenses_in_month(march_ledger):
    spend = aggregation.category_spend(march_ledger, 2025, 3)

    assert spend == {Category.FOOD: Decimal("200"), Category.BILLS: Decimal("400")}
    assert Category.SALARY not in spend
    assert Category.TRANSFER not in spend


def test_category_spend_missing_category_reads_zero(march_ledger):
    spend = aggregation.category_spend(march_ledger, 2025, 4)
    assert spend == {}
    assert aggregation.spend_for(spend, Category.FOOD) == 0
    assert aggregation.spend_for(spend, "not-a-category") == 0


@pytest.mark.parametrize(
    "spent, expected_pct, tier",
    [
        ("0", Decimal("0"), "safe"),
        ("69", Decimal("69"), "safe"),
        ("70", Decimal("70"), "warning"),
        ("89.99", Decimal("89.99"), "warning"),
        ("90", Decimal("90"), "danger"),
        ("250", Decimal("100"), "danger"),
    ],
)
def test_budget_progress_tiers_and_clamp(spent, expected_pct, tier):
    budget = Budget(id=3, user_id=1, category=Category.FOOD, limit=Decimal("100"))

    progress = aggregation.budget_progress(budget, Decimal(spent))

    assert progress.percentage == expected_pct
    assert 0 <= progress.percentage <= 100
    assert progress.tier == tier
    assert progress.budget_id == 3


def test_budget_overview_follows_budget_order(march_ledger):
    budgets = [
        Budget(id=1, user_id=1, category=Category.BILLS, limit=Decimal("500")),
        Budget(id=2, user_id=1, category=Category.FOOD, limit=Decimal("200")),
        Budget(id=3, user_id=1, category=Category.HEALTH, limit=Decimal("50")),
    ]

    rows = aggregation.budget_overview(budgets, march_ledger, 2025, 3)

    assert [r.category for r in rows] == [Category.BILLS, Category.FOOD, Category.HEALTH]
    assert [r.tier for r in rows] == ["warning", "danger", "safe"]
    assert rows[0].remaining == Decimal("100")
    assert rows[2].spent == 0


def test_day_buckets_only_contains_active_days(march_ledger):
    buckets = aggregation.day_buckets(march_ledger, 2025, 3)

    assert list(buckets) == [1, 3, 10]
    assert all(bucket.transactions for bucket in buckets.values())
    assert buckets[1].income == Decimal("5000")
    assert buckets[1].expense == Decimal("120")
    assert buckets[3].expense == Decimal("480")
    assert [t.id for t in buckets[3].transactions] == [3, 4]


def test_transfer_only_day_has_zero_totals(march_ledger):
    bucket = aggregation.day_buckets(march_ledger, 2025, 3)[10]

    assert (bucket.income, bucket.expense, bucket.net) == (0, 0, 0)
    assert bucket.summary() == "1 transaction · +Rs. 0"


def test_day_bucket_summary_sign(march_ledger):
    buckets = aggregation.day_buckets(march_ledger, 2025, 3)
    assert buckets[3].summary() == "2 transactions · -Rs. 480"
    assert buckets[1].summary(currency="$") == "2 transactions · +$ 4,880"


def test_aggregations_are_recomputed_from_input(march_ledger):
    first = aggregation.monthly_totals(march_ledger, 2025, 3)
    march_ledger.append(make_txn(INCOME, 1, date(2025, 3, 31)))
    second = aggregation.monthly_totals(march_ledger, 2025, 3)

    assert second.income == first.income + 1


def test_bar_heights_scale_to_the_days_own_max():
    income, expense = aggregation.bar_heights(Decimal("200"), Decimal("50"))
    assert income == Decimal("100")
    assert expense == Decimal("25")


def test_bar_heights_floor_and_missing_bars():
    income, expense = aggregation.bar_heights(Decimal("1000"), Decimal("1"))
    assert income == Decimal("100")
    assert expense == Decimal("10")

    assert aggregation.bar_heights(Decimal("0"), Decimal("30")) == (None, Decimal("100"))
    assert aggregation.bar_heights(Decimal("0"), Decimal("0")) == (None, None)


def test_calendar_month_grid(march_ledger):
    month = aggregation.calendar_month(march_ledger, 2025, 3, today=date(2025, 3, 3))

    # 1 March 2025 is a Saturday: six blanks in a Sunday-first grid.
    assert month.leading_blanks == 6
    assert len(month.days) == 31
    assert month.title == "March 2025"

    day3 = month.day(3)
    assert day3.is_today
    assert day3.transaction_count == 2
    assert day3.income_bar is None
    assert day3.expense_bar == Decimal("100")
    assert day3.trend == "negative"

    assert month.day(1).trend == "positive"
    assert month.day(10).trend == "neutral"
    assert month.day(2).bucket is None
    assert month.day(2).trend is None
    assert not month.day(1).is_today


def test_calendar_month_sunday_start():
    # 1 June 2025 is a Sunday.
    assert aggregation.calendar_month([], 2025, 6).leading_blanks == 0


@pytest.mark.parametrize(
    "start, step, expected",
    [((2025, 1), -1, (2024, 12)), ((2025, 12), 1, (2026, 1)), ((2025, 5), 14, (2026, 7))],
)
def test_shift_month(start, step, expected):
    assert aggregation.shift_month(*start, step) == expected


def test_rolling_cash_flow_accumulates_by_day(march_ledger):
    points = aggregation.rolling_cash_flow(march_ledger, 2025, 3)
    assert points == [(1, Decimal("4880")), (3, Decimal("4400")), (10, Decimal("4400"))]
    assert aggregation.rolling_cash_flow([], 2025, 3) == []


def test_total_balance_and_recent():
    accounts = [
        Account(id=1, user_id=1, name="A", type=AccountType.BANK, balance=Decimal("100.50")),
        Account(id=2, user_id=1, name="B", type=AccountType.CREDIT, balance=Decimal("-20")),
    ]
    assert aggregation.total_balance(accounts) == Decimal("80.50")
    assert aggregation.total_balance([]) == 0

    txns = [make_txn(EXPENSE, i + 1, date(2025, 1, 1), txn_id=i) for i in range(8)]
    assert [t.id for t in aggregation.recent_transactions(txns)] == [0, 1, 2, 3, 4]
    assert aggregation.recent_transactions(txns, limit=0) == []


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, "0"),
        (999, "999"),
        (1000, "1,000"),
        (123456, "1,23,456"),
        (Decimal("12345678.5"), "1,23,45,678.5"),
        (Decimal("-2500.25"), "-2,500.25"),
    ],
)
def test_format_number_indian_grouping(value, expected):
    assert aggregation.format_number(value) == expected


def test_signed_amount():
    expense = make_txn(EXPENSE, 1500, date(2025, 1, 1))
    income = make_txn(INCOME, 20, date(2025, 1, 1))
    transfer = make_txn(TRANSFER, 5, date(2025, 1, 1), to_account_id=2)

    assert aggregation.signed_amount(expense) == "-Rs. 1,500"
    assert aggregation.signed_amount(income) == "+Rs. 20"
    assert aggregation.signed_amount(transfer) == "+Rs. 5"
