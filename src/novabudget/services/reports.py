"""Chart rendering for the calendar and budget views."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Protocol

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from .aggregation import (  # noqa: E402
    TIER_DANGER,
    TIER_SAFE,
    TIER_WARNING,
    BudgetProgress,
    CalendarMonth,
    format_amount,
    rolling_cash_flow,
)
from ..models.transaction import Transaction  # noqa: E402

INCOME_COLOR = "#10B981"
EXPENSE_COLOR = "#EF4444"
NET_COLOR = "#6366F1"
TIER_COLORS = {TIER_SAFE: "#10B981", TIER_WARNING: "#F59E0B", TIER_DANGER: "#EF4444"}


class ReportRenderer(Protocol):
    """Protocol describing renderer behavior."""

    def render(self, figure: Figure, *, output_path: Path) -> None:  # pragma: no cover - interface
        ...


def build_calendar_chart(
    month: CalendarMonth,
    *,
    transactions: Iterable[Transaction] = (),
    currency: str = "Rs.",
) -> Figure:
    """Daily income/expense bars for a month, with the running net overlaid.

    Bars use absolute amounts; the per-day percentage heights on
    ``CalendarDay`` are for the compact grid cells.
    """

    days = [cell.day for cell in month.days]
    income = [float(cell.bucket.income) if cell.bucket else 0.0 for cell in month.days]
    expense = [float(cell.bucket.expense) if cell.bucket else 0.0 for cell in month.days]

    fig, ax = plt.subplots(figsize=(11, 5))
    width = 0.4
    ax.bar([d - width / 2 for d in days], income, width=width, color=INCOME_COLOR, label="Income")
    ax.bar([d + width / 2 for d in days], expense, width=width, color=EXPENSE_COLOR, label="Expense")

    points = rolling_cash_flow(transactions, month.year, month.month)
    if points:
        ax.plot(
            [day for day, _ in points],
            [float(total) for _, total in points],
            color=NET_COLOR,
            marker="o",
            linewidth=1.5,
            label="Running net",
        )

    ax.axhline(0, color="#9CA3AF", linewidth=0.8)
    ax.set_xticks(days)
    ax.tick_params(axis="x", labelsize=7)
    ax.set_xlim(0.3, len(days) + 0.7)
    ax.set_xlabel("Day")
    ax.set_ylabel(f"Amount ({currency})")
    ax.set_title(month.title, fontsize=14, fontweight="bold")
    if not any(income) and not any(expense):
        ax.text(0.5, 0.5, "No transactions", ha="center", va="center",
                transform=ax.transAxes, fontsize=12, color="#666")
    ax.legend(loc="upper left", fontsize=9)
    plt.tight_layout()
    return fig


def build_budget_chart(rows: Iterable[BudgetProgress], *, currency: str = "Rs.") -> Figure:
    """Horizontal progress bars, one per budget, coloured by tier."""

    rows = list(rows)
    fig, ax = plt.subplots(figsize=(8, max(2.0, 0.6 * len(rows) + 1)))
    if not rows:
        ax.text(0.5, 0.5, "No budgets set", ha="center", va="center", fontsize=12, color="#666")
        ax.axis("off")
        plt.tight_layout()
        return fig

    labels = [row.category.label for row in rows]
    positions = list(range(len(rows)))
    ax.barh(positions, [100] * len(rows), color="#E5E7EB")
    ax.barh(
        positions,
        [float(row.percentage) for row in rows],
        color=[TIER_COLORS[row.tier] for row in rows],
    )
    for pos, row in zip(positions, rows):
        ax.text(
            101, pos,
            f"{format_amount(row.spent, currency)} of {format_amount(row.limit, currency)}",
            va="center", fontsize=8,
        )
    ax.set_yticks(positions)
    ax.set_yticklabels(labels)
    ax.invert_yaxis()
    ax.set_xlim(0, 140)
    ax.set_xlabel("% of limit used")
    ax.set_title("Budgets", fontsize=14, fontweight="bold")
    plt.tight_layout()
    return fig


def export_chart(
    figure: Figure,
    output_path: Path,
    *,
    renderer: ReportRenderer | None = None,
) -> Path:
    """Write a figure to PNG and release it."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        if renderer is not None:
            renderer.render(figure, output_path=output_path)
        else:
            figure.savefig(output_path, bbox_inches="tight", dpi=120)
    finally:
        plt.close(figure)
    return output_path
