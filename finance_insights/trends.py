"""Monthly profit/loss series, trailing growth and year-over-year comparison."""
from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from finance_insights.normalize import period_label, split_period_key

# Most recent periods kept in the joined monthly series
TREND_MONTHS = 12

# Periods per side of the trailing growth comparison
GROWTH_WINDOW = 3


@dataclass(frozen=True)
class MonthlyBucket:
    """One calendar month of the joined revenue/expense series."""
    period_key: str
    year: int
    month: int
    revenue: float
    expenses: float

    @property
    def label(self) -> str:
        return period_label(self.year, self.month)

    @property
    def profit(self) -> float:
        return self.revenue - self.expenses

    @property
    def profit_margin(self) -> float:
        margin = (self.profit / self.revenue) * 100 if self.revenue > 0 else 0.0
        return margin if math.isfinite(margin) else 0.0


@dataclass(frozen=True)
class YearComparison:
    """Revenue of the current calendar year against the previous one."""
    current_year: int
    current_revenue: float
    previous_year: int
    previous_revenue: float
    revenue_growth: float


def build_monthly_trend(
    revenue_by_month: Mapping[str, float],
    expense_by_month: Mapping[str, float],
) -> list[MonthlyBucket]:
    """Join monthly revenue and expense series into one P&L series.

    Full outer join on period key: a month present on only one side gets 0 on
    the other. Sorted by (year, month) ascending and cut to the most recent
    TREND_MONTHS entries.

    Args:
        revenue_by_month: Revenue per "YYYY-MM" period key.
        expense_by_month: Expenses per "YYYY-MM" period key.

    Returns:
        Chronological list of at most TREND_MONTHS MonthlyBucket entries.
    """
    buckets = []
    for key in set(revenue_by_month) | set(expense_by_month):
        year, month = split_period_key(key)
        buckets.append(MonthlyBucket(
            period_key=key,
            year=year,
            month=month,
            revenue=float(revenue_by_month.get(key, 0.0)),
            expenses=float(expense_by_month.get(key, 0.0)),
        ))
    buckets.sort(key=lambda b: (b.year, b.month))
    return buckets[-TREND_MONTHS:]


def growth_rate(series: Sequence[float]) -> float:
    """Trailing growth of the last GROWTH_WINDOW periods over the window before.

    Each window is averaged over GROWTH_WINDOW periods even when fewer exist.
    Returns 0 with fewer than two periods or a zero prior average.
    """
    if len(series) < 2:
        return 0.0
    recent = sum(series[-GROWTH_WINDOW:]) / GROWTH_WINDOW
    prior = sum(series[-2 * GROWTH_WINDOW:-GROWTH_WINDOW]) / GROWTH_WINDOW
    if prior == 0 or not math.isfinite(prior):
        return 0.0
    growth = ((recent - prior) / prior) * 100
    return growth if math.isfinite(growth) else 0.0


def monthly_series(by_month: Mapping[str, float]) -> list[float]:
    """Amounts of a period-keyed mapping in chronological order."""
    return [by_month[key] for key in sorted(by_month, key=split_period_key)]


def year_comparison(revenue_by_month: Mapping[str, float], current_year: int) -> YearComparison:
    """Compare revenue of current_year with the calendar year before it."""
    previous_year = current_year - 1
    current = 0.0
    previous = 0.0
    for key, amount in revenue_by_month.items():
        year, _ = split_period_key(key)
        if year == current_year:
            current += amount
        elif year == previous_year:
            previous += amount
    growth = ((current - previous) / previous) * 100 if previous > 0 else 0.0
    if not math.isfinite(growth):
        growth = 0.0
    return YearComparison(
        current_year=current_year,
        current_revenue=current,
        previous_year=previous_year,
        previous_revenue=previous,
        revenue_growth=growth,
    )
