"""Ratio KPIs derived from the revenue and expense summaries."""
from __future__ import annotations

import math
from dataclasses import dataclass

from finance_insights.expenses import ExpenseSummary
from finance_insights.revenue import RevenueSummary
from finance_insights.trends import growth_rate, monthly_series


@dataclass(frozen=True)
class KPISet:
    """Output of compute_kpis(). Percentages are on a 0-100 scale."""
    total_revenue: float
    total_expenses: float
    net_result: float
    is_profit: bool
    profit_margin: float
    roi: float
    expense_ratio: float
    collection_rate: float


@dataclass(frozen=True)
class PerformanceMetrics:
    """Output of performance_metrics()."""
    revenue_growth: float
    expense_growth: float
    revenue_per_employee: float


def _percent(numerator: float, denominator: float) -> float:
    """numerator / denominator * 100, or 0 when the denominator is not positive.

    Also 0 when either side or the result is not finite, e.g. after sums
    overflow to infinity.
    """
    if not (math.isfinite(numerator) and math.isfinite(denominator)) or denominator <= 0:
        return 0.0
    result = (numerator / denominator) * 100
    return result if math.isfinite(result) else 0.0


def compute_kpis(revenue: RevenueSummary, expenses: ExpenseSummary) -> KPISet:
    """Derive the KPI set from aggregated revenue and expenses.

    Every ratio guards its denominator, so none can be NaN or infinite.
    """
    net_result = revenue.total_revenue - expenses.total_expenses
    if math.isnan(net_result):
        net_result = 0.0
    return KPISet(
        total_revenue=revenue.total_revenue,
        total_expenses=expenses.total_expenses,
        net_result=net_result,
        is_profit=net_result > 0,
        profit_margin=_percent(net_result, revenue.total_revenue),
        roi=_percent(net_result, expenses.total_expenses),
        expense_ratio=_percent(expenses.total_expenses, revenue.total_revenue),
        collection_rate=_percent(revenue.total_revenue, revenue.total_invoiced),
    )


def performance_metrics(revenue: RevenueSummary, expenses: ExpenseSummary) -> PerformanceMetrics:
    """Growth of monthly revenue and payroll cost, and revenue per employee."""
    per_employee = revenue.total_revenue / max(expenses.unique_employee_count, 1)
    return PerformanceMetrics(
        revenue_growth=growth_rate(monthly_series(revenue.monthly_totals())),
        expense_growth=growth_rate(monthly_series(expenses.monthly_totals())),
        revenue_per_employee=per_employee if math.isfinite(per_employee) else 0.0,
    )
