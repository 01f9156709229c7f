"""Stateless composition of the full analytics pipeline for one request."""
from __future__ import annotations

import time
import traceback
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Union

from finance_insights.expenses import (
    EmployeeCost,
    ExpenseSummary,
    aggregate_expenses,
    top_employees,
)
from finance_insights.insights import AdvisoryInsight, generate_insights
from finance_insights.metrics import KPISet, PerformanceMetrics, compute_kpis, performance_metrics
from finance_insights.normalize import parse_date, parse_month, parse_year, text_or
from finance_insights.payments import PaymentPartition, categorize, overdue_critical
from finance_insights.revenue import RevenueSummary, aggregate_revenue
from finance_insights.trends import (
    MonthlyBucket,
    YearComparison,
    build_monthly_trend,
    year_comparison,
)

PERIODS = ("all", "year", "month")


@dataclass(frozen=True)
class FinancialRequest:
    """Caller-owned filter for one pipeline run.

    period is "all", "year" (filter on year) or "month" (filter on year and
    month). employee_id restricts payroll only. as_of anchors the overdue
    window and the year comparison; it defaults to today when the pipeline
    runs.
    """
    period: str = "all"
    year: Optional[int] = None
    month: Optional[Union[int, str]] = None
    employee_id: Optional[str] = None
    as_of: Optional[date] = None

    def __post_init__(self) -> None:
        if self.period not in PERIODS:
            raise ValueError(f"Unknown period {self.period!r}; expected one of {PERIODS}")
        if self.period in ("year", "month") and self.year is None:
            raise ValueError(f"period={self.period!r} requires a year")
        if self.period == "month" and parse_month(self.month) is None:
            raise ValueError(f"period='month' requires a valid month, got {self.month!r}")


@dataclass(frozen=True)
class PipelineResult:
    """Every derived artifact of one pipeline run."""
    request: FinancialRequest
    as_of: date
    revenue: RevenueSummary
    expenses: ExpenseSummary
    kpis: KPISet
    performance: PerformanceMetrics
    monthly_trend: list[MonthlyBucket]
    year_comparison: YearComparison
    partition: PaymentPartition
    overdue_critical: int
    insights: list[AdvisoryInsight]
    top_employees: list[EmployeeCost] = field(default_factory=list)


def _in_period(year: Optional[int], month: Optional[int], request: FinancialRequest) -> bool:
    if request.period == "all":
        return True
    if year != request.year:
        return False
    return request.period == "year" or month == parse_month(request.month)


def filter_payments(payments: list[dict], request: FinancialRequest) -> list[dict]:
    """Payments dated within the requested period.

    With period "all" every record is kept, undated ones included. Non-dict
    entries are always dropped.
    """
    kept = []
    for record in payments:
        if not isinstance(record, dict):
            continue
        if request.period == "all":
            kept.append(record)
            continue
        when = parse_date(record.get("date"))
        if when is not None and _in_period(when.year, when.month, request):
            kept.append(record)
    return kept


def filter_payroll(payroll: list[dict], request: FinancialRequest) -> list[dict]:
    """Payroll records within the requested period and for the requested employee.

    Non-dict entries are always dropped.
    """
    kept = []
    for record in payroll:
        if not isinstance(record, dict):
            continue
        if request.employee_id and text_or(record.get("employeeId"), "") != request.employee_id:
            continue
        year = parse_year(record.get("payrollYear"))
        month = parse_month(record.get("payrollMonth"))
        if _in_period(year, month, request):
            kept.append(record)
    return kept


def run_pipeline(
    payments: list[dict],
    payroll: list[dict],
    inventory: list[dict],
    request: Optional[FinancialRequest] = None,
) -> PipelineResult:
    """Run every stage of the analytics pipeline over in-memory records.

    Holds no state between calls; inventory carries no dates and is never
    filtered by period. Trend building and payment categorization run with
    error isolation: a failure in either is printed and leaves that part of
    the result empty, while the rest is still produced.

    Args:
        payments: Raw payment records.
        payroll: Raw payroll records.
        inventory: Raw inventory items.
        request: Filter for this run; defaults to all periods.

    Returns:
        PipelineResult bundling summaries, KPIs, trend, partition and insights.
    """
    request = request or FinancialRequest()
    as_of = request.as_of or date.today()

    payments = filter_payments(payments, request)
    payroll = filter_payroll(payroll, request)

    t = time.time()
    revenue = aggregate_revenue(payments)
    expenses = aggregate_expenses(payroll, inventory)
    kpis = compute_kpis(revenue, expenses)
    print(f"  aggregation: revenue {revenue.total_revenue:,.2f}, "
          f"expenses {expenses.total_expenses:,.2f} in {time.time() - t:.1f}s")

    monthly_trend: list[MonthlyBucket] = []
    comparison = YearComparison(as_of.year, 0.0, as_of.year - 1, 0.0, 0.0)
    t = time.time()
    try:
        monthly_trend = build_monthly_trend(revenue.monthly_totals(), expenses.monthly_totals())
        comparison = year_comparison(revenue.monthly_totals(), as_of.year)
        print(f"  trends: {len(monthly_trend)} months in {time.time() - t:.1f}s")
    except Exception as e:
        print(f"  ERROR in trends: {e}")
        traceback.print_exc()

    partition = PaymentPartition()
    overdue = 0
    t = time.time()
    try:
        partition = categorize(payments)
        overdue = overdue_critical(partition.unpaid, as_of)
        print(f"  payment status: {len(partition.unpaid)} unpaid, {overdue} overdue "
              f"in {time.time() - t:.1f}s")
    except Exception as e:
        print(f"  ERROR in payment status: {e}")
        traceback.print_exc()

    return PipelineResult(
        request=request,
        as_of=as_of,
        revenue=revenue,
        expenses=expenses,
        kpis=kpis,
        performance=performance_metrics(revenue, expenses),
        monthly_trend=monthly_trend,
        year_comparison=comparison,
        partition=partition,
        overdue_critical=overdue,
        insights=generate_insights(kpis, revenue),
        top_employees=top_employees(payroll),
    )
