"""Revenue aggregation over billing/payment records."""
from __future__ import annotations

import math
from dataclasses import dataclass, field

import polars as pl

from finance_insights.ingest import payments_frame
from finance_insights.normalize import period_label


@dataclass(frozen=True)
class MonthRevenue:
    """Payments received and invoiced within one calendar month."""
    period_key: str
    year: int
    month: int
    revenue: float
    invoiced: float
    payments: int

    @property
    def label(self) -> str:
        return period_label(self.year, self.month)


@dataclass(frozen=True)
class RevenueSummary:
    """Output of aggregate_revenue()."""
    total_revenue: float = 0.0
    total_invoiced: float = 0.0
    total_outstanding: float = 0.0
    total_payments: int = 0
    by_method: dict[str, float] = field(default_factory=dict)
    by_month: dict[str, MonthRevenue] = field(default_factory=dict)
    by_hospital: dict[str, float] = field(default_factory=dict)

    def monthly_totals(self) -> dict[str, float]:
        """Revenue received per period key."""
        return {key: m.revenue for key, m in self.by_month.items()}


def aggregate_revenue(payments: list[dict]) -> RevenueSummary:
    """Summarize payment records into totals and groupings.

    Revenue is what was actually received (amountPaid); invoiced is what was
    billed (totalAmount). Payments with a missing or unparsable date still
    count toward every total and the method/hospital groupings; they are only
    left out of the monthly grouping.

    Args:
        payments: Raw payment record dicts.

    Returns:
        RevenueSummary with totals and method, month and hospital groupings.
    """
    df = payments_frame(payments)

    by_method = _sum_by(df, "method")
    by_hospital = _sum_by(df, "hospital")

    # Summed from the method buckets so the buckets add up to the total exactly
    total_revenue = sum(by_method.values(), 0.0)
    total_invoiced = float(df["total_amount"].sum())
    total_outstanding = total_invoiced - total_revenue
    if math.isnan(total_outstanding):
        total_outstanding = 0.0

    monthly = (
        df
        .filter(pl.col("period_key").is_not_null())
        .group_by("period_key", maintain_order=True)
        .agg([
            pl.col("year").first(),
            pl.col("month").first(),
            pl.col("amount_paid").sum().alias("revenue"),
            pl.col("total_amount").sum().alias("invoiced"),
            pl.len().alias("payments"),
        ])
        .sort("period_key")
    )
    by_month = {
        row["period_key"]: MonthRevenue(
            period_key=row["period_key"],
            year=int(row["year"]),
            month=int(row["month"]),
            revenue=float(row["revenue"]),
            invoiced=float(row["invoiced"]),
            payments=int(row["payments"]),
        )
        for row in monthly.iter_rows(named=True)
    }

    return RevenueSummary(
        total_revenue=total_revenue,
        total_invoiced=total_invoiced,
        total_outstanding=total_outstanding,
        total_payments=df.height,
        by_method=by_method,
        by_month=by_month,
        by_hospital=by_hospital,
    )


def _sum_by(df: pl.DataFrame, key: str) -> dict[str, float]:
    """Total amount_paid per value of key, in first-seen order."""
    grouped = (
        df
        .group_by(key, maintain_order=True)
        .agg(pl.col("amount_paid").sum().alias("total"))
    )
    return {row[key]: float(row["total"]) for row in grouped.iter_rows(named=True)}
