"""JSON report generation module.

Flattens a PipelineResult into the profit/loss report consumed by the
presentation and export layers.
"""
from __future__ import annotations

import dataclasses
import json
from datetime import datetime, timezone
from typing import Any

from finance_insights import __version__
from finance_insights.expenses import ExpenseSummary
from finance_insights.payments import outstanding_by_status, status_counts
from finance_insights.pipeline import PipelineResult
from finance_insights.revenue import RevenueSummary
from finance_insights.trends import MonthlyBucket


def _round(value: float) -> float:
    return round(float(value), 2)


def build_revenue_section(revenue: RevenueSummary) -> dict:
    """Revenue totals and groupings with amounts rounded to cents."""
    return {
        "total_revenue": _round(revenue.total_revenue),
        "total_invoiced": _round(revenue.total_invoiced),
        "total_outstanding": _round(revenue.total_outstanding),
        "total_payments": revenue.total_payments,
        "by_method": {k: _round(v) for k, v in revenue.by_method.items()},
        "by_hospital": {k: _round(v) for k, v in revenue.by_hospital.items()},
        "by_month": [
            {
                "period": m.period_key,
                "label": m.label,
                "revenue": _round(m.revenue),
                "invoiced": _round(m.invoiced),
                "payments": m.payments,
            }
            for m in revenue.by_month.values()
        ],
    }


def build_expense_section(expenses: ExpenseSummary) -> dict:
    """Payroll, statutory, inventory and combined expense figures."""
    return {
        "total_expenses": _round(expenses.total_expenses),
        "payroll": {
            "total_gross_salary": _round(expenses.total_gross_salary),
            "total_bonuses": _round(expenses.total_bonuses),
            "total_deductions": _round(expenses.total_deductions),
            "total_net_salary": _round(expenses.total_net_salary),
            "total_employee_epf": _round(expenses.total_employee_epf),
            "total_employer_epf": _round(expenses.total_employer_epf),
            "total_employer_etf": _round(expenses.total_employer_etf),
            "total_employer_contributions": _round(expenses.total_employer_contributions),
            "total_payroll_expense": _round(expenses.total_payroll_expense),
            "unique_employees": expenses.unique_employee_count,
            "records": expenses.payroll_record_count,
            "status_breakdown": expenses.status_breakdown,
            "salary_bands": expenses.salary_bands,
            "by_month": [
                {
                    "period": m.period_key,
                    "label": m.label,
                    "gross_salary": _round(m.gross_salary),
                    "bonuses": _round(m.bonuses),
                    "employer_epf": _round(m.employer_epf),
                    "employer_etf": _round(m.employer_etf),
                    "payroll_expense": _round(m.payroll_expense),
                    "employee_count": m.employee_count,
                }
                for m in expenses.by_month.values()
            ],
        },
        "inventory": {
            "total_inventory_value": _round(expenses.total_inventory_value),
            "items": expenses.inventory_item_count,
            "by_category": {k: _round(v) for k, v in expenses.by_category.items()},
            "by_supplier": {k: _round(v) for k, v in expenses.by_supplier.items()},
        },
    }


def build_trend_section(trend: list[MonthlyBucket]) -> list[dict]:
    """Monthly P&L rows, profit and margin included."""
    return [
        {
            "period": b.period_key,
            "label": b.label,
            "revenue": _round(b.revenue),
            "expenses": _round(b.expenses),
            "profit": _round(b.profit),
            "profit_margin": _round(b.profit_margin),
        }
        for b in trend
    ]


def build_report(result: PipelineResult) -> dict:
    """Assemble the complete profit/loss report.

    Args:
        result: Output of run_pipeline().

    Returns:
        The report dict ready for JSON serialization: request metadata, KPIs,
        revenue and expense breakdowns, monthly trend, year comparison,
        payment status and advisory insights.
    """
    kpis = result.kpis
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "tool_version": __version__,
        "as_of": result.as_of,
        "request": dataclasses.asdict(result.request),
        "kpis": {
            "total_revenue": _round(kpis.total_revenue),
            "total_expenses": _round(kpis.total_expenses),
            "net_result": _round(kpis.net_result),
            "is_profit": kpis.is_profit,
            "profit_margin": _round(kpis.profit_margin),
            "roi": _round(kpis.roi),
            "expense_ratio": _round(kpis.expense_ratio),
            "collection_rate": _round(kpis.collection_rate),
        },
        "performance": {
            k: _round(v) for k, v in dataclasses.asdict(result.performance).items()
        },
        "revenue": build_revenue_section(result.revenue),
        "expenses": build_expense_section(result.expenses),
        "monthly_trend": build_trend_section(result.monthly_trend),
        "year_comparison": dataclasses.asdict(result.year_comparison),
        "payment_status": {
            "counts": status_counts(result.partition),
            "outstanding": {
                k: _round(v) for k, v in outstanding_by_status(result.partition).items()
            },
            "overdue_critical": result.overdue_critical,
        },
        "top_employees": [dataclasses.asdict(e) for e in result.top_employees],
        "insights": [dataclasses.asdict(i) for i in result.insights],
    }


def write_report(report: dict, path: str) -> None:
    """Write the report dict to a JSON file.

    Args:
        report: The complete report dict from build_report().
        path: File path to write the JSON output to.
    """
    with open(path, "w") as f:
        json.dump(report, f, indent=2, default=_json_serializer)
    print(f"Report written to {path}")
    print(f"  Net result: {report['kpis']['net_result']:,.2f}")
    print(f"  Insights: {len(report['insights'])}")


def _json_serializer(obj: Any) -> Any:
    """Handle non-JSON-serializable types during report serialization.

    Converts date/datetime objects to ISO format strings, dataclasses to
    dicts, and numpy/polars scalar types to native Python types.

    Raises:
        TypeError: If the object type is not recognized.
    """
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if hasattr(obj, "item"):  # numpy/polars scalars
        return obj.item()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")
