"""Expense aggregation over payroll and inventory records.

Statutory contributions are always derived from gross salary at read time.
A stored ``epf``/``etf`` on a payroll record is never trusted for totals; use
backfill_statutory() to reconcile stored values explicitly.
"""
from __future__ import annotations

from dataclasses import dataclass, field

import polars as pl

from finance_insights.ingest import inventory_frame, payroll_frame
from finance_insights.normalize import normalize, period_label, round_half_up

# Statutory rates, applied to gross salary only (bonuses excluded)
EMPLOYEE_EPF_RATE = 0.08
EMPLOYER_EPF_RATE = 0.12
EMPLOYER_ETF_RATE = 0.03

# Gross salary bands: (label, lower bound inclusive)
SALARY_BANDS = [
    ("0-50K", 0),
    ("50K-100K", 50_000),
    ("100K-150K", 100_000),
    ("150K-200K", 150_000),
    ("200K+", 200_000),
]


@dataclass(frozen=True)
class PayrollMonth:
    """Payroll cost accumulated for one (payrollYear, payrollMonth) period."""
    period_key: str
    year: int
    month: int
    gross_salary: float
    bonuses: float
    deductions: float
    employee_epf: float
    employer_epf: float
    employer_etf: float
    payroll_expense: float
    employee_count: int

    @property
    def label(self) -> str:
        return period_label(self.year, self.month)


@dataclass(frozen=True)
class ExpenseSummary:
    """Output of aggregate_expenses()."""
    total_gross_salary: float = 0.0
    total_bonuses: float = 0.0
    total_deductions: float = 0.0
    total_employee_epf: float = 0.0
    total_employer_epf: float = 0.0
    total_employer_etf: float = 0.0
    total_net_salary: float = 0.0
    total_payroll_expense: float = 0.0
    total_inventory_value: float = 0.0
    total_expenses: float = 0.0
    unique_employee_count: int = 0
    payroll_record_count: int = 0
    inventory_item_count: int = 0
    by_month: dict[str, PayrollMonth] = field(default_factory=dict)
    by_category: dict[str, float] = field(default_factory=dict)
    by_supplier: dict[str, float] = field(default_factory=dict)
    status_breakdown: dict[str, int] = field(default_factory=dict)
    salary_bands: dict[str, int] = field(default_factory=dict)

    @property
    def total_employer_contributions(self) -> float:
        return self.total_employer_epf + self.total_employer_etf

    def monthly_totals(self) -> dict[str, float]:
        """Employer payroll cost per period key."""
        return {key: m.payroll_expense for key, m in self.by_month.items()}


@dataclass(frozen=True)
class EmployeeCost:
    """Per-employee payroll totals across all of that employee's records."""
    employee_id: str
    employee_name: str
    records: int
    gross_salary: float
    bonuses: float
    employee_epf: float
    employer_epf: float
    employer_etf: float
    payroll_expense: float


@dataclass(frozen=True)
class StatutoryCorrection:
    """A payroll record whose stored contributions disagree with derived ones."""
    index: int
    employee_id: str
    stored_epf: float
    derived_epf: float
    stored_etf: float
    derived_etf: float
    corrected: dict


def _contribution(rate: float) -> pl.Expr:
    return (pl.col("gross_salary") * rate + 0.5).floor()


def _with_contributions(df: pl.DataFrame) -> pl.DataFrame:
    """Add per-record statutory contributions, employer cost and net salary."""
    return df.with_columns([
        _contribution(EMPLOYEE_EPF_RATE).alias("employee_epf"),
        _contribution(EMPLOYER_EPF_RATE).alias("employer_epf"),
        _contribution(EMPLOYER_ETF_RATE).alias("employer_etf"),
    ]).with_columns([
        (
            pl.col("gross_salary") + pl.col("bonuses")
            + pl.col("employer_epf") + pl.col("employer_etf")
        ).alias("payroll_expense"),
        (
            pl.col("gross_salary") + pl.col("bonuses") - pl.col("deductions")
            - pl.col("employee_epf") - pl.col("employer_etf")
        ).alias("net_salary"),
    ])


def _salary_band() -> pl.Expr:
    expr = pl.lit(SALARY_BANDS[0][0])
    for label, lower in SALARY_BANDS[1:]:
        expr = pl.when(pl.col("gross_salary") >= lower).then(pl.lit(label)).otherwise(expr)
    return expr


def _valid_employee() -> pl.Expr:
    return pl.col("employee_id") != ""


def aggregate_expenses(payroll: list[dict], inventory: list[dict]) -> ExpenseSummary:
    """Summarize payroll and inventory records into expense totals.

    Payroll cost is the employer's cost: gross salary plus bonuses plus the
    employer EPF and ETF contributions. Inventory cost is price times quantity
    for every item. Payroll records whose year or month cannot be parsed count
    toward totals but are left out of the monthly grouping.

    Args:
        payroll: Raw payroll record dicts.
        inventory: Raw inventory item dicts.

    Returns:
        ExpenseSummary with payroll, inventory and combined totals.
    """
    pay = _with_contributions(payroll_frame(payroll))
    inv = inventory_frame(inventory).with_columns(
        (pl.col("price") * pl.col("quantity")).alias("value")
    )

    totals = pay.select([
        pl.col(c).sum()
        for c in [
            "gross_salary", "bonuses", "deductions", "employee_epf",
            "employer_epf", "employer_etf", "net_salary", "payroll_expense",
        ]
    ]).row(0, named=True)

    total_payroll = float(totals["payroll_expense"])
    total_inventory = float(inv["value"].sum())

    monthly = (
        pay
        .filter(pl.col("period_key").is_not_null())
        .group_by("period_key", maintain_order=True)
        .agg([
            pl.col("year").first(),
            pl.col("month").first(),
            pl.col("gross_salary").sum(),
            pl.col("bonuses").sum(),
            pl.col("deductions").sum(),
            pl.col("employee_epf").sum(),
            pl.col("employer_epf").sum(),
            pl.col("employer_etf").sum(),
            pl.col("payroll_expense").sum(),
            pl.col("employee_id").filter(_valid_employee()).n_unique().alias("employee_count"),
        ])
        .sort("period_key")
    )
    by_month = {
        row["period_key"]: PayrollMonth(
            period_key=row["period_key"],
            year=int(row["year"]),
            month=int(row["month"]),
            gross_salary=float(row["gross_salary"]),
            bonuses=float(row["bonuses"]),
            deductions=float(row["deductions"]),
            employee_epf=float(row["employee_epf"]),
            employer_epf=float(row["employer_epf"]),
            employer_etf=float(row["employer_etf"]),
            payroll_expense=float(row["payroll_expense"]),
            employee_count=int(row["employee_count"]),
        )
        for row in monthly.iter_rows(named=True)
    }

    bands = dict.fromkeys((label for label, _ in SALARY_BANDS), 0)
    band_counts = pay.group_by(_salary_band().alias("band")).agg(pl.len().alias("n"))
    for row in band_counts.iter_rows(named=True):
        bands[row["band"]] = int(row["n"])

    return ExpenseSummary(
        total_gross_salary=float(totals["gross_salary"]),
        total_bonuses=float(totals["bonuses"]),
        total_deductions=float(totals["deductions"]),
        total_employee_epf=float(totals["employee_epf"]),
        total_employer_epf=float(totals["employer_epf"]),
        total_employer_etf=float(totals["employer_etf"]),
        total_net_salary=float(totals["net_salary"]),
        total_payroll_expense=total_payroll,
        total_inventory_value=total_inventory,
        total_expenses=total_payroll + total_inventory,
        unique_employee_count=int(pay.filter(_valid_employee())["employee_id"].n_unique()),
        payroll_record_count=pay.height,
        inventory_item_count=inv.height,
        by_month=by_month,
        by_category=_value_by(inv, "category"),
        by_supplier=_value_by(inv, "supplier"),
        status_breakdown=_count_by(pay, "status"),
        salary_bands=bands,
    )


def _value_by(inv: pl.DataFrame, key: str) -> dict[str, float]:
    grouped = inv.group_by(key, maintain_order=True).agg(pl.col("value").sum())
    return {row[key]: float(row["value"]) for row in grouped.iter_rows(named=True)}


def _count_by(df: pl.DataFrame, key: str) -> dict[str, int]:
    grouped = df.group_by(key, maintain_order=True).agg(pl.len().alias("n"))
    return {row[key]: int(row["n"]) for row in grouped.iter_rows(named=True)}


def top_employees(payroll: list[dict], limit: int = 5) -> list[EmployeeCost]:
    """Rank employees by total employer cost, highest first.

    Records without an employeeId are ignored. Ties keep first-seen order.
    """
    pay = _with_contributions(payroll_frame(payroll)).filter(_valid_employee())
    ranked = (
        pay
        .group_by("employee_id", maintain_order=True)
        .agg([
            pl.col("employee_name").first(),
            pl.len().alias("records"),
            pl.col("gross_salary").sum(),
            pl.col("bonuses").sum(),
            pl.col("employee_epf").sum(),
            pl.col("employer_epf").sum(),
            pl.col("employer_etf").sum(),
            pl.col("payroll_expense").sum(),
        ])
        .sort("payroll_expense", descending=True, maintain_order=True)
        .head(limit)
    )
    return [
        EmployeeCost(
            employee_id=row["employee_id"],
            employee_name=row["employee_name"],
            records=int(row["records"]),
            gross_salary=float(row["gross_salary"]),
            bonuses=float(row["bonuses"]),
            employee_epf=float(row["employee_epf"]),
            employer_epf=float(row["employer_epf"]),
            employer_etf=float(row["employer_etf"]),
            payroll_expense=float(row["payroll_expense"]),
        )
        for row in ranked.iter_rows(named=True)
    ]


def backfill_statutory(payroll: list[dict]) -> list[StatutoryCorrection]:
    """Find payroll records whose stored EPF/ETF disagree with derived values.

    One-time reconciliation for records written under an older rate or basis.
    Each correction carries a corrected copy of the record (epf, etf and
    netSalary recomputed); the input records are never modified. Persisting
    the corrections is left to the caller.

    Args:
        payroll: Raw payroll record dicts as stored.

    Returns:
        One StatutoryCorrection per mismatched record, in input order.
    """
    corrections: list[StatutoryCorrection] = []
    for index, record in enumerate(payroll):
        if not isinstance(record, dict):
            continue
        gross = normalize(record.get("grossSalary"))
        derived_epf = round_half_up(gross * EMPLOYEE_EPF_RATE)
        derived_etf = round_half_up(gross * EMPLOYER_ETF_RATE)
        stored_epf = normalize(record.get("epf"))
        stored_etf = normalize(record.get("etf"))
        if stored_epf == derived_epf and stored_etf == derived_etf:
            continue

        corrected = dict(record)
        corrected["epf"] = derived_epf
        corrected["etf"] = derived_etf
        corrected["netSalary"] = (
            gross + normalize(record.get("bonuses")) - normalize(record.get("deductions"))
            - derived_epf - derived_etf
        )
        corrections.append(StatutoryCorrection(
            index=index,
            employee_id=str(record.get("employeeId") or ""),
            stored_epf=stored_epf,
            derived_epf=derived_epf,
            stored_etf=stored_etf,
            derived_etf=derived_etf,
            corrected=corrected,
        ))
    return corrections
