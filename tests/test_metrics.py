"""Tests for KPI and performance metric derivation."""
import math

import pytest

from finance_insights.expenses import ExpenseSummary, PayrollMonth
from finance_insights.metrics import compute_kpis, performance_metrics
from finance_insights.revenue import MonthRevenue, RevenueSummary


def _revenue(total_revenue=0.0, total_invoiced=0.0, by_month=None):
    return RevenueSummary(
        total_revenue=total_revenue,
        total_invoiced=total_invoiced,
        total_outstanding=total_invoiced - total_revenue,
        by_month=by_month or {},
    )


def _expenses(total_expenses=0.0, employees=0, by_month=None):
    return ExpenseSummary(
        total_expenses=total_expenses,
        unique_employee_count=employees,
        by_month=by_month or {},
    )


class TestComputeKpis:
    """Tests for compute_kpis()."""

    def test_worked_example_profit(self):
        kpis = compute_kpis(_revenue(850000, 900000), _expenses(635000))
        assert kpis.net_result == 215000
        assert kpis.is_profit is True
        assert kpis.profit_margin == pytest.approx(25.29, abs=0.01)
        assert kpis.roi == pytest.approx(215000 / 635000 * 100)
        assert kpis.expense_ratio == pytest.approx(635000 / 850000 * 100)

    def test_collection_rate(self):
        kpis = compute_kpis(_revenue(150, 300), _expenses(0))
        assert kpis.collection_rate == 50.0

    def test_break_even_is_not_profit(self):
        kpis = compute_kpis(_revenue(100, 100), _expenses(100))
        assert kpis.net_result == 0
        assert kpis.is_profit is False

    def test_zero_inputs_are_fully_zeroed(self):
        kpis = compute_kpis(_revenue(), _expenses())
        assert kpis.total_revenue == 0
        assert kpis.total_expenses == 0
        assert kpis.net_result == 0
        assert kpis.profit_margin == 0
        assert kpis.roi == 0
        assert kpis.expense_ratio == 0
        assert kpis.collection_rate == 0

    @pytest.mark.parametrize("revenue,invoiced,expenses", [
        (0, 0, 500), (500, 0, 0), (0, 500, 0), (0.01, 1e9, 1e9),
        (math.inf, math.inf, 0), (1e308, 1e308, math.inf), (math.inf, 100, 100),
    ])
    def test_ratios_are_always_finite(self, revenue, invoiced, expenses):
        kpis = compute_kpis(_revenue(revenue, invoiced), _expenses(expenses))
        for value in (kpis.profit_margin, kpis.roi, kpis.expense_ratio, kpis.collection_rate):
            assert math.isfinite(value)

    def test_zero_revenue_with_expenses(self):
        kpis = compute_kpis(_revenue(0, 0), _expenses(500))
        assert kpis.profit_margin == 0
        assert kpis.expense_ratio == 0
        assert kpis.roi == -100.0


class TestPerformanceMetrics:
    """Tests for performance_metrics()."""

    def test_revenue_per_employee(self):
        metrics = performance_metrics(_revenue(1000), _expenses(employees=4))
        assert metrics.revenue_per_employee == 250.0

    def test_overflowed_revenue_per_employee_is_zero(self):
        assert performance_metrics(_revenue(math.inf), _expenses(employees=2)).revenue_per_employee == 0.0

    def test_revenue_per_employee_without_employees(self):
        assert performance_metrics(_revenue(1000), _expenses()).revenue_per_employee == 1000.0

    def test_growth_uses_chronological_months(self):
        by_month = {
            f"2024-{m:02d}": MonthRevenue(f"2024-{m:02d}", 2024, m, amount, amount, 1)
            for m, amount in [(1, 100), (2, 100), (3, 100), (4, 200), (5, 200), (6, 200)]
        }
        payroll_month = PayrollMonth("2024-01", 2024, 1, 0, 0, 0, 0, 0, 0, 500, 1)
        metrics = performance_metrics(
            _revenue(900, by_month=by_month),
            _expenses(employees=1, by_month={"2024-01": payroll_month}),
        )
        assert metrics.revenue_growth == pytest.approx(100.0)
        assert metrics.expense_growth == 0.0
