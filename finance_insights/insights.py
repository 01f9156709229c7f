"""Rule-based advisory insights over the KPI set.

Rules live in INSIGHT_RULES as (predicate, template, priority) entries and are
all evaluated in one pass; each can be exercised on its own with
evaluate_rule(). Output is a pure function of the inputs.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from finance_insights.metrics import KPISet
from finance_insights.revenue import RevenueSummary

PRIORITY_ORDER: dict[str, int] = {"high": 3, "medium": 2, "low": 1}

STRONG_MARGIN = 20.0
HEALTHY_MARGIN = 10.0
MARGIN_TUNING_THRESHOLD = 15.0
EXPENSE_RATIO_LIMIT = 80.0
COLLECTION_RATE_TARGET = 90.0


@dataclass(frozen=True)
class AdvisoryInsight:
    """A single advisory conclusion, ready for presentation."""
    type: str
    category: str
    title: str
    message: str
    recommendation: str
    priority: str


@dataclass(frozen=True)
class InsightRule:
    """Fires template when predicate holds for (kpis, revenue)."""
    name: str
    predicate: Callable[[KPISet, RevenueSummary], bool]
    template: Callable[[KPISet, RevenueSummary], dict[str, str]]
    priority: str


def margin_tier(profit_margin: float) -> str:
    if profit_margin >= STRONG_MARGIN:
        return "strong"
    if profit_margin >= HEALTHY_MARGIN:
        return "healthy"
    return "modest"


def _profit_template(kpis: KPISet, revenue: RevenueSummary) -> dict[str, str]:
    tier = margin_tier(kpis.profit_margin)
    if kpis.profit_margin < MARGIN_TUNING_THRESHOLD:
        recommendation = "Consider optimizing operational costs to improve profit margins."
    else:
        recommendation = "Maintain current operational strategies while exploring growth opportunities."
    return {
        "type": "success",
        "category": "Profitability",
        "title": f"{tier.title()} Profit Margin of {kpis.profit_margin:.1f}%",
        "message": (
            f"The organization is generating a {tier} profit margin on "
            f"{kpis.total_revenue:,.2f} of revenue, a net profit of {kpis.net_result:,.2f}."
        ),
        "recommendation": recommendation,
    }


def _loss_template(kpis: KPISet, revenue: RevenueSummary) -> dict[str, str]:
    return {
        "type": "error",
        "category": "Profitability",
        "title": f"Operating at a Loss of {abs(kpis.net_result):,.2f}",
        "message": (
            f"Current expenses exceed revenue by {abs(kpis.profit_margin):.1f}%. "
            "Immediate action required to achieve profitability."
        ),
        "recommendation": (
            "Focus on cost reduction and revenue enhancement strategies. Review payroll "
            "expenses and optimize inventory management."
        ),
    }


def _cost_ratio_template(kpis: KPISet, revenue: RevenueSummary) -> dict[str, str]:
    return {
        "type": "warning",
        "category": "Cost Management",
        "title": f"High Expense Ratio at {kpis.expense_ratio:.1f}%",
        "message": (
            f"Expenses represent {kpis.expense_ratio:.1f}% of total revenue, above the "
            f"{EXPENSE_RATIO_LIMIT:.0f}% limit for healthcare organizations."
        ),
        "recommendation": "Review operational efficiency and optimize costs in non-critical areas.",
    }


def _collection_template(kpis: KPISet, revenue: RevenueSummary) -> dict[str, str]:
    return {
        "type": "warning",
        "category": "Revenue Management",
        "title": f"Collection Rate Below Optimal at {kpis.collection_rate:.1f}%",
        "message": (
            f"Current collection rate is {kpis.collection_rate:.1f}%, leaving "
            f"{revenue.total_outstanding:,.2f} in outstanding receivables."
        ),
        "recommendation": (
            "Implement automated follow-up on open invoices and offer payment plans "
            "to improve collection rates."
        ),
    }


# Exactly one of "profitability" / "loss" fires for any input
INSIGHT_RULES: list[InsightRule] = [
    InsightRule(
        name="profitability",
        predicate=lambda kpis, revenue: kpis.net_result > 0,
        template=_profit_template,
        priority="medium",
    ),
    InsightRule(
        name="loss",
        predicate=lambda kpis, revenue: kpis.net_result <= 0,
        template=_loss_template,
        priority="high",
    ),
    InsightRule(
        name="cost_ratio",
        predicate=lambda kpis, revenue: kpis.expense_ratio > EXPENSE_RATIO_LIMIT,
        template=_cost_ratio_template,
        priority="high",
    ),
    InsightRule(
        name="collection",
        predicate=lambda kpis, revenue: kpis.collection_rate < COLLECTION_RATE_TARGET,
        template=_collection_template,
        priority="medium",
    ),
]


def evaluate_rule(rule: InsightRule, kpis: KPISet, revenue: RevenueSummary) -> AdvisoryInsight | None:
    """Return the rule's insight if its predicate holds, else None."""
    if not rule.predicate(kpis, revenue):
        return None
    return AdvisoryInsight(priority=rule.priority, **rule.template(kpis, revenue))


def generate_insights(
    kpis: KPISet,
    revenue: RevenueSummary,
    rules: list[InsightRule] | None = None,
) -> list[AdvisoryInsight]:
    """Evaluate every rule and return the insights, highest priority first.

    The sort is stable, so insights of equal priority keep rule order.

    Args:
        kpis: KPI set from compute_kpis().
        revenue: Revenue summary the KPIs were computed from.
        rules: Rule table to evaluate; defaults to INSIGHT_RULES.

    Returns:
        List of AdvisoryInsight ordered high, medium, low.
    """
    fired = []
    for rule in INSIGHT_RULES if rules is None else rules:
        insight = evaluate_rule(rule, kpis, revenue)
        if insight is not None:
            fired.append(insight)
    return sorted(fired, key=lambda i: PRIORITY_ORDER[i.priority], reverse=True)
