"""Cost-center comparison and detailed analysis.

The comparison view rates centers with utilization bands (performance) and
the detailed analysis rates them with a variance-aware risk tier. The two
classifications are computed independently and can disagree.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence

from core.domain.budget import Budget, CostCenter
from core.domain.enums import BudgetScope, TrendDirection
from core.domain.expense import Expense
from core.exceptions import ValidationError
from core.services.analytics.metrics import (
    average_amount,
    budget_accuracy,
    efficiency,
    utilization_percent,
    variance_percent,
)
from core.services.analytics.models import (
    CostCenterAnalysis,
    CostCenterComparisonRow,
    CostCenterKpis,
    DateWindow,
    SegmentTrendRow,
)
from core.services.analytics.scoring import cost_center_performance, cost_center_risk_tier
from core.services.analytics.trends import (
    budget_vs_actual,
    build_forecast,
    build_monthly_buckets,
    expense_frequency,
    seasonal_variance,
    segment_trends,
    spend_velocity,
)

MONTHLY_AVERAGE_MONTHS = 6
CATEGORY_BREAKDOWN_LIMIT = 8
DEFAULT_TREND_PERIOD_DAYS = 30

SORT_KEYS = {
    "name": lambda row: row.name.lower(),
    "budget": lambda row: row.budget,
    "spent": lambda row: row.spent,
    "utilization": lambda row: row.utilization_percent,
    "efficiency": lambda row: row.efficiency,
}


def center_budget(center: CostCenter, budgets: Iterable[Budget]) -> float:
    """Sum of the center's active budget records, else its nominal budget."""
    explicit = [
        budget.amount
        for budget in budgets
        if budget.is_active and budget.scope_type == BudgetScope.COST_CENTER and budget.scope_id == center.id
    ]
    if explicit:
        return float(sum(explicit))
    return center.budget


def _center_expenses(center: CostCenter, expenses: Iterable[Expense]) -> List[Expense]:
    return [expense for expense in expenses if expense.cost_center_id == center.id]


def comparison_rows(
    cost_centers: Iterable[CostCenter],
    budgets: Sequence[Budget],
    expenses: Sequence[Expense],
    *,
    all_expenses: Sequence[Expense],
    as_of: date,
) -> List[CostCenterComparisonRow]:
    """One unranked row per active center.

    `expenses` is the window-filtered set used for spend; the monthly average
    looks at `all_expenses` over the trailing six calendar months.
    """
    rows: List[CostCenterComparisonRow] = []
    for center in cost_centers:
        if not center.is_active:
            continue
        spent_rows = _center_expenses(center, expenses)
        spent = sum(expense.amount for expense in spent_rows)
        budget = center_budget(center, budgets)
        utilization = utilization_percent(spent, budget)
        buckets = build_monthly_buckets(
            _center_expenses(center, all_expenses),
            as_of=as_of,
            date_of=lambda e: e.expense_date,
            amount_of=lambda e: e.amount,
            window=MONTHLY_AVERAGE_MONTHS,
        )
        rows.append(
            CostCenterComparisonRow(
                cost_center_id=center.id,
                workspace_id=center.workspace_id,
                name=center.name,
                code=center.code,
                budget=budget,
                spent=spent,
                utilization_percent=utilization,
                efficiency=efficiency(len(spent_rows), budget),
                expense_count=len(spent_rows),
                average_expense=average_amount(spent, len(spent_rows)),
                monthly_average=sum(bucket.total for bucket in buckets) / MONTHLY_AVERAGE_MONTHS,
                performance=cost_center_performance(utilization),
            )
        )
    return rows


def rank_cost_centers(
    rows: Iterable[CostCenterComparisonRow],
    *,
    sort_by: str = "utilization",
    descending: bool = True,
) -> List[CostCenterComparisonRow]:
    key = SORT_KEYS.get((sort_by or "").strip().lower())
    if key is None:
        raise ValidationError(
            f"Unknown cost center sort key: {sort_by!r}. Use one of: {', '.join(SORT_KEYS)}.",
            code="UNKNOWN_SORT_KEY",
        )
    # Stable secondary order by id keeps equal keys deterministic.
    ordered = sorted(rows, key=lambda row: row.cost_center_id)
    ordered.sort(key=key, reverse=descending)
    return [replace(row, rank=index) for index, row in enumerate(ordered, start=1)]


def cost_center_recommendations(
    *,
    budget: float,
    utilization: float,
    variance: float,
    velocity: float,
    categories: Sequence[SegmentTrendRow],
) -> List[str]:
    out: List[str] = []
    if utilization > 100:
        out.append("Budget exceeded - immediate cost control measures needed")
    if variance > 15:
        out.append("High budget variance - review forecasting accuracy")
    if any(row.direction == TrendDirection.UP and row.percentage > 30 for row in categories):
        out.append("Monitor high-growth expense categories")
    if budget > 0 and velocity > budget / 12.0 * 1.2:
        out.append("Monthly spend rate exceeds budget allocation")
    if not out:
        out.append("Cost center performance is within acceptable parameters")
    return out


def find_cost_center(cost_centers: Iterable[CostCenter], cost_center_id: str) -> Optional[CostCenter]:
    for center in cost_centers:
        if center.id == cost_center_id:
            return center
    return None


def analyze_cost_center(
    center: CostCenter,
    *,
    budgets: Sequence[Budget],
    expenses: Sequence[Expense],
    as_of: date,
    window: Optional[DateWindow] = None,
    trend_window: object = 6,
    horizon_months: int = 3,
) -> CostCenterAnalysis:
    own = _center_expenses(center, expenses)
    spent_rows = [e for e in own if window.contains(e.expense_date)] if window else own
    spent = sum(expense.amount for expense in spent_rows)
    budget = center_budget(center, budgets)
    utilization = utilization_percent(spent, budget)
    variance = variance_percent(spent, budget)

    buckets = build_monthly_buckets(
        own,
        as_of=as_of,
        date_of=lambda e: e.expense_date,
        amount_of=lambda e: e.amount,
        window=trend_window,
    )
    period_start = window.start if window else as_of - timedelta(days=DEFAULT_TREND_PERIOD_DAYS)
    categories = segment_trends(
        own,
        key_of=lambda e: e.category,
        amount_of=lambda e: e.amount,
        date_of=lambda e: e.expense_date,
        period_start=period_start,
        as_of=as_of,
        limit=CATEGORY_BREAKDOWN_LIMIT,
    )
    velocity = spend_velocity(buckets)

    return CostCenterAnalysis(
        cost_center_id=center.id,
        name=center.name,
        code=center.code,
        budget=budget,
        spent=spent,
        remaining=budget - spent,
        utilization_percent=utilization,
        variance_percent=variance,
        monthly_trend=budget_vs_actual(buckets, budget),
        category_breakdown=categories,
        expense_frequency=expense_frequency(buckets),
        forecast=build_forecast(buckets, spent, horizon_months=horizon_months),
        risk_tier=cost_center_risk_tier(utilization, variance),
        recommendations=cost_center_recommendations(
            budget=budget,
            utilization=utilization,
            variance=variance,
            velocity=velocity,
            categories=categories,
        ),
        kpis=CostCenterKpis(
            budget_accuracy=budget_accuracy(variance),
            spend_velocity=velocity,
            seasonal_variance=seasonal_variance(buckets, velocity),
        ),
    )


__all__ = [
    "SORT_KEYS",
    "center_budget",
    "comparison_rows",
    "rank_cost_centers",
    "cost_center_recommendations",
    "find_cost_center",
    "analyze_cost_center",
]
