from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, List, Mapping, Optional, Sequence

from core.domain.budget import Budget, CostCenter
from core.domain.enums import BudgetScope
from core.domain.expense import Expense
from core.services.analytics.metrics import (
    change_percent,
    months_in_window,
    utilization_percent,
    variance_percent,
)
from core.services.analytics.models import (
    BudgetPerformanceRow,
    BudgetSummaryRow,
    DateWindow,
    OverviewMetrics,
    ProjectedOverrun,
    WorkspaceAnalytics,
)
from core.services.analytics.scoring import budget_status, spend_efficiency
from core.services.analytics.trends import build_forecast

logger = logging.getLogger(__name__)

OVERRUN_WATCH_PERCENT = 80.0


def _matches_scope(budget: Budget, expense: Expense) -> bool:
    if budget.scope_type == BudgetScope.COST_CENTER:
        return expense.cost_center_id == budget.scope_id
    if budget.scope_type == BudgetScope.DEPARTMENT:
        return expense.department_id == budget.scope_id
    if budget.scope_type == BudgetScope.PROJECT:
        return expense.project_id == budget.scope_id
    return expense.workspace_id == budget.workspace_id


def _in_budget_period(budget: Budget, expense: Expense) -> bool:
    if budget.start_date is None and budget.end_date is None:
        return True
    if expense.expense_date is None:
        return False
    if budget.start_date and expense.expense_date < budget.start_date:
        return False
    if budget.end_date and expense.expense_date > budget.end_date:
        return False
    return True


def budget_spend(budget: Budget, expenses: Iterable[Expense]) -> float:
    return sum(
        expense.amount
        for expense in expenses
        if _matches_scope(budget, expense) and _in_budget_period(budget, expense)
    )


def total_budget(budgets: Iterable[Budget], cost_centers: Iterable[CostCenter]) -> float:
    """Active budget records; nominal cost-center budgets when none exist."""
    explicit = [budget.amount for budget in budgets if budget.is_active]
    if explicit:
        return float(sum(explicit))
    return float(sum(center.budget for center in cost_centers if center.is_active))


def summarize_budgets(budgets: Iterable[Budget], expenses: Sequence[Expense]) -> List[BudgetSummaryRow]:
    rows: List[BudgetSummaryRow] = []
    for budget in budgets:
        if not budget.is_active:
            continue
        spent = budget_spend(budget, expenses)
        utilization = utilization_percent(spent, budget.amount)
        rows.append(
            BudgetSummaryRow(
                budget_id=budget.id,
                workspace_id=budget.workspace_id,
                name=budget.label,
                scope_type=budget.scope_type,
                scope_id=budget.scope_id,
                allocated=budget.amount,
                spent=spent,
                remaining=budget.amount - spent,
                utilization_percent=utilization,
                status=budget_status(budget.amount, utilization),
            )
        )
    return rows


def overview_metrics(
    analytics: WorkspaceAnalytics,
    *,
    window: Optional[DateWindow],
    horizon_months: int = 3,
) -> OverviewMetrics:
    utilization = utilization_percent(analytics.total_spent, analytics.total_budget)
    if window is not None:
        months = months_in_window(window.start, window.end)
    else:
        months = float(max(1, len(analytics.monthly)))
    return OverviewMetrics(
        total_budget=analytics.total_budget,
        total_spent=analytics.total_spent,
        total_remaining=analytics.total_budget - analytics.total_spent,
        utilization_percent=utilization,
        burn_rate=utilization / months,
        monthly_burn=analytics.total_spent / months,
        spending_trend_percent=change_percent(
            analytics.current_month_spent, analytics.previous_month_spent
        ),
        forecast=build_forecast(
            analytics.monthly, analytics.total_spent, horizon_months=horizon_months
        ),
    )


def _elapsed_ratio(budget: Budget, as_of: date) -> Optional[float]:
    if budget.start_date is None or budget.end_date is None:
        return None
    total_days = (budget.end_date - budget.start_date).days
    elapsed_days = (as_of - budget.start_date).days
    if total_days <= 0 or elapsed_days <= 0:
        return None
    return min(1.0, elapsed_days / total_days)


def projected_overruns(
    budgets: Iterable[Budget],
    rows: Mapping[str, BudgetSummaryRow],
    *,
    as_of: date,
    watch_percent: float = OVERRUN_WATCH_PERCENT,
) -> List[ProjectedOverrun]:
    """Linear end-of-period projection for budgets already past the watch threshold."""
    out: List[ProjectedOverrun] = []
    for budget in budgets:
        row = rows.get(budget.id)
        if row is None or row.utilization_percent <= watch_percent:
            continue
        ratio = _elapsed_ratio(budget, as_of)
        if ratio is None:
            logger.debug("Budget %s has no usable period; skipping projection", budget.id)
            continue
        projected = row.spent / ratio
        out.append(
            ProjectedOverrun(
                budget_id=budget.id,
                name=row.name,
                projected_spend=projected,
                projected_overrun=max(0.0, projected - budget.amount),
            )
        )
    out.sort(key=lambda item: (-item.projected_overrun, item.name.lower()))
    return out


def budget_performance(
    budgets: Iterable[Budget],
    rows: Mapping[str, BudgetSummaryRow],
    *,
    as_of: date,
) -> List[BudgetPerformanceRow]:
    out: List[BudgetPerformanceRow] = []
    for budget in budgets:
        row = rows.get(budget.id)
        if row is None or budget.start_date is None:
            continue
        days_elapsed = max(1, (as_of - budget.start_date).days)
        rate = row.spent / days_elapsed
        projected_completion = None
        if rate > 0 and budget.amount > 0:
            try:
                projected_completion = budget.start_date + timedelta(days=int(budget.amount / rate))
            except OverflowError:
                projected_completion = None

        if budget.end_date is not None and budget.amount > 0:
            total_days = max(1, (budget.end_date - budget.start_date).days)
            expected = budget.amount * min(1.0, days_elapsed / total_days)
            prorated_variance = (row.spent - expected) / budget.amount * 100.0
        else:
            prorated_variance = variance_percent(row.spent, budget.amount)

        out.append(
            BudgetPerformanceRow(
                budget_id=budget.id,
                name=row.name,
                utilization_percent=row.utilization_percent,
                spend_rate_per_day=rate,
                projected_completion=projected_completion,
                variance_percent=prorated_variance,
                efficiency=spend_efficiency(prorated_variance),
            )
        )
    return out


__all__ = [
    "OVERRUN_WATCH_PERCENT",
    "budget_spend",
    "total_budget",
    "summarize_budgets",
    "overview_metrics",
    "projected_overruns",
    "budget_performance",
]
