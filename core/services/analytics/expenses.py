from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from core.domain.budget import Budget
from core.domain.enums import BudgetScope, ExpenseStatus
from core.domain.expense import Expense
from core.services.analytics.aggregation import UNASSIGNED, aggregate, top_n, with_shares
from core.services.analytics.metrics import change_percent, utilization_percent
from core.services.analytics.models import (
    DateWindow,
    DepartmentBreakdownRow,
    ExpenseAnalytics,
    WorkspaceAnalytics,
)


def in_window(expenses: Iterable[Expense], window: Optional[DateWindow]) -> List[Expense]:
    """Expenses dated inside the window; with no window every record is kept."""
    if window is None:
        return list(expenses)
    return [expense for expense in expenses if window.contains(expense.expense_date)]


def status_counts(expenses: Iterable[Expense]) -> Dict[str, int]:
    buckets = aggregate(expenses, lambda e: e.status.value, lambda e: e.amount)
    return {key: bucket.count for key, bucket in buckets.items()}


def status_amounts(expenses: Iterable[Expense]) -> Dict[str, float]:
    buckets = aggregate(expenses, lambda e: e.status.value, lambda e: e.amount)
    return {key: bucket.total for key, bucket in buckets.items()}


def department_status_amounts(expenses: Sequence[Expense]) -> Dict[str, Dict[str, float]]:
    out: Dict[str, Dict[str, float]] = {}
    by_department: Dict[str, List[Expense]] = {}
    for expense in expenses:
        by_department.setdefault(expense.department_id or UNASSIGNED, []).append(expense)
    for department_id, rows in by_department.items():
        out[department_id] = status_amounts(rows)
    return out


def department_budgets(budgets: Iterable[Budget]) -> Dict[str, float]:
    out: Dict[str, float] = {}
    for budget in budgets:
        if not budget.is_active or budget.scope_type != BudgetScope.DEPARTMENT or not budget.scope_id:
            continue
        out[budget.scope_id] = out.get(budget.scope_id, 0.0) + budget.amount
    return out


def department_breakdown(analytics: WorkspaceAnalytics) -> List[DepartmentBreakdownRow]:
    rows: List[DepartmentBreakdownRow] = []
    for key, bucket in analytics.by_department.items():
        budget = analytics.department_budgets.get(key, 0.0)
        rows.append(
            DepartmentBreakdownRow(
                department_id=key,
                total=bucket.total,
                count=bucket.count,
                status_amounts=dict(analytics.department_status_amounts.get(key, {})),
                budget=budget,
                utilization_percent=utilization_percent(bucket.total, budget),
            )
        )
    rows.sort(key=lambda row: (-row.total, row.department_id.lower()))
    return rows


def expense_analytics(analytics: WorkspaceAnalytics, *, top_categories: int = 5) -> ExpenseAnalytics:
    amounts = analytics.expense_status_amounts
    return ExpenseAnalytics(
        counts_by_status=dict(analytics.expense_status_counts),
        total_count=analytics.expense_count,
        total_amount=analytics.total_spent,
        approved_amount=amounts.get(ExpenseStatus.APPROVED.value, 0.0),
        pending_amount=amounts.get(ExpenseStatus.SUBMITTED.value, 0.0),
        rejected_amount=amounts.get(ExpenseStatus.REJECTED.value, 0.0),
        top_categories=with_shares(top_n(analytics.by_category, top_categories), analytics.total_spent),
        departments=department_breakdown(analytics),
        month_over_month_percent=change_percent(
            analytics.current_month_spent, analytics.previous_month_spent
        ),
        monthly_trend=list(analytics.monthly),
    )


def pending_count(analytics: WorkspaceAnalytics) -> int:
    return int(analytics.expense_status_counts.get(ExpenseStatus.SUBMITTED.value, 0))


__all__ = [
    "in_window",
    "status_counts",
    "status_amounts",
    "department_status_amounts",
    "department_budgets",
    "department_breakdown",
    "expense_analytics",
    "pending_count",
]
