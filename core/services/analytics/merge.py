"""Per-workspace pipeline and the consolidation of its results.

Every workspace is reduced to an additive ``WorkspaceAnalytics`` on its
own; consolidated views are built by summing those, never by pooling raw
records across workspaces.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

from core.domain.workspace import WorkspaceSnapshot
from core.services.analytics import budgets as budget_metrics
from core.services.analytics import cost_centers as cost_center_metrics
from core.services.analytics import expenses as expense_metrics
from core.services.analytics import invoices as invoice_metrics
from core.services.analytics.aggregation import aggregate, merge_aggregates
from core.services.analytics.models import DateWindow, ScopeWarning, WorkspaceAnalytics
from core.services.analytics.projects import project_health_rows
from core.services.analytics.trends import build_monthly_buckets, merge_monthly_buckets, month_over_month

logger = logging.getLogger(__name__)

T = TypeVar("T")
V = TypeVar("V", int, float)


@dataclass(frozen=True)
class WorkspaceFetchResult:
    """Settled outcome of one workspace fetch: a snapshot or an error message."""

    workspace_id: str
    snapshot: Optional[WorkspaceSnapshot] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.snapshot is not None and self.error is None


def build_workspace_analytics(
    snapshot: WorkspaceSnapshot,
    *,
    as_of: date,
    window: Optional[DateWindow] = None,
    trend_window: Any = 6,
) -> WorkspaceAnalytics:
    expenses = expense_metrics.in_window(snapshot.expenses, window)
    invoices = invoice_metrics.in_window(snapshot.invoices, window)

    def amount(expense):
        return expense.amount

    current_month, previous_month = month_over_month(
        snapshot.expenses, as_of=as_of, date_of=lambda e: e.expense_date, amount_of=amount
    )
    invoice_current, invoice_previous = month_over_month(
        snapshot.invoices, as_of=as_of, date_of=lambda i: i.issue_date, amount_of=lambda i: i.total
    )
    payment_days = [days for days in map(invoice_metrics.payment_days, invoices) if days is not None]

    return WorkspaceAnalytics(
        workspace_ids=(snapshot.workspace_id,),
        total_budget=budget_metrics.total_budget(snapshot.budgets, snapshot.cost_centers),
        total_spent=float(sum(expense.amount for expense in expenses)),
        expense_count=len(expenses),
        expense_status_counts=expense_metrics.status_counts(expenses),
        expense_status_amounts=expense_metrics.status_amounts(expenses),
        by_category=aggregate(expenses, lambda e: e.category, amount, fallback="Other"),
        by_department=aggregate(expenses, lambda e: e.department_id, amount),
        by_project=aggregate(expenses, lambda e: e.project_id, amount),
        by_cost_center=aggregate(expenses, lambda e: e.cost_center_id, amount),
        department_status_amounts=expense_metrics.department_status_amounts(expenses),
        department_budgets=expense_metrics.department_budgets(snapshot.budgets),
        monthly=tuple(
            build_monthly_buckets(
                snapshot.expenses,
                as_of=as_of,
                date_of=lambda e: e.expense_date,
                amount_of=amount,
                window=trend_window,
            )
        ),
        current_month_spent=current_month,
        previous_month_spent=previous_month,
        invoice_count=len(invoices),
        invoice_total=float(sum(invoice.total for invoice in invoices)),
        invoice_status_counts=invoice_metrics.effective_status_counts(invoices, as_of),
        invoice_status_amounts=invoice_metrics.effective_status_amounts(invoices, as_of),
        invoice_payment_days_total=float(sum(payment_days)),
        invoice_paid_count=len(payment_days),
        invoice_current_month_total=invoice_current,
        invoice_previous_month_total=invoice_previous,
        invoice_aging=invoice_metrics.aging_buckets(snapshot.invoices, as_of),
        budget_rows=tuple(budget_metrics.summarize_budgets(snapshot.budgets, expenses)),
        project_rows=tuple(project_health_rows(snapshot, as_of)),
        cost_center_rows=tuple(
            cost_center_metrics.comparison_rows(
                snapshot.cost_centers,
                snapshot.budgets,
                expenses,
                all_expenses=snapshot.expenses,
                as_of=as_of,
            )
        ),
    )


def _sum_maps(maps: Iterable[Mapping[str, V]]) -> Dict[str, V]:
    out: Dict[str, Any] = {}
    for values in maps:
        for key, value in values.items():
            out[key] = out.get(key, 0) + value
    return out


def _sum_nested(maps: Iterable[Mapping[str, Mapping[str, float]]]) -> Dict[str, Dict[str, float]]:
    out: Dict[str, Dict[str, float]] = {}
    for values in maps:
        for key, inner in values.items():
            out[key] = _sum_maps([out.get(key, {}), inner])
    return out


def concat_unique(groups: Iterable[Sequence[T]], id_of: Callable[[T], str]) -> List[T]:
    """Concatenate rows, keeping the first occurrence of each id."""
    seen: set[str] = set()
    out: List[T] = []
    for rows in groups:
        for row in rows:
            key = id_of(row)
            if key in seen:
                continue
            seen.add(key)
            out.append(row)
    return out


def merge_workspace_analytics(parts: Sequence[WorkspaceAnalytics]) -> WorkspaceAnalytics:
    if not parts:
        return WorkspaceAnalytics(workspace_ids=())
    if len(parts) == 1:
        return parts[0]

    workspace_ids: List[str] = []
    for part in parts:
        workspace_ids.extend(wid for wid in part.workspace_ids if wid not in workspace_ids)

    return WorkspaceAnalytics(
        workspace_ids=tuple(workspace_ids),
        total_budget=sum(part.total_budget for part in parts),
        total_spent=sum(part.total_spent for part in parts),
        expense_count=sum(part.expense_count for part in parts),
        expense_status_counts=_sum_maps(part.expense_status_counts for part in parts),
        expense_status_amounts=_sum_maps(part.expense_status_amounts for part in parts),
        by_category=merge_aggregates(*(part.by_category for part in parts)),
        by_department=merge_aggregates(*(part.by_department for part in parts)),
        by_project=merge_aggregates(*(part.by_project for part in parts)),
        by_cost_center=merge_aggregates(*(part.by_cost_center for part in parts)),
        department_status_amounts=_sum_nested(part.department_status_amounts for part in parts),
        department_budgets=_sum_maps(part.department_budgets for part in parts),
        monthly=tuple(merge_monthly_buckets(*(part.monthly for part in parts))),
        current_month_spent=sum(part.current_month_spent for part in parts),
        previous_month_spent=sum(part.previous_month_spent for part in parts),
        invoice_count=sum(part.invoice_count for part in parts),
        invoice_total=sum(part.invoice_total for part in parts),
        invoice_status_counts=_sum_maps(part.invoice_status_counts for part in parts),
        invoice_status_amounts=_sum_maps(part.invoice_status_amounts for part in parts),
        invoice_payment_days_total=sum(part.invoice_payment_days_total for part in parts),
        invoice_paid_count=sum(part.invoice_paid_count for part in parts),
        invoice_current_month_total=sum(part.invoice_current_month_total for part in parts),
        invoice_previous_month_total=sum(part.invoice_previous_month_total for part in parts),
        invoice_aging=_sum_maps(part.invoice_aging for part in parts),
        budget_rows=tuple(concat_unique((part.budget_rows for part in parts), lambda row: row.budget_id)),
        project_rows=tuple(concat_unique((part.project_rows for part in parts), lambda row: row.project_id)),
        cost_center_rows=tuple(
            concat_unique((part.cost_center_rows for part in parts), lambda row: row.cost_center_id)
        ),
    )


def consolidate(
    results: Sequence[WorkspaceFetchResult],
    *,
    as_of: date,
    window: Optional[DateWindow] = None,
    trend_window: Any = 6,
) -> Tuple[WorkspaceAnalytics, List[ScopeWarning]]:
    """Run the per-workspace pipeline on every settled fetch and merge the results.

    Failed fetches contribute nothing and come back as warnings.
    """
    parts: List[WorkspaceAnalytics] = []
    warnings: List[ScopeWarning] = []
    for result in results:
        if not result.ok:
            warnings.append(
                ScopeWarning(
                    workspace_id=result.workspace_id,
                    message=result.error or "Workspace data could not be loaded.",
                )
            )
            continue
        parts.append(
            build_workspace_analytics(
                result.snapshot, as_of=as_of, window=window, trend_window=trend_window
            )
        )

    if not parts:
        # Keeps the zero-filled monthly series for an empty scope.
        empty = build_workspace_analytics(
            WorkspaceSnapshot(workspace_id=""), as_of=as_of, window=window, trend_window=trend_window
        )
        return replace(empty, workspace_ids=()), warnings
    logger.debug("Merging analytics for %s workspace(s), %s skipped", len(parts), len(warnings))
    return merge_workspace_analytics(parts), warnings


__all__ = [
    "WorkspaceFetchResult",
    "build_workspace_analytics",
    "concat_unique",
    "merge_workspace_analytics",
    "consolidate",
]
