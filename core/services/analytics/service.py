from __future__ import annotations

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from datetime import date
from typing import Any, Callable, ContextManager, Iterable, List, Optional, Sequence, Tuple, Union

from core.domain.workspace import WorkspaceScope, WorkspaceSnapshot
from core.exceptions import NotFoundError
from core.interfaces import EntitySupply
from core.services.analytics import budgets as budget_metrics
from core.services.analytics import cost_centers as cost_center_metrics
from core.services.analytics import expenses as expense_metrics
from core.services.analytics import invoices as invoice_metrics
from core.services.analytics.alerts import generate_alerts
from core.services.analytics.insights import build_insights, build_recommendations
from core.services.analytics.merge import WorkspaceFetchResult, consolidate
from core.services.analytics.models import (
    Alert,
    AnalyticsDashboard,
    BudgetPerformanceRow,
    BudgetSummaryRow,
    CostCenterAnalysis,
    CostCenterComparisonRow,
    DateWindow,
    ExpenseAnalytics,
    InvoiceAnalytics,
    OverviewMetrics,
    PortfolioSummary,
    ProjectedOverrun,
    ProjectHealthRow,
    ScopeWarning,
    WorkspaceAnalytics,
)
from core.services.analytics.periods import WindowSpec, resolve_window
from core.services.analytics.projects import portfolio_summary, sort_by_risk
from core.services.analytics.settings import DEFAULT_SETTINGS, AnalyticsSettings

logger = logging.getLogger(__name__)

ScopeArg = Union[WorkspaceScope, str, Iterable[str]]

_DEFAULT = object()


def _as_scope(scope: ScopeArg) -> WorkspaceScope:
    if isinstance(scope, WorkspaceScope):
        return scope
    if isinstance(scope, str):
        return WorkspaceScope.single(scope)
    return WorkspaceScope.of(scope)


class AnalyticsService:
    """Dashboard analytics over one workspace or a consolidated scope.

    Every call fetches fresh snapshots from the entity supply, reduces each
    workspace on its own and merges the results. A workspace that fails to
    load is skipped and reported as a ScopeWarning.

    `trace_scope` wraps each run, e.g. to tag its log lines with a trace id.
    """

    def __init__(
        self,
        entity_supply: EntitySupply,
        settings: AnalyticsSettings | None = None,
        *,
        trace_scope: Callable[[], ContextManager[Any]] | None = None,
    ):
        self._supply = entity_supply
        self._settings = settings or DEFAULT_SETTINGS
        self._trace_scope = trace_scope or nullcontext

    @property
    def settings(self) -> AnalyticsSettings:
        return self._settings

    # --------------------------------------------------------------
    # Fetching
    # --------------------------------------------------------------
    def _fetch_one(self, workspace_id: str) -> WorkspaceFetchResult:
        try:
            snapshot = self._supply.fetch_workspace(workspace_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Skipping workspace %s: %s", workspace_id, exc)
            return WorkspaceFetchResult(workspace_id=workspace_id, error=str(exc) or exc.__class__.__name__)
        return WorkspaceFetchResult(workspace_id=workspace_id, snapshot=snapshot)

    def fetch_scope(self, scope: ScopeArg) -> List[WorkspaceFetchResult]:
        """Fetch every workspace of the scope; all fetches settle before returning."""
        scope = _as_scope(scope)
        with self._trace_scope():
            return self._fetch_all(list(scope))

    def _fetch_all(self, ids: List[str]) -> List[WorkspaceFetchResult]:
        workers = min(self._settings.fetch_workers, len(ids))
        if workers <= 1:
            return [self._fetch_one(workspace_id) for workspace_id in ids]

        logger.debug("Fetching %s workspaces with %s workers", len(ids), workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="analytics-fetch") as executor:
            futures = [
                executor.submit(contextvars.copy_context().run, self._fetch_one, workspace_id)
                for workspace_id in ids
            ]
            # Scope order is kept regardless of completion order.
            return [future.result() for future in futures]

    # --------------------------------------------------------------
    # Internals
    # --------------------------------------------------------------
    def _window(self, window: Any, as_of: date) -> Optional[DateWindow]:
        spec: WindowSpec = self._settings.default_preset if window is _DEFAULT else window
        return resolve_window(spec, as_of)

    def _collect(
        self,
        scope: ScopeArg,
        *,
        as_of: Optional[date],
        window: Any,
        trend_window: Any = None,
    ) -> Tuple[WorkspaceAnalytics, List[ScopeWarning], Optional[DateWindow], date]:
        as_of = as_of or date.today()
        resolved = self._window(window, as_of)
        with self._trace_scope():
            results = self.fetch_scope(scope)
            merged, warnings = consolidate(
                results,
                as_of=as_of,
                window=resolved,
                trend_window=trend_window if trend_window is not None else self._settings.trend_window,
            )
        return merged, warnings, resolved, as_of

    def _alerts(self, analytics: WorkspaceAnalytics) -> List[Alert]:
        return generate_alerts(
            analytics.budget_rows,
            pending_count=expense_metrics.pending_count(analytics),
            overdue_invoice_count=invoice_metrics.overdue_count(analytics),
            pending_threshold=self._settings.pending_threshold,
            warning_percent=self._settings.budget_warning_percent,
        )

    def _overview(self, analytics: WorkspaceAnalytics, window: Optional[DateWindow]) -> OverviewMetrics:
        return budget_metrics.overview_metrics(
            analytics,
            window=window,
            horizon_months=self._settings.forecast_horizon_months,
        )

    # --------------------------------------------------------------
    # Public API
    # --------------------------------------------------------------
    def get_dashboard(
        self,
        scope: ScopeArg,
        *,
        as_of: Optional[date] = None,
        window: Any = _DEFAULT,
        trend_window: Any = None,
    ) -> AnalyticsDashboard:
        scope = _as_scope(scope)
        analytics, warnings, resolved, as_of = self._collect(
            scope, as_of=as_of, window=window, trend_window=trend_window
        )
        expenses = expense_metrics.expense_analytics(analytics, top_categories=self._settings.top_categories)
        projects = sort_by_risk(analytics.project_rows)
        return AnalyticsDashboard(
            workspace_ids=scope.workspace_ids,
            as_of=as_of,
            window=resolved,
            overview=self._overview(analytics, resolved),
            expenses=expenses,
            invoices=invoice_metrics.invoice_analytics(analytics),
            budgets=list(analytics.budget_rows),
            projects=projects,
            portfolio=portfolio_summary(projects),
            cost_centers=cost_center_metrics.rank_cost_centers(analytics.cost_center_rows),
            alerts=self._alerts(analytics),
            insights=build_insights(
                analytics,
                expenses.departments,
                outstanding_invoices=invoice_metrics.outstanding_count(analytics),
            ),
            recommendations=build_recommendations(analytics, expenses.departments),
            warnings=warnings,
        )

    def get_overview(
        self, scope: ScopeArg, *, as_of: Optional[date] = None, window: Any = _DEFAULT
    ) -> OverviewMetrics:
        analytics, _, resolved, _ = self._collect(scope, as_of=as_of, window=window)
        return self._overview(analytics, resolved)

    def get_expense_analytics(
        self,
        scope: ScopeArg,
        *,
        as_of: Optional[date] = None,
        window: Any = _DEFAULT,
        top: Optional[int] = None,
    ) -> ExpenseAnalytics:
        analytics, _, _, _ = self._collect(scope, as_of=as_of, window=window)
        return expense_metrics.expense_analytics(
            analytics, top_categories=top if top is not None else self._settings.top_categories
        )

    def get_invoice_analytics(
        self, scope: ScopeArg, *, as_of: Optional[date] = None, window: Any = _DEFAULT
    ) -> InvoiceAnalytics:
        analytics, _, _, _ = self._collect(scope, as_of=as_of, window=window)
        return invoice_metrics.invoice_analytics(analytics)

    def get_budget_summaries(
        self, scope: ScopeArg, *, as_of: Optional[date] = None, window: Any = _DEFAULT
    ) -> List[BudgetSummaryRow]:
        analytics, _, _, _ = self._collect(scope, as_of=as_of, window=window)
        return list(analytics.budget_rows)

    def get_budget_projections(
        self, scope: ScopeArg, *, as_of: Optional[date] = None
    ) -> Tuple[List[ProjectedOverrun], List[BudgetPerformanceRow]]:
        """Projected overruns and pacing for dated budgets, over all recorded spend."""
        as_of = as_of or date.today()
        overruns: List[ProjectedOverrun] = []
        performance: List[BudgetPerformanceRow] = []
        for snapshot in self._snapshots(scope):
            rows = {
                row.budget_id: row
                for row in budget_metrics.summarize_budgets(snapshot.budgets, snapshot.expenses)
            }
            overruns.extend(
                budget_metrics.projected_overruns(
                    snapshot.budgets,
                    rows,
                    as_of=as_of,
                    watch_percent=self._settings.budget_warning_percent,
                )
            )
            performance.extend(budget_metrics.budget_performance(snapshot.budgets, rows, as_of=as_of))
        overruns.sort(key=lambda item: (-item.projected_overrun, item.name.lower()))
        return overruns, performance

    def get_project_health(
        self, scope: ScopeArg, *, as_of: Optional[date] = None
    ) -> Tuple[List[ProjectHealthRow], PortfolioSummary]:
        analytics, _, _, _ = self._collect(scope, as_of=as_of, window=None)
        rows = sort_by_risk(analytics.project_rows)
        return rows, portfolio_summary(rows)

    def get_cost_center_comparison(
        self,
        scope: ScopeArg,
        *,
        as_of: Optional[date] = None,
        window: Any = _DEFAULT,
        sort_by: str = "utilization",
        descending: bool = True,
    ) -> List[CostCenterComparisonRow]:
        analytics, _, _, _ = self._collect(scope, as_of=as_of, window=window)
        return cost_center_metrics.rank_cost_centers(
            analytics.cost_center_rows, sort_by=sort_by, descending=descending
        )

    def get_cost_center_analysis(
        self,
        scope: ScopeArg,
        cost_center_id: str,
        *,
        as_of: Optional[date] = None,
        window: Any = _DEFAULT,
        trend_window: Any = None,
    ) -> CostCenterAnalysis:
        as_of = as_of or date.today()
        resolved = self._window(window, as_of)
        for snapshot in self._snapshots(scope):
            center = cost_center_metrics.find_cost_center(snapshot.cost_centers, cost_center_id)
            if center is None:
                continue
            return cost_center_metrics.analyze_cost_center(
                center,
                budgets=snapshot.budgets,
                expenses=snapshot.expenses,
                as_of=as_of,
                window=resolved,
                trend_window=trend_window if trend_window is not None else self._settings.trend_window,
                horizon_months=self._settings.forecast_horizon_months,
            )
        raise NotFoundError(
            f"Cost center {cost_center_id!r} not found in the requested workspaces.",
            code="COST_CENTER_NOT_FOUND",
        )

    def get_alerts(
        self, scope: ScopeArg, *, as_of: Optional[date] = None, window: Any = _DEFAULT
    ) -> List[Alert]:
        analytics, _, _, _ = self._collect(scope, as_of=as_of, window=window)
        return self._alerts(analytics)

    def _snapshots(self, scope: ScopeArg) -> Sequence[WorkspaceSnapshot]:
        return [result.snapshot for result in self.fetch_scope(scope) if result.ok]


__all__ = ["AnalyticsService"]
