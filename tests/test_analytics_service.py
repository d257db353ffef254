from __future__ import annotations

import threading
from datetime import date

import pytest

from core.domain import (
    AlertKind,
    Budget,
    CostCenter,
    CostCenterRiskTier,
    Expense,
    ExpenseStatus,
    Invoice,
    InvoiceStatus,
    Project,
    ProjectStatus,
    WorkspaceScope,
    WorkspaceSnapshot,
)
from core.exceptions import NotFoundError, ValidationError, WorkspaceFetchError
from core.services.analytics import AnalyticsService, AnalyticsSettings
from infra.tracing import bind_trace_id, current_trace_id

AS_OF = date(2024, 3, 15)


class FakeSupply:
    """In-memory entity supply; records the thread and trace id of each fetch."""

    def __init__(self, snapshots, failing=()):
        self._snapshots = {snapshot.workspace_id: snapshot for snapshot in snapshots}
        self._failing = set(failing)
        self._lock = threading.Lock()
        self.calls = []

    def fetch_workspace(self, workspace_id):
        with self._lock:
            self.calls.append((workspace_id, threading.current_thread().name, current_trace_id()))
        if workspace_id in self._failing:
            raise WorkspaceFetchError("backend unavailable", workspace_id=workspace_id)
        try:
            return self._snapshots[workspace_id]
        except KeyError:
            raise WorkspaceFetchError(
                f"Workspace {workspace_id} does not exist.",
                workspace_id=workspace_id,
                code="WORKSPACE_NOT_FOUND",
            ) from None


def _alpha():
    return WorkspaceSnapshot(
        workspace_id="alpha",
        expenses=(
            Expense("a1", "alpha", 100, category="Travel", status=ExpenseStatus.APPROVED, expense_date=date(2024, 3, 1)),
            Expense("a2", "alpha", 50, category="Travel", status=ExpenseStatus.SUBMITTED, expense_date=date(2024, 3, 2)),
            Expense("a3", "alpha", 200, category="Food", status=ExpenseStatus.APPROVED, expense_date=date(2024, 3, 3)),
        ),
        budgets=(Budget("ab", "alpha", 500, name="Alpha budget"),),
        cost_centers=(CostCenter("acc", "alpha", "Alpha ops", budget=400),),
        projects=(Project("ap", "alpha", "Alpha launch", status=ProjectStatus.ACTIVE),),
        invoices=(
            Invoice(
                "ai",
                "alpha",
                300,
                status=InvoiceStatus.SENT,
                issue_date=date(2024, 2, 20),
                due_date=date(2024, 3, 5),
            ),
        ),
    )


def _beta():
    return WorkspaceSnapshot(
        workspace_id="beta",
        expenses=(
            Expense("b1", "beta", 900, category="Food", status=ExpenseStatus.PAID, expense_date=date(2024, 3, 10)),
        ),
        budgets=(Budget("bb", "beta", 600, name="Beta budget"),),
        cost_centers=(CostCenter("bcc", "beta", "Beta ops", budget=1000),),
    )


def _service(supply, **settings):
    settings.setdefault("fetch_workers", 1)
    return AnalyticsService(supply, AnalyticsSettings(**settings))


def test_dashboard_for_single_workspace():
    service = _service(FakeSupply([_alpha()]))

    dashboard = service.get_dashboard("alpha", as_of=AS_OF, window=None)

    assert dashboard.workspace_ids == ("alpha",)
    assert dashboard.window is None
    assert dashboard.overview.total_spent == 350
    assert dashboard.overview.utilization_percent == pytest.approx(70.0)
    assert [row.key for row in dashboard.expenses.top_categories] == ["Food", "Travel"]
    assert dashboard.invoices.counts_by_status["overdue"] == 1
    assert dashboard.portfolio.total_projects == 1
    assert [alert.kind for alert in dashboard.alerts] == [AlertKind.INVOICE_OVERDUE]
    assert dashboard.warnings == []


def test_consolidated_dashboard_sums_workspaces():
    service = _service(FakeSupply([_alpha(), _beta()]))

    dashboard = service.get_dashboard(["alpha", "beta"], as_of=AS_OF, window=None)

    assert dashboard.workspace_ids == ("alpha", "beta")
    assert dashboard.overview.total_budget == 1100
    assert dashboard.overview.total_spent == 1250
    assert {row.key: row.total for row in dashboard.expenses.top_categories} == {"Food": 1100, "Travel": 150}
    assert [row.budget_id for row in dashboard.budgets] == ["ab", "bb"]
    assert [row.cost_center_id for row in dashboard.cost_centers] == ["acc", "bcc"]
    kinds = [alert.kind for alert in dashboard.alerts]
    assert kinds == [AlertKind.BUDGET_EXCEEDED, AlertKind.INVOICE_OVERDUE]


def test_failed_workspace_is_reported_and_skipped():
    supply = FakeSupply([_alpha(), _beta()], failing={"beta"})
    service = _service(supply)

    consolidated = service.get_dashboard(["alpha", "beta"], as_of=AS_OF, window=None)
    alone = service.get_dashboard("alpha", as_of=AS_OF, window=None)

    assert [warning.workspace_id for warning in consolidated.warnings] == ["beta"]
    assert "backend unavailable" in consolidated.warnings[0].message
    assert consolidated.overview == alone.overview
    assert consolidated.expenses == alone.expenses
    assert consolidated.workspace_ids == ("alpha", "beta")


def test_every_workspace_failing_still_returns_a_dashboard():
    service = _service(FakeSupply([], failing={"alpha"}), trend_window=3)

    dashboard = service.get_dashboard(WorkspaceScope.of(["alpha", "ghost"]), as_of=AS_OF, window=None)

    assert len(dashboard.warnings) == 2
    assert dashboard.overview.total_spent == 0
    assert len(dashboard.expenses.monthly_trend) == 3
    assert dashboard.alerts == []


def test_threaded_fetch_keeps_scope_order_and_trace_id():
    supply = FakeSupply([_alpha(), _beta()])
    service = _service(supply, fetch_workers=4)

    with bind_trace_id("run-test") as trace_id:
        results = service.fetch_scope(["beta", "alpha", "beta"])

    assert [result.workspace_id for result in results] == ["beta", "alpha"]
    assert all(result.ok for result in results)
    assert {call[2] for call in supply.calls} == {trace_id}
    assert all(call[1].startswith("analytics-fetch") for call in supply.calls)


def test_single_worker_fetches_inline():
    supply = FakeSupply([_alpha(), _beta()])

    _service(supply).fetch_scope(["alpha", "beta"])

    assert {call[1] for call in supply.calls} == {threading.current_thread().name}


def test_window_preset_filters_expenses():
    service = _service(FakeSupply([_beta()]))

    overview = service.get_overview("beta", as_of=AS_OF, window="last-7-days")
    everything = service.get_overview("beta", as_of=date(2024, 4, 30), window="last-7-days")

    assert overview.total_spent == 900
    assert everything.total_spent == 0


def test_default_window_comes_from_settings():
    service = _service(FakeSupply([_alpha()]), default_preset="current-year")

    dashboard = service.get_dashboard("alpha", as_of=AS_OF)

    assert dashboard.window.start == date(2024, 1, 1)
    assert dashboard.window.end == date(2024, 12, 31)


def test_unknown_preset_is_rejected():
    service = _service(FakeSupply([_alpha()]))

    with pytest.raises(ValidationError) as exc:
        service.get_overview("alpha", as_of=AS_OF, window="fortnight")
    assert exc.value.code == "UNKNOWN_DATE_PRESET"


def test_expense_analytics_respects_top_argument():
    service = _service(FakeSupply([_alpha()]))

    result = service.get_expense_analytics("alpha", as_of=AS_OF, window=None, top=1)

    assert [row.key for row in result.top_categories] == ["Food"]
    assert result.approved_amount == 300
    assert result.pending_amount == 50


def test_cost_center_analysis_is_found_in_any_workspace():
    service = _service(FakeSupply([_alpha(), _beta()]))

    analysis = service.get_cost_center_analysis(["alpha", "beta"], "bcc", as_of=AS_OF, window=None)

    assert analysis.name == "Beta ops"
    assert analysis.spent == 0
    assert analysis.risk_tier == CostCenterRiskTier.LOW


def test_cost_center_analysis_unknown_id():
    service = _service(FakeSupply([_alpha()]))

    with pytest.raises(NotFoundError) as exc:
        service.get_cost_center_analysis("alpha", "nope", as_of=AS_OF)
    assert exc.value.code == "COST_CENTER_NOT_FOUND"


def test_cost_center_comparison_sorting():
    service = _service(FakeSupply([_alpha(), _beta()]))

    rows = service.get_cost_center_comparison(["alpha", "beta"], as_of=AS_OF, window=None, sort_by="budget")

    assert [(row.cost_center_id, row.rank) for row in rows] == [("bcc", 1), ("acc", 2)]
    with pytest.raises(ValidationError):
        service.get_cost_center_comparison("alpha", as_of=AS_OF, sort_by="colour")


def test_project_health_and_budget_projections():
    dated = Budget(
        "dated",
        "beta",
        1000,
        name="Q1",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 12, 31),
    )
    beta = WorkspaceSnapshot(
        workspace_id="beta",
        expenses=(Expense("b1", "beta", 900, expense_date=date(2024, 3, 10)),),
        budgets=(dated,),
    )
    service = _service(FakeSupply([_alpha(), beta]))

    rows, portfolio = service.get_project_health(["alpha", "beta"], as_of=AS_OF)
    overruns, performance = service.get_budget_projections(["alpha", "beta"], as_of=AS_OF)

    assert [row.project_id for row in rows] == ["ap"]
    assert portfolio.total_projects == 1
    assert [item.budget_id for item in overruns] == ["dated"]
    assert [row.budget_id for row in performance] == ["dated"]


def test_alerts_and_budget_summaries():
    service = _service(FakeSupply([_beta()]))

    summaries = service.get_budget_summaries("beta", as_of=AS_OF, window=None)
    alerts = service.get_alerts("beta", as_of=AS_OF, window=None)

    assert summaries[0].utilization_percent == pytest.approx(150.0)
    assert [alert.related_entity_id for alert in alerts] == ["bb"]


def test_dashboard_ignores_invalid_amounts_from_the_supply():
    snapshot = WorkspaceSnapshot(
        workspace_id="raw",
        expenses=(
            Expense("r1", "raw", 100, category="Food"),
            Expense("r2", "raw", float("nan"), category="Food"),
            Expense("r3", "raw", -40, category="Travel"),
        ),
        budgets=(Budget("rb", "raw", 500),),
    )
    service = _service(FakeSupply([snapshot]))

    dashboard = service.get_dashboard("raw", as_of=AS_OF, window=None)

    assert dashboard.overview.total_spent == 100
    assert dashboard.overview.total_remaining == 400
    assert dashboard.overview.utilization_percent == pytest.approx(20.0)
    assert dashboard.budgets[0].spent == 100
    assert [(row.key, row.percentage) for row in dashboard.expenses.top_categories] == [
        ("Food", pytest.approx(100.0)),
        ("Travel", pytest.approx(0.0)),
    ]
