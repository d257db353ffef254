from __future__ import annotations

import logging
from datetime import date, datetime

import pytest
from sqlalchemy.exc import OperationalError

from core.domain import BudgetScope, ExpenseStatus, InvoiceStatus, TaskStatus
from core.exceptions import WorkspaceFetchError
from infra.db.models import (
    BudgetORM,
    CostCenterORM,
    ExpenseORM,
    InvoiceORM,
    ProjectORM,
    TaskORM,
    WorkspaceORM,
)
from infra.db.supply import SqlAlchemyEntitySupply
from infra.tracing import bind_trace_id, current_trace_id


def _seed(session):
    session.add_all(
        [
            WorkspaceORM(id="ws1", name="Head office"),
            WorkspaceORM(id="ws2", name="Branch"),
        ]
    )
    session.flush()
    session.add_all(
        [
            ExpenseORM(
                id="e1",
                workspace_id="ws1",
                amount=120.0,
                amount_in_base_currency=100.0,
                category="Travel",
                status="pending",
                expense_date=date(2024, 3, 1),
                cost_center_id="cc1",
            ),
            ExpenseORM(id="e2", workspace_id="ws1", amount=None, status="approved"),
            ExpenseORM(id="e3", workspace_id="ws2", amount=999.0, status="approved"),
            BudgetORM(id="b1", workspace_id="ws1", amount=500.0, scope_type="cost_center", scope_id="cc1"),
            CostCenterORM(id="cc1", workspace_id="ws1", name="Operations", code="OPS", budget=800.0),
            ProjectORM(id="p1", workspace_id="ws1", name="Launch", status="active"),
            ProjectORM(id="p2", workspace_id="ws2", name="Other", status="active"),
            InvoiceORM(
                id="i1",
                workspace_id="ws1",
                total=250.0,
                status="sent",
                issue_date=date(2024, 2, 1),
                due_date=date(2024, 3, 1),
            ),
        ]
    )
    session.flush()
    session.add_all(
        [
            TaskORM(id="t1", project_id="p1", status="in_progress", updated_at=datetime(2024, 3, 2, 10, 0)),
            TaskORM(id="t2", project_id="p2", status="done"),
        ]
    )
    session.commit()


def test_fetch_workspace_maps_and_normalizes_rows(session, session_factory):
    _seed(session)
    supply = SqlAlchemyEntitySupply(session_factory)

    snapshot = supply.fetch_workspace("ws1")

    assert snapshot.workspace_id == "ws1"
    expenses = {expense.id: expense for expense in snapshot.expenses}
    assert set(expenses) == {"e1", "e2"}
    assert expenses["e1"].amount == 100.0
    assert expenses["e1"].status == ExpenseStatus.SUBMITTED
    assert expenses["e2"].amount == 0.0
    assert snapshot.budgets[0].scope_type == BudgetScope.COST_CENTER
    assert snapshot.cost_centers[0].code == "OPS"
    assert [task.id for task in snapshot.tasks] == ["t1"]
    assert snapshot.tasks[0].status == TaskStatus.IN_PROGRESS
    assert snapshot.invoices[0].effective_status(date(2024, 3, 15)) == InvoiceStatus.OVERDUE


def test_unknown_workspace_raises_fetch_error(session_factory):
    supply = SqlAlchemyEntitySupply(session_factory)

    with pytest.raises(WorkspaceFetchError) as exc:
        supply.fetch_workspace("missing")
    assert exc.value.code == "WORKSPACE_NOT_FOUND"
    assert exc.value.workspace_id == "missing"


def test_query_failures_are_wrapped(session_factory):
    class BrokenSession:
        def get(self, *args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        def close(self):
            pass

    supply = SqlAlchemyEntitySupply(lambda: BrokenSession())

    with pytest.raises(WorkspaceFetchError) as exc:
        supply.fetch_workspace("ws1")
    assert exc.value.code == "WORKSPACE_QUERY_FAILED"
    assert isinstance(exc.value.__cause__, OperationalError)


def test_service_reads_through_the_database(session, services):
    _seed(session)
    service = services["analytics_service"]

    dashboard = service.get_dashboard(["ws1", "ws2", "missing"], as_of=date(2024, 3, 15), window=None)

    assert dashboard.overview.total_spent == 1099.0
    assert dashboard.expenses.pending_amount == 100.0
    assert dashboard.invoices.overdue_amount == 250.0
    assert [warning.workspace_id for warning in dashboard.warnings] == ["missing"]
    assert {row.project_id for row in dashboard.projects} == {"p1", "p2"}


class _TraceRecorder(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.WARNING)
        self.trace_ids = []

    def emit(self, record):
        self.trace_ids.append(current_trace_id())


def test_service_runs_are_tagged_with_a_trace_id(services):
    recorder = _TraceRecorder()
    service_logger = logging.getLogger("core.services.analytics.service")
    service_logger.addHandler(recorder)
    try:
        services["analytics_service"].get_dashboard(["missing", "gone"], as_of=date(2024, 3, 15), window=None)
    finally:
        service_logger.removeHandler(recorder)

    assert len(recorder.trace_ids) == 2
    assert recorder.trace_ids[0].startswith("run-")
    # One id for the whole run
    assert len(set(recorder.trace_ids)) == 1
    assert current_trace_id() is None


def test_service_keeps_a_trace_id_bound_by_the_caller(services):
    recorder = _TraceRecorder()
    service_logger = logging.getLogger("core.services.analytics.service")
    service_logger.addHandler(recorder)
    try:
        with bind_trace_id("run-nightly"):
            services["analytics_service"].get_alerts("missing", as_of=date(2024, 3, 15), window=None)
    finally:
        service_logger.removeHandler(recorder)

    assert recorder.trace_ids == ["run-nightly"]
