from __future__ import annotations

import math
from datetime import date

import pytest

from core.domain import (
    Budget,
    BudgetScope,
    CostCenter,
    Expense,
    ExpenseStatus,
    Invoice,
    InvoiceStatus,
    Project,
    ProjectStatus,
    WorkspaceSnapshot,
)
from core.services.analytics.aggregation import totals_of
from core.services.analytics.expenses import expense_analytics
from core.services.analytics.merge import (
    WorkspaceFetchResult,
    build_workspace_analytics,
    concat_unique,
    consolidate,
    merge_workspace_analytics,
)

AS_OF = date(2024, 3, 15)


def _snapshot(workspace_id, categories, **extra):
    expenses = tuple(
        Expense(
            id=f"{workspace_id}-{index}",
            workspace_id=workspace_id,
            amount=amount,
            category=category,
            status=ExpenseStatus.APPROVED,
            expense_date=date(2024, 3, 1),
        )
        for index, (category, amount) in enumerate(categories)
    )
    return WorkspaceSnapshot(workspace_id=workspace_id, expenses=expenses, **extra)


def test_category_maps_merge_by_additive_union():
    a = build_workspace_analytics(_snapshot("A", [("food", 100)]), as_of=AS_OF)
    b = build_workspace_analytics(_snapshot("B", [("food", 50), ("transport", 20)]), as_of=AS_OF)

    merged = merge_workspace_analytics([a, b])

    assert totals_of(merged.by_category) == {"food": 150, "transport": 20}
    assert merged.total_spent == 170
    assert merged.workspace_ids == ("A", "B")
    assert merged.monthly[-1].total == 170
    assert len(merged.monthly) == 6


def test_failed_workspace_contributes_nothing():
    budget = Budget(id="b1", workspace_id="A", amount=500)
    ok = WorkspaceFetchResult("A", snapshot=_snapshot("A", [("food", 100)], budgets=(budget,)))
    failed = WorkspaceFetchResult("B", error="connection reset")

    merged, warnings = consolidate([ok, failed], as_of=AS_OF)
    alone, _ = consolidate([ok], as_of=AS_OF)

    assert merged == alone
    assert merged.total_budget == 500
    assert merged.total_spent == 100
    assert [(w.workspace_id, w.message) for w in warnings] == [("B", "connection reset")]


def test_all_failed_scope_is_empty_but_valid():
    merged, warnings = consolidate([WorkspaceFetchResult("X", error="boom")], as_of=AS_OF, trend_window=3)

    assert merged.workspace_ids == ()
    assert merged.total_spent == 0
    assert len(merged.monthly) == 3
    assert len(warnings) == 1


def test_entity_rows_are_concatenated_not_merged():
    center_a = CostCenter(id="cc-a", workspace_id="A", name="Ops", budget=100)
    center_b = CostCenter(id="cc-b", workspace_id="B", name="Ops", budget=100)
    project = Project(id="p1", workspace_id="A", name="Shared", status=ProjectStatus.ACTIVE)
    a = build_workspace_analytics(
        _snapshot("A", [], cost_centers=(center_a,), projects=(project,)), as_of=AS_OF
    )
    b = build_workspace_analytics(
        _snapshot("B", [], cost_centers=(center_b,), projects=(project,)), as_of=AS_OF
    )

    merged = merge_workspace_analytics([a, b])

    assert [row.cost_center_id for row in merged.cost_center_rows] == ["cc-a", "cc-b"]
    assert [row.project_id for row in merged.project_rows] == ["p1"]
    assert merged.project_rows[0].workspace_id == "A"


def test_concat_unique_keeps_first_occurrence():
    rows = concat_unique([[("x", 1), ("y", 2)], [("x", 3)]], lambda row: row[0])
    assert rows == [("x", 1), ("y", 2)]


def test_department_budgets_and_status_amounts_add_up():
    dept_budget = Budget(
        id="b1", workspace_id="A", amount=400, scope_type=BudgetScope.DEPARTMENT, scope_id="eng"
    )
    snap_a = WorkspaceSnapshot(
        workspace_id="A",
        expenses=(
            Expense(id="1", workspace_id="A", amount=100, department_id="eng", status=ExpenseStatus.APPROVED),
        ),
        budgets=(dept_budget,),
    )
    snap_b = WorkspaceSnapshot(
        workspace_id="B",
        expenses=(
            Expense(id="2", workspace_id="B", amount=60, department_id="eng", status=ExpenseStatus.SUBMITTED),
        ),
    )

    merged = merge_workspace_analytics(
        [build_workspace_analytics(snap_a, as_of=AS_OF), build_workspace_analytics(snap_b, as_of=AS_OF)]
    )

    assert merged.department_budgets == {"eng": 400}
    assert merged.department_status_amounts["eng"] == {"approved": 100, "submitted": 60}
    assert merged.expense_status_counts == {"approved": 1, "submitted": 1}
    assert merged.by_department["eng"].total == pytest.approx(160)


def test_invalid_amounts_never_reach_merged_totals():
    left = _snapshot(
        "A",
        [("Food", 100), ("Food", float("nan")), ("Travel", -40)],
        budgets=(
            Budget("a-ws", "A", float("nan")),
            Budget("a-cc", "A", 500, scope_type=BudgetScope.COST_CENTER, scope_id="cc1"),
        ),
        cost_centers=(CostCenter("cc1", "A", "Ops", budget=-10),),
        invoices=(
            Invoice("a-i1", "A", float("inf"), status=InvoiceStatus.SENT, issue_date=date(2024, 3, 1)),
            Invoice("a-i2", "A", 200, status=InvoiceStatus.SENT, issue_date=date(2024, 3, 1)),
        ),
    )
    right = _snapshot("B", [("Food", 50), ("Food", float("inf"))])

    merged = merge_workspace_analytics(
        [build_workspace_analytics(snapshot, as_of=AS_OF) for snapshot in (left, right)]
    )

    assert merged.total_spent == 150
    assert merged.total_budget == 500
    assert merged.invoice_total == 200
    assert totals_of(merged.by_category) == {"Food": 150, "Travel": 0}
    rows = {row.budget_id: row for row in merged.budget_rows}
    assert rows["a-ws"].allocated == 0
    assert rows["a-ws"].spent == 100
    assert rows["a-cc"].spent == 0
    assert all(math.isfinite(row.spent) and row.spent >= 0 for row in rows.values())
    assert merged.cost_center_rows[0].budget == 500

    shares = expense_analytics(merged, top_categories=10).top_categories
    assert sum(row.percentage for row in shares) == pytest.approx(100.0)
