from __future__ import annotations

from datetime import date, datetime

import pytest

from core.domain import HealthTier, Project, ProjectStatus, Task, TaskStatus, WorkspaceSnapshot
from core.services.analytics.projects import portfolio_summary, project_health_rows, sort_by_risk

AS_OF = date(2024, 3, 15)


def _snapshot():
    projects = (
        Project("good", "ws", "Website", status=ProjectStatus.ACTIVE, due_date=date(2024, 6, 1)),
        Project("bad", "ws", "Migration", status=ProjectStatus.PLANNING, due_date=date(2024, 1, 1)),
        Project("empty", "ws", "Archive cleanup", status=ProjectStatus.COMPLETED),
    )
    tasks = (
        Task(
            "t1",
            "good",
            status=TaskStatus.COMPLETED,
            due_date=date(2024, 3, 1),
            updated_at=datetime(2024, 2, 28, 17, 0),
        ),
        Task(
            "t2",
            "good",
            status=TaskStatus.COMPLETED,
            due_date=date(2024, 3, 1),
            updated_at=datetime(2024, 3, 1, 9, 30),
        ),
        Task("t3", "bad", due_date=date(2024, 3, 1)),
        Task("t4", "bad", status=TaskStatus.IN_PROGRESS, due_date=date(2024, 3, 1)),
        Task("orphan", "elsewhere", due_date=date(2024, 1, 1)),
    )
    return WorkspaceSnapshot(workspace_id="ws", projects=projects, tasks=tasks)


def test_rows_group_tasks_by_project():
    rows = {row.project_id: row for row in project_health_rows(_snapshot(), AS_OF)}

    assert set(rows) == {"good", "bad", "empty"}
    assert rows["good"].task_count == 2
    assert rows["good"].completion_rate == pytest.approx(100.0)
    assert rows["good"].on_time_delivery_rate == pytest.approx(100.0)
    assert rows["good"].risk_score == 0
    assert rows["bad"].in_progress_tasks == 1
    assert rows["bad"].overdue_tasks == 2
    assert rows["bad"].days_overdue == 74
    assert rows["bad"].risk_score == 100
    assert rows["bad"].health_tier == HealthTier.CRITICAL
    assert rows["empty"].task_count == 0
    assert rows["empty"].risk_score == 40
    assert rows["empty"].health_tier == HealthTier.WARNING


def test_sort_by_risk_puts_riskiest_first():
    rows = sort_by_risk(project_health_rows(_snapshot(), AS_OF))

    assert [row.project_id for row in rows] == ["bad", "empty", "good"]


def test_portfolio_summary_counts_tiers_and_statuses():
    summary = portfolio_summary(project_health_rows(_snapshot(), AS_OF))

    assert summary.total_projects == 3
    assert (summary.healthy, summary.warning, summary.critical) == (1, 1, 1)
    assert summary.by_status == {"active": 1, "planning": 1, "completed": 1}
    assert summary.average_completion == pytest.approx(100 / 3)
    assert summary.total_tasks == 4
    assert summary.overdue_tasks == 2


def test_portfolio_summary_of_nothing():
    summary = portfolio_summary([])

    assert summary.total_projects == 0
    assert summary.average_completion == 0.0
    assert summary.by_status == {}
