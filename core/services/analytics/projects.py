from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Sequence

from core.domain.enums import HealthTier, TaskStatus
from core.domain.project import Project
from core.domain.task import Task
from core.domain.workspace import WorkspaceSnapshot
from core.services.analytics.metrics import completion_rate, on_time_delivery_rate
from core.services.analytics.models import PortfolioSummary, ProjectHealthRow
from core.services.analytics.scoring import days_overdue, health_tier, project_risk_score


def project_health_row(project: Project, tasks: Sequence[Task], as_of: date) -> ProjectHealthRow:
    total = len(tasks)
    completed = sum(1 for task in tasks if task.is_completed)
    in_progress = sum(1 for task in tasks if task.status == TaskStatus.IN_PROGRESS)
    overdue = sum(1 for task in tasks if task.is_overdue(as_of))
    blocked = sum(1 for task in tasks if task.is_blocking)
    on_time = sum(1 for task in tasks if task.completed_on_time())

    completion = completion_rate(completed, total)
    on_time_rate = on_time_delivery_rate(on_time, completed)
    late_days = days_overdue(project, as_of)
    score = project_risk_score(
        status=project.status,
        days_overdue=late_days,
        completion_rate=completion,
        overdue_tasks=overdue,
        total_tasks=total,
        blocked_tasks=blocked,
        on_time_rate=on_time_rate,
    )
    return ProjectHealthRow(
        project_id=project.id,
        workspace_id=project.workspace_id,
        name=project.name,
        status=project.status,
        task_count=total,
        completed_tasks=completed,
        in_progress_tasks=in_progress,
        overdue_tasks=overdue,
        blocked_tasks=blocked,
        completion_rate=completion,
        on_time_delivery_rate=on_time_rate,
        days_overdue=late_days,
        risk_score=score,
        health_tier=health_tier(score),
    )


def project_health_rows(snapshot: WorkspaceSnapshot, as_of: date) -> List[ProjectHealthRow]:
    tasks_by_project: Dict[str, List[Task]] = {}
    for task in snapshot.tasks:
        tasks_by_project.setdefault(task.project_id, []).append(task)
    return [
        project_health_row(project, tasks_by_project.get(project.id, []), as_of)
        for project in snapshot.projects
    ]


def sort_by_risk(rows: Iterable[ProjectHealthRow]) -> List[ProjectHealthRow]:
    return sorted(rows, key=lambda row: (-row.risk_score, row.name.lower()))


def portfolio_summary(rows: Sequence[ProjectHealthRow]) -> PortfolioSummary:
    tiers = {tier: 0 for tier in HealthTier}
    by_status: Dict[str, int] = {}
    for row in rows:
        tiers[row.health_tier] += 1
        by_status[row.status.value] = by_status.get(row.status.value, 0) + 1

    average = sum(row.completion_rate for row in rows) / len(rows) if rows else 0.0
    return PortfolioSummary(
        total_projects=len(rows),
        healthy=tiers[HealthTier.HEALTHY],
        warning=tiers[HealthTier.WARNING],
        critical=tiers[HealthTier.CRITICAL],
        by_status=by_status,
        average_completion=average,
        total_tasks=sum(row.task_count for row in rows),
        overdue_tasks=sum(row.overdue_tasks for row in rows),
    )


__all__ = ["project_health_row", "project_health_rows", "sort_by_risk", "portfolio_summary"]
