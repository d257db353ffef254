from __future__ import annotations

from datetime import date

from core.domain.enums import (
    BudgetStatus,
    CostCenterPerformance,
    CostCenterRiskTier,
    HealthTier,
    ProjectStatus,
    SpendEfficiency,
)
from core.domain.project import Project

MAX_RISK_SCORE = 100
BLOCKED_TASK_POINTS = 5


def days_overdue(project: Project, as_of: date) -> int:
    if project.due_date is None or project.status == ProjectStatus.COMPLETED:
        return 0
    if project.due_date >= as_of:
        return 0
    return (as_of - project.due_date).days


def project_risk_score(
    *,
    status: ProjectStatus,
    days_overdue: int,
    completion_rate: float,
    overdue_tasks: int,
    total_tasks: int,
    blocked_tasks: int,
    on_time_rate: float,
) -> int:
    score = 0

    if status == ProjectStatus.PLANNING:
        score += 10
    elif status == ProjectStatus.ARCHIVED:
        score += 5

    if days_overdue > 30:
        score += 40
    elif days_overdue > 7:
        score += 30
    elif days_overdue > 0:
        score += 20

    if completion_rate < 30:
        score += 25
    elif completion_rate < 60:
        score += 15
    elif completion_rate < 80:
        score += 5

    if overdue_tasks > total_tasks * 0.5:
        score += 20
    elif overdue_tasks > total_tasks * 0.25:
        score += 10

    score += max(0, blocked_tasks) * BLOCKED_TASK_POINTS

    if on_time_rate < 70:
        score += 15
    elif on_time_rate < 85:
        score += 10

    return min(int(score), MAX_RISK_SCORE)


def health_tier(risk_score: int) -> HealthTier:
    if risk_score >= 70:
        return HealthTier.CRITICAL
    if risk_score >= 40:
        return HealthTier.WARNING
    return HealthTier.HEALTHY


def cost_center_performance(utilization: float) -> CostCenterPerformance:
    if 70 <= utilization <= 90:
        return CostCenterPerformance.EXCELLENT
    if 90 < utilization <= 100:
        return CostCenterPerformance.GOOD
    if utilization > 100:
        return CostCenterPerformance.POOR
    return CostCenterPerformance.AVERAGE


def cost_center_risk_tier(utilization: float, variance: float) -> CostCenterRiskTier:
    if utilization > 100 or variance > 20:
        return CostCenterRiskTier.HIGH
    if utilization > 85 or variance > 10:
        return CostCenterRiskTier.MEDIUM
    return CostCenterRiskTier.LOW


def budget_status(allocated: float, utilization: float) -> BudgetStatus:
    # Row band is inclusive at 100%; generate_alerts only raises BUDGET_EXCEEDED above 100%.
    if allocated <= 0:
        return BudgetStatus.NO_BUDGET
    if utilization >= 100:
        return BudgetStatus.EXCEEDED
    if utilization >= 80:
        return BudgetStatus.WARNING
    if utilization >= 60:
        return BudgetStatus.CAUTION
    return BudgetStatus.ON_TRACK


def spend_efficiency(prorated_variance: float) -> SpendEfficiency:
    if prorated_variance < -10:
        return SpendEfficiency.UNDER
    if prorated_variance > 10:
        return SpendEfficiency.OVER
    return SpendEfficiency.ON_TRACK


__all__ = [
    "MAX_RISK_SCORE",
    "days_overdue",
    "project_risk_score",
    "health_tier",
    "cost_center_performance",
    "cost_center_risk_tier",
    "budget_status",
    "spend_efficiency",
]
