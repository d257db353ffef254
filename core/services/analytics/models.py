from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from core.domain.enums import (
    AlertKind,
    AlertSeverity,
    BudgetScope,
    BudgetStatus,
    CostCenterPerformance,
    CostCenterRiskTier,
    HealthTier,
    ProjectStatus,
    SpendEfficiency,
    TrendDirection,
)


@dataclass(frozen=True)
class DateWindow:
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, value: date | None) -> bool:
        return value is not None and self.start <= value <= self.end


@dataclass(frozen=True)
class AggregateBucket:
    key: str
    total: float
    count: int


@dataclass(frozen=True)
class ShareRow:
    key: str
    total: float
    count: int
    percentage: float


@dataclass(frozen=True)
class MonthlyBucket:
    period_key: str
    label: str
    period_start: date
    period_end: date
    total: float
    count: int


@dataclass(frozen=True)
class BudgetActualPoint:
    period_key: str
    label: str
    budget: float
    spent: float
    variance: float


@dataclass(frozen=True)
class ExpenseFrequencyPoint:
    period_key: str
    label: str
    count: int
    average_amount: float


@dataclass(frozen=True)
class SpendForecast:
    avg_monthly_velocity: float
    forecasted_spend: float
    horizon_months: int


@dataclass(frozen=True)
class SegmentTrendRow:
    key: str
    current: float
    previous: float
    total: float
    percentage: float
    change_percent: Optional[float]
    direction: TrendDirection


@dataclass(frozen=True)
class Alert:
    kind: AlertKind
    severity: AlertSeverity
    message: str
    related_entity_id: Optional[str] = None


@dataclass(frozen=True)
class BudgetSummaryRow:
    budget_id: str
    workspace_id: str
    name: str
    scope_type: BudgetScope
    scope_id: Optional[str]
    allocated: float
    spent: float
    remaining: float
    utilization_percent: float
    status: BudgetStatus


@dataclass(frozen=True)
class ProjectedOverrun:
    budget_id: str
    name: str
    projected_spend: float
    projected_overrun: float


@dataclass(frozen=True)
class BudgetPerformanceRow:
    budget_id: str
    name: str
    utilization_percent: float
    spend_rate_per_day: float
    projected_completion: Optional[date]
    variance_percent: float
    efficiency: SpendEfficiency


@dataclass(frozen=True)
class ProjectHealthRow:
    project_id: str
    workspace_id: str
    name: str
    status: ProjectStatus
    task_count: int
    completed_tasks: int
    in_progress_tasks: int
    overdue_tasks: int
    blocked_tasks: int
    completion_rate: float
    on_time_delivery_rate: float
    days_overdue: int
    risk_score: int
    health_tier: HealthTier


@dataclass(frozen=True)
class PortfolioSummary:
    total_projects: int
    healthy: int
    warning: int
    critical: int
    by_status: Dict[str, int]
    average_completion: float
    total_tasks: int
    overdue_tasks: int


@dataclass(frozen=True)
class CostCenterComparisonRow:
    cost_center_id: str
    workspace_id: str
    name: str
    code: str
    budget: float
    spent: float
    utilization_percent: float
    efficiency: float
    expense_count: int
    average_expense: float
    monthly_average: float
    performance: CostCenterPerformance
    rank: int = 0


@dataclass(frozen=True)
class CostCenterKpis:
    budget_accuracy: float
    spend_velocity: float
    seasonal_variance: float


@dataclass(frozen=True)
class CostCenterAnalysis:
    cost_center_id: str
    name: str
    code: str
    budget: float
    spent: float
    remaining: float
    utilization_percent: float
    variance_percent: float
    monthly_trend: List[BudgetActualPoint]
    category_breakdown: List[SegmentTrendRow]
    expense_frequency: List[ExpenseFrequencyPoint]
    forecast: SpendForecast
    risk_tier: CostCenterRiskTier
    recommendations: List[str]
    kpis: CostCenterKpis


@dataclass(frozen=True)
class DepartmentBreakdownRow:
    department_id: str
    total: float
    count: int
    status_amounts: Dict[str, float]
    budget: float
    utilization_percent: float


@dataclass(frozen=True)
class OverviewMetrics:
    total_budget: float
    total_spent: float
    total_remaining: float
    utilization_percent: float
    burn_rate: float
    monthly_burn: float
    spending_trend_percent: float
    forecast: SpendForecast


@dataclass(frozen=True)
class ExpenseAnalytics:
    counts_by_status: Dict[str, int]
    total_count: int
    total_amount: float
    approved_amount: float
    pending_amount: float
    rejected_amount: float
    top_categories: List[ShareRow]
    departments: List[DepartmentBreakdownRow]
    month_over_month_percent: float
    monthly_trend: List[MonthlyBucket]


@dataclass(frozen=True)
class InvoiceAnalytics:
    counts_by_status: Dict[str, int]
    total_count: int
    total_amount: float
    outstanding_amount: float
    overdue_amount: float
    average_payment_days: float
    month_over_month_percent: float
    aging: Dict[str, float]


@dataclass(frozen=True)
class Insight:
    title: str
    description: str
    impact: str
    category: str
    recommendation: str


@dataclass(frozen=True)
class Recommendation:
    priority: str
    title: str
    description: str
    category: str


@dataclass(frozen=True)
class ScopeWarning:
    workspace_id: str
    message: str


@dataclass(frozen=True)
class WorkspaceAnalytics:
    """Additive per-workspace aggregates; merged across a consolidated scope."""

    workspace_ids: Tuple[str, ...]
    total_budget: float = 0.0
    total_spent: float = 0.0
    expense_count: int = 0
    expense_status_counts: Dict[str, int] = field(default_factory=dict)
    expense_status_amounts: Dict[str, float] = field(default_factory=dict)
    by_category: Dict[str, AggregateBucket] = field(default_factory=dict)
    by_department: Dict[str, AggregateBucket] = field(default_factory=dict)
    by_project: Dict[str, AggregateBucket] = field(default_factory=dict)
    by_cost_center: Dict[str, AggregateBucket] = field(default_factory=dict)
    department_status_amounts: Dict[str, Dict[str, float]] = field(default_factory=dict)
    department_budgets: Dict[str, float] = field(default_factory=dict)
    monthly: Tuple[MonthlyBucket, ...] = ()
    current_month_spent: float = 0.0
    previous_month_spent: float = 0.0
    invoice_count: int = 0
    invoice_total: float = 0.0
    invoice_status_counts: Dict[str, int] = field(default_factory=dict)
    invoice_status_amounts: Dict[str, float] = field(default_factory=dict)
    invoice_payment_days_total: float = 0.0
    invoice_paid_count: int = 0
    invoice_current_month_total: float = 0.0
    invoice_previous_month_total: float = 0.0
    invoice_aging: Dict[str, float] = field(default_factory=dict)
    budget_rows: Tuple[BudgetSummaryRow, ...] = ()
    project_rows: Tuple[ProjectHealthRow, ...] = ()
    cost_center_rows: Tuple[CostCenterComparisonRow, ...] = ()


@dataclass(frozen=True)
class AnalyticsDashboard:
    workspace_ids: Tuple[str, ...]
    as_of: date
    window: Optional[DateWindow]
    overview: OverviewMetrics
    expenses: ExpenseAnalytics
    invoices: InvoiceAnalytics
    budgets: List[BudgetSummaryRow]
    projects: List[ProjectHealthRow]
    portfolio: PortfolioSummary
    cost_centers: List[CostCenterComparisonRow]
    alerts: List[Alert]
    insights: List[Insight]
    recommendations: List[Recommendation]
    warnings: List[ScopeWarning]


__all__ = [
    "DateWindow",
    "AggregateBucket",
    "ShareRow",
    "MonthlyBucket",
    "BudgetActualPoint",
    "ExpenseFrequencyPoint",
    "SpendForecast",
    "SegmentTrendRow",
    "Alert",
    "BudgetSummaryRow",
    "ProjectedOverrun",
    "BudgetPerformanceRow",
    "ProjectHealthRow",
    "PortfolioSummary",
    "CostCenterComparisonRow",
    "CostCenterKpis",
    "CostCenterAnalysis",
    "DepartmentBreakdownRow",
    "OverviewMetrics",
    "ExpenseAnalytics",
    "InvoiceAnalytics",
    "Insight",
    "Recommendation",
    "ScopeWarning",
    "WorkspaceAnalytics",
    "AnalyticsDashboard",
]
