from __future__ import annotations

from enum import Enum


class ExpenseStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAID = "paid"


class BudgetScope(str, Enum):
    COST_CENTER = "costCenter"
    DEPARTMENT = "department"
    PROJECT = "project"
    WORKSPACE = "workspace"


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class HealthTier(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


class CostCenterPerformance(str, Enum):
    """Relative ranking band used by the cost-center comparison view."""

    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    POOR = "poor"


class CostCenterRiskTier(str, Enum):
    """Absolute risk band used by the cost-center detailed analysis.

    Not derived from CostCenterPerformance; a center rated GOOD can still
    be MEDIUM risk.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BudgetStatus(str, Enum):
    NO_BUDGET = "no-budget"
    ON_TRACK = "on-track"
    CAUTION = "caution"
    WARNING = "warning"
    EXCEEDED = "exceeded"


class SpendEfficiency(str, Enum):
    UNDER = "under"
    ON_TRACK = "on-track"
    OVER = "over"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class AlertKind(str, Enum):
    BUDGET_EXCEEDED = "budget_exceeded"
    BUDGET_WARNING = "budget_warning"
    PENDING_BACKLOG = "pending_backlog"
    INVOICE_OVERDUE = "invoice_overdue"


class AlertSeverity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


__all__ = [
    "ExpenseStatus",
    "BudgetScope",
    "ProjectStatus",
    "TaskStatus",
    "InvoiceStatus",
    "HealthTier",
    "CostCenterPerformance",
    "CostCenterRiskTier",
    "BudgetStatus",
    "SpendEfficiency",
    "TrendDirection",
    "AlertKind",
    "AlertSeverity",
]
