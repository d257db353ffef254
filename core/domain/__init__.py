from core.domain.budget import Budget, CostCenter
from core.domain.enums import (
    AlertKind,
    AlertSeverity,
    BudgetScope,
    BudgetStatus,
    CostCenterPerformance,
    CostCenterRiskTier,
    ExpenseStatus,
    HealthTier,
    InvoiceStatus,
    ProjectStatus,
    SpendEfficiency,
    TaskStatus,
    TrendDirection,
)
from core.domain.expense import Expense
from core.domain.identifiers import generate_id
from core.domain.invoice import Invoice
from core.domain.project import Project
from core.domain.task import URGENT_PRIORITY, Task
from core.domain.workspace import WorkspaceScope, WorkspaceSnapshot

__all__ = [
    "generate_id",
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
    "Expense",
    "Budget",
    "CostCenter",
    "Project",
    "Task",
    "URGENT_PRIORITY",
    "Invoice",
    "WorkspaceScope",
    "WorkspaceSnapshot",
]
