from __future__ import annotations

from core.domain.budget import Budget, CostCenter
from core.domain.expense import Expense
from core.domain.invoice import Invoice
from core.domain.normalize import (
    normalize_budget,
    normalize_cost_center,
    normalize_expense,
    normalize_invoice,
    normalize_project,
    normalize_task,
)
from core.domain.project import Project
from core.domain.task import Task
from infra.db.models import (
    BudgetORM,
    CostCenterORM,
    ExpenseORM,
    InvoiceORM,
    ProjectORM,
    TaskORM,
)


def expense_from_orm(obj: ExpenseORM) -> Expense:
    return normalize_expense(
        {
            "id": obj.id,
            "workspace_id": obj.workspace_id,
            "amount_in_base_currency": obj.amount_in_base_currency,
            "amount": obj.amount,
            "category": obj.category,
            "status": obj.status,
            "expense_date": obj.expense_date,
            "department_id": obj.department_id,
            "cost_center_id": obj.cost_center_id,
            "project_id": obj.project_id,
        }
    )


def budget_from_orm(obj: BudgetORM) -> Budget:
    return normalize_budget(
        {
            "id": obj.id,
            "workspace_id": obj.workspace_id,
            "name": obj.name,
            "amount": obj.amount,
            "scope_type": obj.scope_type,
            "scope_id": obj.scope_id,
            "period": obj.period,
            "start_date": obj.start_date,
            "end_date": obj.end_date,
            "is_active": obj.is_active,
        }
    )


def cost_center_from_orm(obj: CostCenterORM) -> CostCenter:
    return normalize_cost_center(
        {
            "id": obj.id,
            "workspace_id": obj.workspace_id,
            "name": obj.name,
            "code": obj.code,
            "budget": obj.budget,
            "is_active": obj.is_active,
        }
    )


def project_from_orm(obj: ProjectORM) -> Project:
    return normalize_project(
        {
            "id": obj.id,
            "workspace_id": obj.workspace_id,
            "name": obj.name,
            "status": obj.status,
            "due_date": obj.due_date,
            "created_at": obj.created_at,
        }
    )


def task_from_orm(obj: TaskORM) -> Task:
    return normalize_task(
        {
            "id": obj.id,
            "project_id": obj.project_id,
            "status": obj.status,
            "priority": obj.priority,
            "due_date": obj.due_date,
            "updated_at": obj.updated_at,
        }
    )


def invoice_from_orm(obj: InvoiceORM) -> Invoice:
    return normalize_invoice(
        {
            "id": obj.id,
            "workspace_id": obj.workspace_id,
            "total": obj.total,
            "status": obj.status,
            "issue_date": obj.issue_date,
            "due_date": obj.due_date,
            "paid_date": obj.paid_date,
        }
    )


__all__ = [
    "expense_from_orm",
    "budget_from_orm",
    "cost_center_from_orm",
    "project_from_orm",
    "task_from_orm",
    "invoice_from_orm",
]
