"""Single ingestion step turning loose records into typed entities.

Every missing or malformed field is resolved here, once per record, so the
analytics code downstream can rely on the dataclass types.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar

from core.domain.amounts import coerce_amount
from core.domain.budget import Budget, CostCenter
from core.domain.enums import (
    BudgetScope,
    ExpenseStatus,
    InvoiceStatus,
    ProjectStatus,
    TaskStatus,
)
from core.domain.expense import Expense
from core.domain.invoice import Invoice
from core.domain.project import Project
from core.domain.task import Task

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

UNCATEGORIZED = "Uncategorized"

_STATUS_ALIASES: dict[type, dict[str, str]] = {
    ExpenseStatus: {"pending": "submitted"},
    TaskStatus: {"in_progress": "in-progress", "done": "completed"},
    BudgetScope: {"cost_center": "costCenter", "costcenter": "costCenter"},
}


def coerce_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            logger.debug("Dropping unparseable date %r", value)
            return None
    logger.debug("Dropping unsupported date value %r", value)
    return None


def coerce_datetime(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            parsed = coerce_date(value)
            return datetime.combine(parsed, time.min) if parsed else None
    logger.debug("Dropping unsupported datetime value %r", value)
    return None


def coerce_enum(enum_cls: Type[E], value: Any, default: E) -> E:
    if isinstance(value, enum_cls):
        return value
    token = str(value or "").strip()
    if not token:
        return default
    aliases = _STATUS_ALIASES.get(enum_cls, {})
    token = aliases.get(token.lower(), token)
    for member in enum_cls:
        if member.value == token or member.value.lower() == token.lower() or member.name == token.upper():
            return member
    logger.debug("Unknown %s value %r, using %s", enum_cls.__name__, value, default.value)
    return default


def coerce_text(value: Any, fallback: str | None = None) -> str | None:
    text = str(value).strip() if value is not None else ""
    return text or fallback


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _category_name(value: Any) -> str:
    # Category may arrive as a plain name or as a nested {"name": ...} record.
    if isinstance(value, Mapping):
        value = value.get("name")
    return coerce_text(value, UNCATEGORIZED) or UNCATEGORIZED


def normalize_expense(raw: Mapping[str, Any], *, workspace_id: str | None = None) -> Expense:
    return Expense(
        id=str(_first(raw, "id") or ""),
        workspace_id=str(_first(raw, "workspace_id", "workspaceId") or workspace_id or ""),
        amount=coerce_amount(_first(raw, "amount_in_base_currency", "amountInBaseCurrency", "amount")),
        category=_category_name(_first(raw, "category")),
        status=coerce_enum(ExpenseStatus, _first(raw, "status"), ExpenseStatus.DRAFT),
        expense_date=coerce_date(_first(raw, "expense_date", "expenseDate")),
        department_id=coerce_text(_first(raw, "department_id", "departmentId")),
        cost_center_id=coerce_text(_first(raw, "cost_center_id", "costCenterId")),
        project_id=coerce_text(_first(raw, "project_id", "projectId")),
    )


def normalize_budget(raw: Mapping[str, Any], *, workspace_id: str | None = None) -> Budget:
    active = _first(raw, "is_active", "isActive")
    return Budget(
        id=str(_first(raw, "id") or ""),
        workspace_id=str(_first(raw, "workspace_id", "workspaceId") or workspace_id or ""),
        amount=coerce_amount(_first(raw, "amount")),
        scope_type=coerce_enum(BudgetScope, _first(raw, "scope_type", "type"), BudgetScope.WORKSPACE),
        scope_id=coerce_text(_first(raw, "scope_id", "entityId")),
        name=coerce_text(_first(raw, "name"), "") or "",
        period=coerce_text(_first(raw, "period"), "yearly") or "yearly",
        start_date=coerce_date(_first(raw, "start_date", "startDate")),
        end_date=coerce_date(_first(raw, "end_date", "endDate")),
        is_active=True if active is None else bool(active),
    )


def normalize_cost_center(raw: Mapping[str, Any], *, workspace_id: str | None = None) -> CostCenter:
    active = _first(raw, "is_active", "isActive")
    return CostCenter(
        id=str(_first(raw, "id") or ""),
        workspace_id=str(_first(raw, "workspace_id", "workspaceId") or workspace_id or ""),
        name=coerce_text(_first(raw, "name"), "Unnamed") or "Unnamed",
        code=coerce_text(_first(raw, "code"), "") or "",
        budget=coerce_amount(_first(raw, "budget")),
        is_active=True if active is None else bool(active),
    )


def normalize_project(raw: Mapping[str, Any], *, workspace_id: str | None = None) -> Project:
    return Project(
        id=str(_first(raw, "id") or ""),
        workspace_id=str(_first(raw, "workspace_id", "workspaceId") or workspace_id or ""),
        name=coerce_text(_first(raw, "name"), "Untitled project") or "Untitled project",
        status=coerce_enum(ProjectStatus, _first(raw, "status"), ProjectStatus.PLANNING),
        due_date=coerce_date(_first(raw, "due_date", "dueDate")),
        created_at=coerce_datetime(_first(raw, "created_at", "createdAt")),
    )


def normalize_task(raw: Mapping[str, Any]) -> Task:
    priority = coerce_text(_first(raw, "priority"))
    return Task(
        id=str(_first(raw, "id") or ""),
        project_id=str(_first(raw, "project_id", "projectId") or ""),
        status=coerce_enum(TaskStatus, _first(raw, "status"), TaskStatus.TODO),
        priority=priority.lower() if priority else None,
        due_date=coerce_date(_first(raw, "due_date", "dueDate")),
        updated_at=coerce_datetime(_first(raw, "updated_at", "updatedAt")),
    )


def normalize_invoice(raw: Mapping[str, Any], *, workspace_id: str | None = None) -> Invoice:
    return Invoice(
        id=str(_first(raw, "id") or ""),
        workspace_id=str(_first(raw, "workspace_id", "workspaceId") or workspace_id or ""),
        total=coerce_amount(_first(raw, "total")),
        status=coerce_enum(InvoiceStatus, _first(raw, "status"), InvoiceStatus.DRAFT),
        issue_date=coerce_date(_first(raw, "issue_date", "issueDate")),
        due_date=coerce_date(_first(raw, "due_date", "dueDate")),
        paid_date=coerce_date(_first(raw, "paid_date", "paidDate")),
    )


__all__ = [
    "UNCATEGORIZED",
    "coerce_amount",
    "coerce_date",
    "coerce_datetime",
    "coerce_enum",
    "coerce_text",
    "normalize_expense",
    "normalize_budget",
    "normalize_cost_center",
    "normalize_project",
    "normalize_task",
    "normalize_invoice",
]
