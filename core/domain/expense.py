from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from core.domain.amounts import clean_amount_field
from core.domain.enums import ExpenseStatus
from core.domain.identifiers import generate_id


@dataclass(frozen=True)
class Expense:
    id: str
    workspace_id: str
    amount: float
    category: str = "Uncategorized"
    status: ExpenseStatus = ExpenseStatus.DRAFT
    expense_date: Optional[date] = None
    department_id: Optional[str] = None
    cost_center_id: Optional[str] = None
    project_id: Optional[str] = None

    def __post_init__(self) -> None:
        clean_amount_field(self, "amount")

    @property
    def is_pending(self) -> bool:
        return self.status == ExpenseStatus.SUBMITTED

    @staticmethod
    def create(workspace_id: str, amount: float, category: str = "Uncategorized", **extra) -> "Expense":
        return Expense(
            id=generate_id("exp"),
            workspace_id=workspace_id,
            amount=amount,
            category=category,
            **extra,
        )


__all__ = ["Expense"]
