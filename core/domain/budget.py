from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from core.domain.amounts import clean_amount_field
from core.domain.enums import BudgetScope
from core.domain.identifiers import generate_id


@dataclass(frozen=True)
class Budget:
    id: str
    workspace_id: str
    amount: float
    scope_type: BudgetScope = BudgetScope.WORKSPACE
    scope_id: Optional[str] = None
    name: str = ""
    period: str = "yearly"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = True

    def __post_init__(self) -> None:
        clean_amount_field(self, "amount")

    @property
    def label(self) -> str:
        return self.name or self.scope_id or self.id

    @staticmethod
    def create(workspace_id: str, amount: float, **extra) -> "Budget":
        return Budget(
            id=generate_id("bud"),
            workspace_id=workspace_id,
            amount=amount,
            **extra,
        )


@dataclass(frozen=True)
class CostCenter:
    id: str
    workspace_id: str
    name: str
    code: str = ""
    budget: float = 0.0
    is_active: bool = True

    def __post_init__(self) -> None:
        clean_amount_field(self, "budget")

    @staticmethod
    def create(workspace_id: str, name: str, code: str = "", budget: float = 0.0, **extra) -> "CostCenter":
        return CostCenter(
            id=generate_id("cc"),
            workspace_id=workspace_id,
            name=name,
            code=code,
            budget=budget,
            **extra,
        )


__all__ = ["Budget", "CostCenter"]
