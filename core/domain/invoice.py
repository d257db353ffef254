from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from core.domain.amounts import clean_amount_field
from core.domain.enums import InvoiceStatus
from core.domain.identifiers import generate_id


@dataclass(frozen=True)
class Invoice:
    id: str
    workspace_id: str
    total: float
    status: InvoiceStatus = InvoiceStatus.DRAFT
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    paid_date: Optional[date] = None

    def __post_init__(self) -> None:
        clean_amount_field(self, "total")

    def effective_status(self, as_of: date) -> InvoiceStatus:
        """Stored status, except a sent invoice past its due date reads as overdue."""
        if self.status == InvoiceStatus.SENT and self.due_date is not None and self.due_date < as_of:
            return InvoiceStatus.OVERDUE
        return self.status

    @staticmethod
    def create(workspace_id: str, total: float, **extra) -> "Invoice":
        return Invoice(
            id=generate_id("inv"),
            workspace_id=workspace_id,
            total=total,
            **extra,
        )


__all__ = ["Invoice"]
