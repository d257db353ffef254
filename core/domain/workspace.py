from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Tuple

from core.domain.budget import Budget, CostCenter
from core.domain.expense import Expense
from core.domain.invoice import Invoice
from core.domain.project import Project
from core.domain.task import Task


@dataclass(frozen=True)
class WorkspaceScope:
    """Ordered, de-duplicated set of workspace ids a computation spans."""

    workspace_ids: Tuple[str, ...]

    def __post_init__(self) -> None:
        seen: list[str] = []
        for raw in self.workspace_ids:
            token = (raw or "").strip()
            if token and token not in seen:
                seen.append(token)
        object.__setattr__(self, "workspace_ids", tuple(seen))

    @staticmethod
    def single(workspace_id: str) -> "WorkspaceScope":
        return WorkspaceScope((workspace_id,))

    @staticmethod
    def of(workspace_ids: Iterable[str]) -> "WorkspaceScope":
        return WorkspaceScope(tuple(workspace_ids))

    @property
    def is_consolidated(self) -> bool:
        return len(self.workspace_ids) > 1

    def __iter__(self):
        return iter(self.workspace_ids)

    def __len__(self) -> int:
        return len(self.workspace_ids)


@dataclass(frozen=True)
class WorkspaceSnapshot:
    workspace_id: str
    expenses: Tuple[Expense, ...] = field(default_factory=tuple)
    budgets: Tuple[Budget, ...] = field(default_factory=tuple)
    cost_centers: Tuple[CostCenter, ...] = field(default_factory=tuple)
    projects: Tuple[Project, ...] = field(default_factory=tuple)
    tasks: Tuple[Task, ...] = field(default_factory=tuple)
    invoices: Tuple[Invoice, ...] = field(default_factory=tuple)

    def tasks_for_project(self, project_id: str) -> list[Task]:
        return [task for task in self.tasks if task.project_id == project_id]


__all__ = ["WorkspaceScope", "WorkspaceSnapshot"]
