from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from core.domain.enums import TaskStatus
from core.domain.identifiers import generate_id

URGENT_PRIORITY = "urgent"


@dataclass(frozen=True)
class Task:
    id: str
    project_id: str
    status: TaskStatus = TaskStatus.TODO
    priority: Optional[str] = None
    due_date: Optional[date] = None
    updated_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def is_blocking(self) -> bool:
        return self.priority == URGENT_PRIORITY and not self.is_completed

    def is_overdue(self, as_of: date) -> bool:
        return self.due_date is not None and self.due_date < as_of and not self.is_completed

    def completed_on_time(self) -> bool:
        if not self.is_completed or self.due_date is None or self.updated_at is None:
            return False
        return self.updated_at.date() <= self.due_date

    @staticmethod
    def create(project_id: str, **extra) -> "Task":
        return Task(id=generate_id("tsk"), project_id=project_id, **extra)


__all__ = ["Task", "URGENT_PRIORITY"]
