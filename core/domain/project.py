from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from core.domain.enums import ProjectStatus
from core.domain.identifiers import generate_id


@dataclass(frozen=True)
class Project:
    id: str
    workspace_id: str
    name: str
    status: ProjectStatus = ProjectStatus.PLANNING
    due_date: Optional[date] = None
    created_at: Optional[datetime] = None

    @staticmethod
    def create(workspace_id: str, name: str, **extra) -> "Project":
        return Project(
            id=generate_id("prj"),
            workspace_id=workspace_id,
            name=name,
            **extra,
        )


__all__ = ["Project"]
