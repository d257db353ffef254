from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.domain.workspace import WorkspaceSnapshot
from core.exceptions import WorkspaceFetchError
from core.interfaces import EntitySupply
from infra.db.mappers import (
    budget_from_orm,
    cost_center_from_orm,
    expense_from_orm,
    invoice_from_orm,
    project_from_orm,
    task_from_orm,
)
from infra.db.models import (
    BudgetORM,
    CostCenterORM,
    ExpenseORM,
    InvoiceORM,
    ProjectORM,
    TaskORM,
    WorkspaceORM,
)

logger = logging.getLogger(__name__)


class SqlAlchemyEntitySupply(EntitySupply):
    """Read-only snapshot loader; opens one session per workspace fetch.

    Safe to call from worker threads as long as the session factory is.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def fetch_workspace(self, workspace_id: str) -> WorkspaceSnapshot:
        session = self._session_factory()
        try:
            return self._load(session, workspace_id)
        except SQLAlchemyError as exc:
            logger.error("Failed to load workspace %s: %s", workspace_id, exc)
            raise WorkspaceFetchError(
                f"Could not load workspace {workspace_id}.",
                workspace_id=workspace_id,
                code="WORKSPACE_QUERY_FAILED",
            ) from exc
        finally:
            session.close()

    def _load(self, session: Session, workspace_id: str) -> WorkspaceSnapshot:
        if session.get(WorkspaceORM, workspace_id) is None:
            raise WorkspaceFetchError(
                f"Workspace {workspace_id} does not exist.",
                workspace_id=workspace_id,
                code="WORKSPACE_NOT_FOUND",
            )

        def rows(model):
            stmt = select(model).where(model.workspace_id == workspace_id)
            return session.execute(stmt).scalars().all()

        projects = rows(ProjectORM)
        task_stmt = (
            select(TaskORM)
            .join(ProjectORM, ProjectORM.id == TaskORM.project_id)
            .where(ProjectORM.workspace_id == workspace_id)
        )
        tasks = session.execute(task_stmt).scalars().all()

        snapshot = WorkspaceSnapshot(
            workspace_id=workspace_id,
            expenses=tuple(expense_from_orm(row) for row in rows(ExpenseORM)),
            budgets=tuple(budget_from_orm(row) for row in rows(BudgetORM)),
            cost_centers=tuple(cost_center_from_orm(row) for row in rows(CostCenterORM)),
            projects=tuple(project_from_orm(row) for row in projects),
            tasks=tuple(task_from_orm(row) for row in tasks),
            invoices=tuple(invoice_from_orm(row) for row in rows(InvoiceORM)),
        )
        logger.debug(
            "Loaded workspace %s: %s expenses, %s budgets, %s projects, %s invoices",
            workspace_id,
            len(snapshot.expenses),
            len(snapshot.budgets),
            len(snapshot.projects),
            len(snapshot.invoices),
        )
        return snapshot


__all__ = ["SqlAlchemyEntitySupply"]
