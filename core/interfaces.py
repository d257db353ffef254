from __future__ import annotations

from typing import Protocol

from core.domain.workspace import WorkspaceSnapshot


class EntitySupply(Protocol):
    """Read side of the persistence layer, one workspace at a time.

    Implementations raise ``WorkspaceFetchError`` when a workspace cannot be
    loaded; the analytics service turns that into a scope warning.
    """

    def fetch_workspace(self, workspace_id: str) -> WorkspaceSnapshot: ...


__all__ = ["EntitySupply"]
