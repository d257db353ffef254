from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy.orm import Session

from core.interfaces import EntitySupply
from core.services.analytics import AnalyticsService, AnalyticsSettings
from infra.db.base import create_session_factory
from infra.db.supply import SqlAlchemyEntitySupply
from infra.settings import load_analytics_settings
from infra.tracing import ensure_trace_id


@dataclass(frozen=True)
class ServiceGraph:
    session_factory: Callable[[], Session]
    entity_supply: EntitySupply
    settings: AnalyticsSettings
    analytics_service: AnalyticsService

    def as_dict(self) -> dict[str, Any]:
        return {
            "session_factory": self.session_factory,
            "entity_supply": self.entity_supply,
            "settings": self.settings,
            "analytics_service": self.analytics_service,
        }


def build_service_graph(
    session_factory: Callable[[], Session] | None = None,
    *,
    settings: AnalyticsSettings | None = None,
) -> ServiceGraph:
    factory = session_factory or create_session_factory()
    resolved_settings = settings or load_analytics_settings()
    supply = SqlAlchemyEntitySupply(factory)
    return ServiceGraph(
        session_factory=factory,
        entity_supply=supply,
        settings=resolved_settings,
        analytics_service=AnalyticsService(supply, resolved_settings, trace_scope=ensure_trace_id),
    )


def build_service_dict(
    session_factory: Callable[[], Session] | None = None,
    *,
    settings: AnalyticsSettings | None = None,
) -> dict[str, Any]:
    return build_service_graph(session_factory, settings=settings).as_dict()


__all__ = ["ServiceGraph", "build_service_graph", "build_service_dict"]
