from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AnalyticsSettings:
    trend_window: int = 6
    forecast_horizon_months: int = 3
    pending_threshold: int = 10
    budget_warning_percent: float = 80.0
    top_categories: int = 5
    fetch_workers: int = 4
    default_preset: str = "last-30-days"


DEFAULT_SETTINGS = AnalyticsSettings()

__all__ = ["AnalyticsSettings", "DEFAULT_SETTINGS"]
