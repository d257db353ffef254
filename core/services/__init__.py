from .analytics import (
    AnalyticsService,
    AnalyticsSettings,
    AnalyticsDashboard,
    DEFAULT_SETTINGS,
)

__all__ = [
    "AnalyticsService",
    "AnalyticsSettings",
    "AnalyticsDashboard",
    "DEFAULT_SETTINGS",
]
