from .aggregation import aggregate, merge_aggregates, top_n, with_shares
from .alerts import generate_alerts
from .merge import (
    WorkspaceFetchResult,
    build_workspace_analytics,
    consolidate,
    merge_workspace_analytics,
)
from .models import (
    AggregateBucket,
    Alert,
    AnalyticsDashboard,
    BudgetSummaryRow,
    CostCenterAnalysis,
    CostCenterComparisonRow,
    DateWindow,
    ExpenseAnalytics,
    InvoiceAnalytics,
    MonthlyBucket,
    OverviewMetrics,
    PortfolioSummary,
    ProjectHealthRow,
    ScopeWarning,
    SpendForecast,
    WorkspaceAnalytics,
)
from .periods import resolve_window
from .service import AnalyticsService
from .settings import DEFAULT_SETTINGS, AnalyticsSettings

__all__ = [
    "AnalyticsService",
    "AnalyticsSettings",
    "DEFAULT_SETTINGS",
    "aggregate",
    "merge_aggregates",
    "top_n",
    "with_shares",
    "generate_alerts",
    "resolve_window",
    "WorkspaceFetchResult",
    "build_workspace_analytics",
    "merge_workspace_analytics",
    "consolidate",
    "AggregateBucket",
    "Alert",
    "AnalyticsDashboard",
    "BudgetSummaryRow",
    "CostCenterAnalysis",
    "CostCenterComparisonRow",
    "DateWindow",
    "ExpenseAnalytics",
    "InvoiceAnalytics",
    "MonthlyBucket",
    "OverviewMetrics",
    "PortfolioSummary",
    "ProjectHealthRow",
    "ScopeWarning",
    "SpendForecast",
    "WorkspaceAnalytics",
]
