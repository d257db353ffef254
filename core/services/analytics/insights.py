from __future__ import annotations

from typing import List, Sequence

from core.services.analytics.metrics import change_percent
from core.services.analytics.models import (
    DepartmentBreakdownRow,
    Insight,
    Recommendation,
    WorkspaceAnalytics,
)

EXPENSE_INCREASE_PERCENT = 20.0
HIGH_UTILIZATION_PERCENT = 80.0
SPEND_SHARE_OF_BUDGET = 0.7


def build_insights(
    analytics: WorkspaceAnalytics,
    departments: Sequence[DepartmentBreakdownRow],
    *,
    outstanding_invoices: int,
) -> List[Insight]:
    insights: List[Insight] = []

    over_budget = [row for row in departments if row.budget > 0 and row.utilization_percent > 100]
    if over_budget:
        names = ", ".join(row.department_id for row in over_budget)
        insights.append(
            Insight(
                title="Departments Over Budget",
                description=(
                    f"{len(over_budget)} department(s) have exceeded their allocated budget. "
                    f"{names} require immediate attention."
                ),
                impact="High",
                category="Budget Variance",
                recommendation=(
                    "Review spending patterns and consider budget reallocation "
                    "or expense reduction strategies."
                ),
            )
        )

    change = change_percent(analytics.current_month_spent, analytics.previous_month_spent)
    if change > EXPENSE_INCREASE_PERCENT:
        insights.append(
            Insight(
                title="Significant Expense Increase",
                description=(
                    f"Expenses have increased by {change:.1f}% compared to the previous period. "
                    "This represents a notable change in spending patterns."
                ),
                impact="Medium",
                category="Expense Trend",
                recommendation=(
                    "Analyze the drivers of increased spending and implement cost control "
                    "measures where appropriate."
                ),
            )
        )

    if outstanding_invoices > 0:
        insights.append(
            Insight(
                title="Outstanding Invoices",
                description=(
                    f"There are {outstanding_invoices} outstanding invoices that require "
                    "attention for payment processing."
                ),
                impact="Medium",
                category="Cash Flow",
                recommendation="Review and process outstanding invoices to maintain healthy cash flow.",
            )
        )
    return insights


def build_recommendations(
    analytics: WorkspaceAnalytics,
    departments: Sequence[DepartmentBreakdownRow],
) -> List[Recommendation]:
    out: List[Recommendation] = []

    busy = [row for row in departments if row.utilization_percent > HIGH_UTILIZATION_PERCENT]
    if busy:
        out.append(
            Recommendation(
                priority="High",
                title="Monitor High-Utilization Departments",
                description=(
                    f"{len(busy)} department(s) are approaching budget limits. "
                    "Implement closer monitoring and approval processes."
                ),
                category="Budget Management",
            )
        )

    if analytics.total_budget > 0 and analytics.total_spent > analytics.total_budget * SPEND_SHARE_OF_BUDGET:
        out.append(
            Recommendation(
                priority="Medium",
                title="Implement Expense Approval Workflow",
                description=(
                    "Current spending is at 70%+ of budget. Implement stricter approval "
                    "workflows for non-essential expenses."
                ),
                category="Process Improvement",
            )
        )

    out.append(
        Recommendation(
            priority="Low",
            title="Regular Financial Reviews",
            description=(
                "Establish monthly financial review meetings to discuss performance "
                "and adjust strategies proactively."
            ),
            category="Governance",
        )
    )
    return out


__all__ = ["build_insights", "build_recommendations"]
