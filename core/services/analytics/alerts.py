from __future__ import annotations

from typing import Iterable, List

from core.domain.enums import AlertKind, AlertSeverity
from core.services.analytics.models import Alert, BudgetSummaryRow

DEFAULT_PENDING_THRESHOLD = 10
DEFAULT_WARNING_PERCENT = 80.0


def generate_alerts(
    budget_rows: Iterable[BudgetSummaryRow],
    *,
    pending_count: int = 0,
    overdue_invoice_count: int = 0,
    pending_threshold: int = DEFAULT_PENDING_THRESHOLD,
    warning_percent: float = DEFAULT_WARNING_PERCENT,
) -> List[Alert]:
    """Threshold alerts over already computed metrics.

    Stateless: the same inputs always give the same list, in the same order
    (budget alerts in row order, then the backlog, then invoices).
    """
    alerts: List[Alert] = []

    for row in budget_rows:
        utilization = row.utilization_percent
        if utilization > 100.0:
            alerts.append(
                Alert(
                    kind=AlertKind.BUDGET_EXCEEDED,
                    severity=AlertSeverity.CRITICAL,
                    message=(
                        f'Budget "{row.name}" is exceeded '
                        f"({utilization:.1f}% used, {row.spent:.2f} of {row.allocated:.2f})."
                    ),
                    related_entity_id=row.budget_id,
                )
            )
        elif utilization > warning_percent:
            alerts.append(
                Alert(
                    kind=AlertKind.BUDGET_WARNING,
                    severity=AlertSeverity.WARNING,
                    message=f'Budget "{row.name}" is at {utilization:.1f}% of its allocation.',
                    related_entity_id=row.budget_id,
                )
            )

    if pending_count > pending_threshold:
        alerts.append(
            Alert(
                kind=AlertKind.PENDING_BACKLOG,
                severity=AlertSeverity.WARNING,
                message=f"There are {pending_count} expenses waiting for approval.",
            )
        )

    if overdue_invoice_count > 0:
        alerts.append(
            Alert(
                kind=AlertKind.INVOICE_OVERDUE,
                severity=AlertSeverity.CRITICAL,
                message=f"There are {overdue_invoice_count} overdue invoices.",
            )
        )

    return alerts


__all__ = ["DEFAULT_PENDING_THRESHOLD", "DEFAULT_WARNING_PERCENT", "generate_alerts"]
