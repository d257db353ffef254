from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional

from core.domain.enums import InvoiceStatus
from core.domain.invoice import Invoice
from core.services.analytics.metrics import average_amount, change_percent
from core.services.analytics.models import DateWindow, InvoiceAnalytics, WorkspaceAnalytics

AGING_BUCKETS = ("current", "1-30", "31-60", "61-90", "90+")

# Issued and still waiting for money.
_UNPAID = {InvoiceStatus.SENT, InvoiceStatus.OVERDUE}


def in_window(invoices: Iterable[Invoice], window: Optional[DateWindow]) -> List[Invoice]:
    if window is None:
        return list(invoices)
    return [invoice for invoice in invoices if window.contains(invoice.issue_date)]


def effective_status_counts(invoices: Iterable[Invoice], as_of: date) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for invoice in invoices:
        key = invoice.effective_status(as_of).value
        counts[key] = counts.get(key, 0) + 1
    return counts


def effective_status_amounts(invoices: Iterable[Invoice], as_of: date) -> Dict[str, float]:
    amounts: Dict[str, float] = {}
    for invoice in invoices:
        key = invoice.effective_status(as_of).value
        amounts[key] = amounts.get(key, 0.0) + invoice.total
    return amounts


def payment_days(invoice: Invoice) -> Optional[int]:
    if invoice.status != InvoiceStatus.PAID or invoice.paid_date is None or invoice.issue_date is None:
        return None
    return max(0, (invoice.paid_date - invoice.issue_date).days)


def _aging_key(days_past_due: int) -> str:
    if days_past_due <= 0:
        return "current"
    if days_past_due <= 30:
        return "1-30"
    if days_past_due <= 60:
        return "31-60"
    if days_past_due <= 90:
        return "61-90"
    return "90+"


def aging_buckets(invoices: Iterable[Invoice], as_of: date) -> Dict[str, float]:
    """Outstanding amounts by days past due, over sent or overdue invoices only."""
    out = {key: 0.0 for key in AGING_BUCKETS}
    for invoice in invoices:
        if invoice.status not in _UNPAID:
            continue
        days = (as_of - invoice.due_date).days if invoice.due_date else 0
        key = _aging_key(days)
        out[key] += invoice.total
    return out


def invoice_analytics(analytics: WorkspaceAnalytics) -> InvoiceAnalytics:
    counts = {status.value: 0 for status in InvoiceStatus if status != InvoiceStatus.CANCELLED}
    for key, value in analytics.invoice_status_counts.items():
        counts[key] = counts.get(key, 0) + value

    amounts = analytics.invoice_status_amounts
    outstanding = sum(amounts.get(status.value, 0.0) for status in (InvoiceStatus.SENT, InvoiceStatus.OVERDUE))
    return InvoiceAnalytics(
        counts_by_status=counts,
        total_count=analytics.invoice_count,
        total_amount=analytics.invoice_total,
        outstanding_amount=outstanding,
        overdue_amount=amounts.get(InvoiceStatus.OVERDUE.value, 0.0),
        average_payment_days=average_amount(
            analytics.invoice_payment_days_total, analytics.invoice_paid_count
        ),
        month_over_month_percent=change_percent(
            analytics.invoice_current_month_total, analytics.invoice_previous_month_total
        ),
        aging={key: analytics.invoice_aging.get(key, 0.0) for key in AGING_BUCKETS},
    )


def overdue_count(analytics: WorkspaceAnalytics) -> int:
    return int(analytics.invoice_status_counts.get(InvoiceStatus.OVERDUE.value, 0))


def outstanding_count(analytics: WorkspaceAnalytics) -> int:
    counts = analytics.invoice_status_counts
    return int(counts.get(InvoiceStatus.SENT.value, 0) + counts.get(InvoiceStatus.OVERDUE.value, 0))


__all__ = [
    "AGING_BUCKETS",
    "in_window",
    "effective_status_counts",
    "effective_status_amounts",
    "payment_days",
    "aging_buckets",
    "invoice_analytics",
    "overdue_count",
    "outstanding_count",
]
