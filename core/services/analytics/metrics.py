from __future__ import annotations

from datetime import date

from core.domain.normalize import coerce_amount as safe_amount


def utilization_percent(spent: float, budget: float) -> float:
    budget = safe_amount(budget)
    if budget <= 0:
        return 0.0
    return safe_amount(spent) / budget * 100.0


def variance_percent(spent: float, budget: float) -> float:
    """Positive means over budget."""
    budget = safe_amount(budget)
    if budget <= 0:
        return 0.0
    return (safe_amount(spent) - budget) / budget * 100.0


def efficiency(expense_count: int, budget: float) -> float:
    # Transactions per 1000 budget units; only meaningful for relative comparison.
    budget = safe_amount(budget)
    if budget <= 0:
        return 0.0
    return safe_amount(expense_count) / budget * 1000.0


def average_amount(total: float, count: int) -> float:
    if count <= 0:
        return 0.0
    return safe_amount(total) / count


def completion_rate(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return completed / total * 100.0


def on_time_delivery_rate(completed_on_time: int, completed: int) -> float:
    if completed <= 0:
        return 0.0
    return completed_on_time / completed * 100.0


def budget_accuracy(variance: float) -> float:
    return max(0.0, 100.0 - abs(variance))


def change_percent(current: float, previous: float) -> float:
    previous = safe_amount(previous)
    if previous <= 0:
        return 0.0
    return (safe_amount(current) - previous) / previous * 100.0


def clamp_percent(value: float) -> float:
    """Display helper for progress-bar style values."""
    return min(100.0, max(0.0, value))


def months_in_window(start: date, end: date) -> float:
    days = abs((end - start).days) + 1
    return max(1.0, days / 30.0)


__all__ = [
    "safe_amount",
    "utilization_percent",
    "variance_percent",
    "efficiency",
    "average_amount",
    "completion_rate",
    "on_time_delivery_rate",
    "budget_accuracy",
    "change_percent",
    "clamp_percent",
    "months_in_window",
]
