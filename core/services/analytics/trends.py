from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar

from core.domain.enums import TrendDirection
from core.domain.normalize import coerce_amount
from core.services.analytics.aggregation import aggregate, sorted_by_total, with_shares
from core.services.analytics.metrics import average_amount, change_percent
from core.services.analytics.models import (
    BudgetActualPoint,
    DateWindow,
    ExpenseFrequencyPoint,
    MonthlyBucket,
    SegmentTrendRow,
    SpendForecast,
)
from core.services.analytics.periods import (
    DEFAULT_TREND_WINDOW,
    month_bounds,
    normalize_window,
    previous_window,
    shift_months,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

VELOCITY_BUCKETS = 3
DEFAULT_FORECAST_HORIZON = 3
TREND_THRESHOLD_PERCENT = 10.0

_MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def month_label(anchor: date) -> str:
    return f"{_MONTH_LABELS[anchor.month - 1]} {anchor.year % 100:02d}"


def month_key(value: Optional[date]) -> Optional[str]:
    if value is None:
        return None
    return f"{value.year}-{value.month:02d}"


def build_monthly_buckets(
    records: Iterable[T],
    *,
    as_of: date,
    date_of: Callable[[T], Optional[date]],
    amount_of: Callable[[T], Any],
    window: Any = DEFAULT_TREND_WINDOW,
) -> list[MonthlyBucket]:
    """Exactly `window` calendar months ending with the month of `as_of`, oldest first.

    Records without a usable date are left out of every bucket.
    """
    months = normalize_window(window)
    records = list(records)
    dated = [record for record in records if date_of(record) is not None]
    if len(dated) < len(records):
        logger.debug("Skipping %s undated records for monthly buckets", len(records) - len(dated))
    sums = aggregate(dated, lambda record: month_key(date_of(record)), amount_of)

    out: list[MonthlyBucket] = []
    for offset in range(months - 1, -1, -1):
        anchor = shift_months(as_of, -offset)
        period_key, start, end = month_bounds(anchor)
        bucket = sums.get(period_key)
        out.append(
            MonthlyBucket(
                period_key=period_key,
                label=month_label(start),
                period_start=start,
                period_end=end,
                total=bucket.total if bucket else 0.0,
                count=bucket.count if bucket else 0,
            )
        )
    return out


def merge_monthly_buckets(*series: Sequence[MonthlyBucket]) -> list[MonthlyBucket]:
    """Sum bucket series by period key; output ordered by period start."""
    merged: dict[str, MonthlyBucket] = {}
    for buckets in series:
        for bucket in buckets:
            existing = merged.get(bucket.period_key)
            if existing is None:
                merged[bucket.period_key] = bucket
                continue
            merged[bucket.period_key] = MonthlyBucket(
                period_key=bucket.period_key,
                label=existing.label,
                period_start=existing.period_start,
                period_end=existing.period_end,
                total=existing.total + bucket.total,
                count=existing.count + bucket.count,
            )
    return sorted(merged.values(), key=lambda bucket: bucket.period_start)


def budget_vs_actual(buckets: Sequence[MonthlyBucket], total_budget: float) -> list[BudgetActualPoint]:
    # Flat monthly allocation, no seasonal adjustment.
    monthly_budget = coerce_amount(total_budget) / 12.0
    return [
        BudgetActualPoint(
            period_key=bucket.period_key,
            label=bucket.label,
            budget=monthly_budget,
            spent=bucket.total,
            variance=bucket.total - monthly_budget,
        )
        for bucket in buckets
    ]


def expense_frequency(buckets: Sequence[MonthlyBucket]) -> list[ExpenseFrequencyPoint]:
    return [
        ExpenseFrequencyPoint(
            period_key=bucket.period_key,
            label=bucket.label,
            count=bucket.count,
            average_amount=average_amount(bucket.total, bucket.count),
        )
        for bucket in buckets
    ]


def spend_velocity(buckets: Sequence[MonthlyBucket], span: int = VELOCITY_BUCKETS) -> float:
    recent = list(buckets)[-span:] if span > 0 else []
    if not recent:
        return 0.0
    return sum(bucket.total for bucket in recent) / len(recent)


def build_forecast(
    buckets: Sequence[MonthlyBucket],
    total_spent: float,
    *,
    horizon_months: int = DEFAULT_FORECAST_HORIZON,
) -> SpendForecast:
    velocity = spend_velocity(buckets)
    horizon = max(0, int(horizon_months))
    return SpendForecast(
        avg_monthly_velocity=velocity,
        forecasted_spend=coerce_amount(total_spent) + velocity * horizon,
        horizon_months=horizon,
    )


def seasonal_variance(buckets: Sequence[MonthlyBucket], velocity: float) -> float:
    if not buckets or velocity <= 0:
        return 0.0
    totals = [bucket.total for bucket in buckets]
    return (max(totals) - min(totals)) / velocity * 100.0


def trend_direction(current: float, previous: float) -> tuple[Optional[float], TrendDirection]:
    """Relative change and its direction; no previous spend means no measurable trend."""
    if coerce_amount(previous) <= 0:
        return None, TrendDirection.STABLE
    change = change_percent(current, previous)
    if change > TREND_THRESHOLD_PERCENT:
        return change, TrendDirection.UP
    if change < -TREND_THRESHOLD_PERCENT:
        return change, TrendDirection.DOWN
    return change, TrendDirection.STABLE


def _sum_in(records: Iterable[T], window: Optional[DateWindow], date_of, amount_of) -> float:
    if window is None:
        return 0.0
    return sum(coerce_amount(amount_of(record)) for record in records if window.contains(date_of(record)))


def segment_trends(
    records: Sequence[T],
    *,
    key_of: Callable[[T], Any],
    amount_of: Callable[[T], Any],
    date_of: Callable[[T], Optional[date]],
    period_start: date,
    as_of: date,
    limit: Optional[int] = None,
    fallback: str = "Other",
) -> list[SegmentTrendRow]:
    """Per-segment totals with a period-over-period direction.

    The current period runs from `period_start` to `as_of`; the previous
    period is the span of equal length right before it.
    """
    current_window = DateWindow(min(period_start, as_of), max(period_start, as_of))
    prior_window = previous_window(current_window)

    groups: dict[str, list[T]] = {}
    for record in records:
        raw_key = key_of(record)
        key = str(raw_key).strip() if raw_key is not None else ""
        groups.setdefault(key or fallback, []).append(record)

    buckets = aggregate(records, key_of, amount_of, fallback=fallback)
    ordered = sorted_by_total(buckets)
    if limit is not None:
        ordered = ordered[: max(0, limit)]
    grand_total = sum(bucket.total for bucket in buckets.values())

    out: list[SegmentTrendRow] = []
    for share in with_shares(ordered, grand_total):
        members = groups.get(share.key, [])
        current = _sum_in(members, current_window, date_of, amount_of)
        previous = _sum_in(members, prior_window, date_of, amount_of)
        change, direction = trend_direction(current, previous)
        out.append(
            SegmentTrendRow(
                key=share.key,
                current=current,
                previous=previous,
                total=share.total,
                percentage=share.percentage,
                change_percent=change,
                direction=direction,
            )
        )
    return out


def month_over_month(
    records: Iterable[T],
    *,
    as_of: date,
    date_of: Callable[[T], Optional[date]],
    amount_of: Callable[[T], Any],
) -> tuple[float, float]:
    """Totals for the calendar month containing `as_of` and the one before."""
    current_key = month_key(as_of)
    previous_key = month_key(shift_months(as_of, -1))
    current = previous = 0.0
    for record in records:
        key = month_key(date_of(record))
        if key == current_key:
            current += coerce_amount(amount_of(record))
        elif key == previous_key:
            previous += coerce_amount(amount_of(record))
    return current, previous


def month_over_month_change(
    records: Iterable[T],
    *,
    as_of: date,
    date_of: Callable[[T], Optional[date]],
    amount_of: Callable[[T], Any],
) -> float:
    current, previous = month_over_month(records, as_of=as_of, date_of=date_of, amount_of=amount_of)
    return change_percent(current, previous)


__all__ = [
    "VELOCITY_BUCKETS",
    "TREND_THRESHOLD_PERCENT",
    "month_label",
    "month_key",
    "build_monthly_buckets",
    "merge_monthly_buckets",
    "budget_vs_actual",
    "expense_frequency",
    "spend_velocity",
    "build_forecast",
    "seasonal_variance",
    "trend_direction",
    "segment_trends",
    "month_over_month",
    "month_over_month_change",
]
