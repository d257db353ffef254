from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, TypeVar

from core.domain.normalize import coerce_amount
from core.services.analytics.models import AggregateBucket, ShareRow

T = TypeVar("T")

UNASSIGNED = "Unassigned"


def aggregate(
    records: Iterable[T],
    key_of: Callable[[T], Any],
    amount_of: Callable[[T], Any],
    *,
    fallback: str = UNASSIGNED,
) -> dict[str, AggregateBucket]:
    """Group records by key and sum amount/count per group.

    Output keeps the insertion order of each key's first occurrence.
    """
    totals: dict[str, list] = {}
    for record in records:
        raw_key = key_of(record)
        key = str(raw_key).strip() if raw_key is not None else ""
        key = key or fallback
        bucket = totals.get(key)
        if bucket is None:
            bucket = [0.0, 0]
            totals[key] = bucket
        bucket[0] += coerce_amount(amount_of(record))
        bucket[1] += 1

    return {
        key: AggregateBucket(key=key, total=float(total), count=int(count))
        for key, (total, count) in totals.items()
    }


def sorted_by_total(buckets: Mapping[str, AggregateBucket]) -> list[AggregateBucket]:
    rows = list(buckets.values())
    rows.sort(key=lambda row: (-(row.total), row.key.lower()))
    return rows


def top_n(buckets: Mapping[str, AggregateBucket], n: int) -> list[AggregateBucket]:
    if n <= 0:
        return []
    return sorted_by_total(buckets)[:n]


def with_shares(rows: Iterable[AggregateBucket], grand_total: float) -> list[ShareRow]:
    grand_total = coerce_amount(grand_total)
    out: list[ShareRow] = []
    for row in rows:
        percentage = (row.total / grand_total * 100.0) if grand_total > 0 else 0.0
        out.append(ShareRow(key=row.key, total=row.total, count=row.count, percentage=percentage))
    return out


def merge_aggregates(*maps: Mapping[str, AggregateBucket]) -> dict[str, AggregateBucket]:
    """Additive union on key; first-seen key order is preserved."""
    merged: dict[str, AggregateBucket] = {}
    for buckets in maps:
        for key, bucket in buckets.items():
            existing = merged.get(key)
            if existing is None:
                merged[key] = AggregateBucket(key=key, total=bucket.total, count=bucket.count)
            else:
                merged[key] = AggregateBucket(
                    key=key,
                    total=existing.total + bucket.total,
                    count=existing.count + bucket.count,
                )
    return merged


def totals_of(buckets: Mapping[str, AggregateBucket]) -> dict[str, float]:
    return {key: bucket.total for key, bucket in buckets.items()}


__all__ = [
    "UNASSIGNED",
    "aggregate",
    "sorted_by_total",
    "top_n",
    "with_shares",
    "merge_aggregates",
    "totals_of",
]
