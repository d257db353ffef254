from __future__ import annotations

import logging
from calendar import monthrange
from datetime import date, timedelta
from typing import Any, Optional, Tuple, Union

from core.domain.normalize import coerce_date
from core.exceptions import ValidationError
from core.services.analytics.models import DateWindow

logger = logging.getLogger(__name__)

DEFAULT_TREND_WINDOW = 6

_WINDOW_TOKENS = {
    "3m": 3,
    "6m": 6,
    "12m": 12,
    "1y": 12,
    "24m": 24,
    "2y": 24,
}

_PRESET_ALIASES = {
    "last-month": "last-30-days",
    "last-quarter": "last-3-months",
}

DATE_PRESETS = (
    "last-7-days",
    "last-30-days",
    "last-month",
    "last-3-months",
    "last-quarter",
    "last-year",
    "current-month",
    "current-quarter",
    "current-year",
)

WindowSpec = Union[str, Tuple[Any, Any], DateWindow, None]


def month_bounds(anchor: date) -> tuple[str, date, date]:
    last_day = monthrange(anchor.year, anchor.month)[1]
    start = date(anchor.year, anchor.month, 1)
    end = date(anchor.year, anchor.month, last_day)
    return f"{anchor.year}-{anchor.month:02d}", start, end


def shift_months(anchor: date, months: int) -> date:
    """First day of the month `months` away from the anchor's month."""
    index = anchor.year * 12 + (anchor.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def _minus_months(anchor: date, months: int) -> date:
    first = shift_months(anchor, -months)
    last_day = monthrange(first.year, first.month)[1]
    return date(first.year, first.month, min(anchor.day, last_day))


def normalize_window(value: Any, default: int = DEFAULT_TREND_WINDOW) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value if value > 0 else default
    token = str(value or "").strip().lower()
    if token in _WINDOW_TOKENS:
        return _WINDOW_TOKENS[token]
    if token.isdigit() and int(token) > 0:
        return int(token)
    logger.debug("Invalid trend window %r, falling back to %s", value, default)
    return default


def _preset_window(preset: str, as_of: date) -> DateWindow:
    token = (preset or "").strip().lower()
    token = _PRESET_ALIASES.get(token, token)
    if token == "last-7-days":
        return DateWindow(as_of - timedelta(days=7), as_of)
    if token == "last-30-days":
        return DateWindow(as_of - timedelta(days=30), as_of)
    if token == "last-3-months":
        return DateWindow(_minus_months(as_of, 3), as_of)
    if token == "last-year":
        return DateWindow(_minus_months(as_of, 12), as_of)
    if token == "current-month":
        _, start, end = month_bounds(as_of)
        return DateWindow(start, end)
    if token == "current-quarter":
        first_month = ((as_of.month - 1) // 3) * 3 + 1
        start = date(as_of.year, first_month, 1)
        _, _, end = month_bounds(shift_months(start, 2))
        return DateWindow(start, end)
    if token == "current-year":
        return DateWindow(date(as_of.year, 1, 1), date(as_of.year, 12, 31))
    raise ValidationError(f"Unknown date preset: {preset!r}", code="UNKNOWN_DATE_PRESET")


def resolve_window(spec: WindowSpec, as_of: date) -> Optional[DateWindow]:
    """Turn a preset name or a (from, to) pair into a closed date window.

    None means "all records". Explicit bounds that are missing default to
    the open side (date.min / as_of); an inverted range is swapped.
    """
    if spec is None:
        return None
    if isinstance(spec, DateWindow):
        window = spec
    elif isinstance(spec, str):
        return _preset_window(spec, as_of)
    else:
        try:
            raw_start, raw_end = spec
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                f"Date window must be a preset or a (from, to) pair, got {spec!r}",
                code="INVALID_DATE_WINDOW",
            ) from exc
        start = coerce_date(raw_start) or date.min
        end = coerce_date(raw_end) or as_of
        window = DateWindow(start, end)

    if window.start > window.end:
        logger.debug("Swapping inverted date window %s..%s", window.start, window.end)
        return DateWindow(window.end, window.start)
    return window


def previous_window(window: DateWindow) -> Optional[DateWindow]:
    """Equal-length span immediately before the given window."""
    length = window.end - window.start
    if (window.start - date.min) <= length:
        return None
    end = window.start - timedelta(days=1)
    return DateWindow(end - length, end)


__all__ = [
    "DEFAULT_TREND_WINDOW",
    "DATE_PRESETS",
    "month_bounds",
    "shift_months",
    "normalize_window",
    "resolve_window",
    "previous_window",
]
