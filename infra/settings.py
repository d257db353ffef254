from __future__ import annotations

import logging
import os
from dataclasses import fields, replace
from typing import Mapping

from core.services.analytics.periods import DATE_PRESETS, normalize_window
from core.services.analytics.settings import DEFAULT_SETTINGS, AnalyticsSettings

logger = logging.getLogger(__name__)

ENV_PREFIX = "DASH_ANALYTICS_"


def _parse_int(raw: str) -> int | None:
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value >= 0 else None


def _parse_float(raw: str) -> float | None:
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value >= 0 else None


def _parse_trend_window(raw: str) -> int | None:
    value = normalize_window(raw, default=0)
    return value or None


def _parse_preset(raw: str) -> str | None:
    token = raw.lower()
    return token if token in DATE_PRESETS else None


_PARSERS = {
    "trend_window": _parse_trend_window,
    "forecast_horizon_months": _parse_int,
    "pending_threshold": _parse_int,
    "budget_warning_percent": _parse_float,
    "top_categories": _parse_int,
    "fetch_workers": _parse_int,
    "default_preset": _parse_preset,
}


def load_analytics_settings(
    env: Mapping[str, str] | None = None,
    base: AnalyticsSettings = DEFAULT_SETTINGS,
) -> AnalyticsSettings:
    """Apply DASH_ANALYTICS_<FIELD> overrides on top of the defaults.

    Malformed values are logged and ignored.
    """
    source = os.environ if env is None else env
    overrides: dict[str, object] = {}
    for field in fields(AnalyticsSettings):
        key = f"{ENV_PREFIX}{field.name.upper()}"
        raw = (source.get(key) or "").strip()
        if not raw:
            continue
        value = _PARSERS[field.name](raw)
        if value is None:
            logger.warning("Ignoring invalid %s=%r", key, raw)
            continue
        overrides[field.name] = value
    return replace(base, **overrides) if overrides else base


__all__ = ["ENV_PREFIX", "load_analytics_settings"]
