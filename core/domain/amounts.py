from __future__ import annotations

import logging
import math
from typing import Any

logger = logging.getLogger(__name__)


def coerce_amount(value: Any) -> float:
    """Finite, non-negative float; anything else becomes 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        logger.debug("Coercing non-numeric amount %r to 0", value)
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        logger.debug("Coercing invalid amount %r to 0", value)
        return 0.0
    return amount


def clean_amount_field(record: Any, name: str) -> None:
    """Coerce one amount attribute of a frozen dataclass in place."""
    object.__setattr__(record, name, coerce_amount(getattr(record, name)))


__all__ = ["coerce_amount", "clean_amount_field"]
