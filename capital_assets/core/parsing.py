from __future__ import annotations

import math
import re
from typing import Any, Optional

_NON_NUMERIC = re.compile(r"[^0-9eE.+-]+")


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        return _NON_NUMERIC.sub("", value)
    return value


def parse_float(value: Any, default: float = 0.0) -> float:
    """Lenient float coercion; formatting like "$1,200" or "5%" is stripped."""
    if value is None or isinstance(value, bool):
        return default
    try:
        parsed = float(_clean(value))
    except (TypeError, ValueError):
        return default
    if math.isnan(parsed) or math.isinf(parsed):
        return default
    return parsed


def parse_int(value: Any, default: int = 0) -> int:
    parsed = parse_float(value, default=float("nan"))
    if math.isnan(parsed):
        return default
    return int(parsed)


def parse_optional_float(value: Any) -> Optional[float]:
    """Return None for blank/invalid input instead of a default."""
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return None
    parsed = parse_float(value, default=float("nan"))
    return None if math.isnan(parsed) else parsed


def parse_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)
