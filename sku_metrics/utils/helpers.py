"""
Helper utilities
"""
import math
from typing import Any, Optional


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safely divide two numbers"""
    try:
        return numerator / denominator if denominator != 0 else default
    except (TypeError, ZeroDivisionError):
        return default


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce an API money/quantity value ("499.00", 499, None) to float."""
    if value is None or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    # NaN and +-inf would poison every sum they reach
    if not math.isfinite(result):
        return default
    return result


def to_int(value: Any, default: int = 0) -> int:
    """Coerce an API integer field to int."""
    number = to_float(value, default=float(default))
    return int(number)


def strip_order_prefix(value: Optional[Any]) -> str:
    """'#1001 ' -> '1001'. Shopify display names carry a leading '#'."""
    if value is None:
        return ""
    return str(value).strip().lstrip("#").strip()
