"""
Display formatting. The only place a non-finite value becomes a placeholder.
"""

import math

PLACEHOLDER = "—"


def _to_float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _digits(digits) -> int:
    try:
        return min(6, max(0, int(digits)))
    except (TypeError, ValueError):
        return 2


def format_number(value, digits: int = 2) -> str:
    """Fixed-point with 0-6 decimals, placeholder for non-numeric values"""
    n = _to_float(value)
    if not math.isfinite(n):
        return PLACEHOLDER
    return f"{n:.{_digits(digits)}f}"


def format_number_or_zero(value, digits: int = 2) -> str:
    """Like format_number but non-numeric values print as zero"""
    n = _to_float(value if value is not None else 0)
    if not math.isfinite(n):
        n = 0.0
    return f"{n:.{_digits(digits)}f}"


def format_percent(p: float) -> str:
    """Whole percent, placeholder if not finite"""
    n = _to_float(p)
    if not math.isfinite(n):
        return PLACEHOLDER
    return f"{round(n * 100)}%"


def format_days(days: float) -> str:
    n = _to_float(days)
    if not math.isfinite(n):
        return PLACEHOLDER
    return f"{int(n)} days"
