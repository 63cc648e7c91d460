from typing import Any


def fmt_percent(x):
    try:
        return f"{float(x):.1f}%"
    except Exception:
        return "N/A"


def fmt_ticks(ticks: Any) -> str:
    """
    Format a tick counter with thousands separators.
    """
    try:
        return f"{int(ticks):,}"
    except (TypeError, ValueError):
        return "N/A"


def share_percent(value: Any, total: Any):
    """Percentage of `value` in `total`, or None when total is zero."""
    try:
        total = float(total)
        if total <= 0:
            return None
        return float(value) * 100.0 / total
    except (TypeError, ValueError):
        return None
