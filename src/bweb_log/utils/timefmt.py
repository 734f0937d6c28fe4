"""Human readable durations for request timings."""

from __future__ import annotations

__all__ = ["TIME_UNITS", "format_time"]

from typing import Literal

TimeUnit = Literal["ns", "us", "ms", "s"]

# Nanoseconds per unit
TIME_UNITS: dict[str, int] = {
    "ns": 1,
    "us": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
}


def format_time(time_ns: int, unit: TimeUnit = "s", precision: int = 2) -> str:
    """Format a nanosecond duration in ``unit`` with truncated decimals.

    Digits past ``precision`` are truncated rather than rounded, and a
    whole number of units prints without decimals.

    Examples:
        >>> format_time(1_250_000, "ms")
        '1.25ms'
        >>> format_time(3_000_000_000, "s")
        '3s'
        >>> format_time(40_000, "ms")
        '0.04ms'
    """
    factor = TIME_UNITS[unit]
    whole, rest = divmod(time_ns, factor)
    fraction = rest * 10**precision // factor

    if whole and not fraction:
        return f"{whole}{unit}"

    return f"{whole}.{fraction:0{precision}d}{unit}"
