"""Compact human-readable formatting of durations."""

from __future__ import annotations

_MICROSECOND = 1_000
_MILLISECOND = 1_000 * _MICROSECOND
_SECOND = 1_000 * _MILLISECOND
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE


def _trunc_div(value: int, unit: int) -> int:
    quotient = abs(value) // unit
    return quotient if value >= 0 else -quotient


def _trunc_mod(value: int, unit: int) -> int:
    return value - unit * _trunc_div(value, unit)


def normalize_duration(nanoseconds: int) -> str:
    """Format a duration in nanoseconds as e.g. ``1h30m15s`` or ``500µs``.

    Zero-valued components are left out; a zero duration yields ``0ns``.
    """
    ns = int(nanoseconds)
    parts = [
        (_trunc_div(ns, _HOUR), "h"),
        (_trunc_mod(_trunc_div(ns, _MINUTE), 60), "m"),
        (_trunc_mod(_trunc_div(ns, _SECOND), 60), "s"),
        (_trunc_mod(_trunc_div(ns, _MILLISECOND), 1000), "ms"),
        (_trunc_mod(_trunc_div(ns, _MICROSECOND), 1000), "\u00b5s"),
    ]
    text = "".join(f"{amount}{unit}" for amount, unit in parts if amount > 0)
    rest = _trunc_mod(ns, _MICROSECOND)
    if rest > 0 or not text:
        text += f"{rest}ns"
    return text