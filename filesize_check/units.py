"""Byte unit conversion and human readable size formatting."""
from __future__ import annotations

from decimal import ROUND_DOWN, Decimal

from .models import SizeUnit

_TWO_PLACES = Decimal("0.01")
_DISPLAY_ORDER = (SizeUnit.GIGABYTE, SizeUnit.MEGABYTE, SizeUnit.KILOBYTE)


def convert_delta(delta_bytes: int, unit: SizeUnit) -> int:
    """Convert *delta_bytes* to *unit*, truncating toward zero.

    Shrinkage keeps its sign: ``-1500`` bytes is ``-1`` kilobyte, not ``-2``.
    """

    magnitude = abs(delta_bytes) // unit.multiplier
    return -magnitude if delta_bytes < 0 else magnitude


def display_unit(size_bytes: int) -> SizeUnit:
    """Return the largest unit whose multiplier does not exceed *size_bytes*."""

    magnitude = abs(size_bytes)
    for unit in _DISPLAY_ORDER:
        if magnitude >= unit.multiplier:
            return unit
    return SizeUnit.BYTE


def format_size(size_bytes: int) -> str:
    unit = display_unit(size_bytes)
    if unit is SizeUnit.BYTE:
        return f"{size_bytes} {unit.label}"
    value = (Decimal(size_bytes) / unit.multiplier).quantize(_TWO_PLACES, rounding=ROUND_DOWN)
    return f"{value} {unit.label}"


def format_percent(value: Decimal) -> str:
    return f"{value.quantize(_TWO_PLACES, rounding=ROUND_DOWN)}%"


def format_threshold(threshold: Decimal, unit: SizeUnit) -> str:
    if unit is SizeUnit.PERCENT:
        return f"{threshold:f}%"
    return f"{threshold:f} {unit.label}"


__all__ = [
    "convert_delta",
    "display_unit",
    "format_percent",
    "format_size",
    "format_threshold",
]
