"""Size-change predicates and the messages that explain them."""
from __future__ import annotations

from .models import CheckKind, CheckResult, CheckSpec, Measurement, SizeUnit, Verdict
from .units import convert_delta, format_percent, format_size, format_threshold


def evaluate(measurement: Measurement, spec: CheckSpec) -> CheckResult:
    """Apply *spec* to *measurement* and return the verdict with its message."""

    if spec.kind is CheckKind.CHANGE:
        return _check_change(measurement)
    if spec.kind is CheckKind.SAME:
        return _check_same(measurement)
    if spec.kind is CheckKind.GROW:
        return _check_grow(measurement, spec)
    if spec.kind is CheckKind.SHRINK:
        return _check_shrink(measurement, spec)
    raise ValueError(f"Unsupported check kind: {spec.kind!r}")


def _check_change(measurement: Measurement) -> CheckResult:
    if measurement.delta_bytes != 0:
        return CheckResult(measurement, Verdict.CHANGED, _describe_change(measurement))
    return CheckResult(measurement, Verdict.PASS, _describe_same(measurement))


def _check_same(measurement: Measurement) -> CheckResult:
    if measurement.delta_bytes == 0:
        return CheckResult(measurement, Verdict.UNCHANGED, _describe_same(measurement))
    return CheckResult(measurement, Verdict.PASS, _describe_change(measurement))


def _check_grow(measurement: Measurement, spec: CheckSpec) -> CheckResult:
    if spec.unit is SizeUnit.PERCENT:
        exceeded = measurement.percent_change > spec.threshold
    else:
        exceeded = convert_delta(measurement.delta_bytes, spec.unit) >= spec.threshold

    limit = format_threshold(spec.threshold, spec.unit)
    if exceeded:
        message = f"{_describe_change(measurement)}, growth exceeds the limit of {limit}"
        return CheckResult(measurement, Verdict.GREW, message)
    message = f"{_describe_change(measurement)}, growth within the limit of {limit}"
    return CheckResult(measurement, Verdict.PASS, message)


def _check_shrink(measurement: Measurement, spec: CheckSpec) -> CheckResult:
    if spec.unit is SizeUnit.PERCENT:
        exceeded = -measurement.percent_change > spec.threshold
    else:
        exceeded = convert_delta(measurement.delta_bytes, spec.unit) <= -spec.threshold

    limit = format_threshold(spec.threshold, spec.unit)
    if exceeded:
        message = f"{_describe_change(measurement)}, shrinkage exceeds the limit of {limit}"
        return CheckResult(measurement, Verdict.SHRANK, message)
    message = f"{_describe_change(measurement)}, shrinkage within the limit of {limit}"
    return CheckResult(measurement, Verdict.PASS, message)


def _describe_change(measurement: Measurement) -> str:
    delta = measurement.delta_bytes
    if delta == 0:
        return _describe_same(measurement)
    direction = "grew" if delta > 0 else "shrank"
    if measurement.old_size_bytes == 0:
        percent = "n/a"
    else:
        percent = format_percent(measurement.percent_change)
    return (
        f"file {direction} by {format_size(abs(delta))} ({percent}) "
        f"from {format_size(measurement.old_size_bytes)} "
        f"to {format_size(measurement.new_size_bytes)}"
    )


def _describe_same(measurement: Measurement) -> str:
    return f"file size unchanged at {format_size(measurement.new_size_bytes)}"


__all__ = ["evaluate"]
