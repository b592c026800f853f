"""Core dataclasses and enums shared across filesize_check modules."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, IntEnum


class ExitCode(IntEnum):
    """Process exit codes reported to the monitoring supervisor."""

    OK = 0
    CHANGED = 1
    UNCHANGED = 2
    GREW = 3
    SHRANK = 4
    SYNTAX_ERROR = 5
    OTHER_ERROR = 6
    HELP = 7


class CheckKind(str, Enum):
    """Predicates a single invocation may evaluate."""

    CHANGE = "change"
    SAME = "same"
    GROW = "grow"
    SHRINK = "shrink"


class SizeUnit(str, Enum):
    """Threshold units; every unit except ``PERCENT`` is a byte multiple."""

    PERCENT = "percent"
    BYTE = "byte"
    KILOBYTE = "kilobyte"
    MEGABYTE = "megabyte"
    GIGABYTE = "gigabyte"

    @property
    def multiplier(self) -> int:
        if self is SizeUnit.PERCENT:
            raise ValueError("percent has no byte multiplier")
        return _MULTIPLIERS[self]

    @property
    def label(self) -> str:
        return _LABELS[self]


_MULTIPLIERS = {
    SizeUnit.BYTE: 1,
    SizeUnit.KILOBYTE: 1024,
    SizeUnit.MEGABYTE: 1024 ** 2,
    SizeUnit.GIGABYTE: 1024 ** 3,
}

_LABELS = {
    SizeUnit.PERCENT: "%",
    SizeUnit.BYTE: "bytes",
    SizeUnit.KILOBYTE: "KB",
    SizeUnit.MEGABYTE: "MB",
    SizeUnit.GIGABYTE: "GB",
}


@dataclass(frozen=True, slots=True)
class CheckSpec:
    """The single predicate requested for this invocation."""

    kind: CheckKind = CheckKind.CHANGE
    unit: SizeUnit = SizeUnit.PERCENT
    threshold: Decimal = Decimal(0)

    def __post_init__(self) -> None:
        if self.threshold < 0:
            raise ValueError(f"threshold must be non-negative, got {self.threshold}")

    @classmethod
    def default(cls) -> "CheckSpec":
        return cls(kind=CheckKind.CHANGE)


@dataclass(frozen=True, slots=True)
class Measurement:
    """Old and new sizes of the monitored file for one run."""

    old_size_bytes: int
    new_size_bytes: int

    @property
    def delta_bytes(self) -> int:
        return self.new_size_bytes - self.old_size_bytes

    @property
    def percent_change(self) -> Decimal:
        """Signed percentage change relative to the old size.

        An old size of zero yields ``0`` rather than dividing by zero, so
        percent-based checks never fire on growth from an empty file. The
        byte-unit checks still see the full delta in that case.
        """

        if self.old_size_bytes == 0:
            return Decimal(0)
        return Decimal(self.new_size_bytes) * 100 / Decimal(self.old_size_bytes) - 100


class Verdict(Enum):
    """Outcome of a check, mapped onto an exit code."""

    PASS = "pass"
    CHANGED = "changed"
    UNCHANGED = "unchanged"
    GREW = "grew"
    SHRANK = "shrank"

    @property
    def exit_code(self) -> ExitCode:
        return _VERDICT_CODES[self]


_VERDICT_CODES = {
    Verdict.PASS: ExitCode.OK,
    Verdict.CHANGED: ExitCode.CHANGED,
    Verdict.UNCHANGED: ExitCode.UNCHANGED,
    Verdict.GREW: ExitCode.GREW,
    Verdict.SHRANK: ExitCode.SHRANK,
}


@dataclass(slots=True)
class CheckResult:
    """Verdict plus the explanation printed on standard output."""

    measurement: Measurement
    verdict: Verdict
    message: str

    @property
    def passed(self) -> bool:
        return self.verdict is Verdict.PASS

    @property
    def exit_code(self) -> ExitCode:
        return self.verdict.exit_code

    def render(self) -> str:
        """Serialize the result as the single ``key=value;`` output line."""

        return (
            f"new_size_bytes={self.measurement.new_size_bytes};"
            f"old_size_bytes={self.measurement.old_size_bytes};"
            f"size_difference_bytes={self.measurement.delta_bytes};"
            f"message={self.message}"
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "new_size_bytes": self.measurement.new_size_bytes,
            "old_size_bytes": self.measurement.old_size_bytes,
            "size_difference_bytes": self.measurement.delta_bytes,
            "verdict": self.verdict.value,
            "message": self.message,
        }


__all__ = [
    "CheckKind",
    "CheckResult",
    "CheckSpec",
    "ExitCode",
    "Measurement",
    "SizeUnit",
    "Verdict",
]
