"""Run one size check: measure, compare against the store, re-baseline."""
from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from .evaluator import evaluate
from .logger import LOGGER_NAME, log_event
from .models import CheckResult, CheckSpec, Measurement
from .state_store import StateStore

LOGGER = logging.getLogger(f"{LOGGER_NAME}.checker")


class TargetError(Exception):
    """Raised when the monitored file cannot be measured."""


def measure(path: str | os.PathLike[str]) -> int:
    """Return the size in bytes of the regular file at *path*."""

    target = Path(path)
    try:
        stat_result = target.stat()
    except FileNotFoundError as exc:
        raise TargetError(f"File does not exist: {target}") from exc
    except OSError as exc:
        raise TargetError(f"Cannot stat {target}: {exc}") from exc
    if not stat.S_ISREG(stat_result.st_mode):
        raise TargetError(f"Not a regular file: {target}")
    return stat_result.st_size


def run_check(
    path: str | os.PathLike[str],
    spec: CheckSpec,
    store: StateStore,
    *,
    logger: logging.Logger | None = None,
) -> CheckResult:
    """Evaluate *spec* for *path* and record the new size in *store*.

    The store is updated whatever the verdict, so each run compares only
    against the run before it. A path without history compares equal to
    itself. Nothing is written when the file cannot be measured.
    """

    logger = logger or LOGGER
    key = os.path.abspath(os.fspath(path))
    new_size = measure(key)
    previous = store.get(key)
    old_size = new_size if previous is None else previous

    result = evaluate(Measurement(old_size_bytes=old_size, new_size_bytes=new_size), spec)
    store.put(key, new_size)

    log_event(
        logger,
        level=logging.INFO,
        action="check.result",
        message=result.message,
        path=key,
        extra={
            "check": spec.kind.value,
            "unit": spec.unit.value,
            "threshold": str(spec.threshold),
            "first_run": previous is None,
            **result.to_dict(),
        },
    )
    return result


__all__ = ["TargetError", "measure", "run_check"]
