"""filesize_check package exports."""

from .checker import TargetError, run_check
from .cli import main as cli_main
from .evaluator import evaluate
from .models import CheckKind, CheckResult, CheckSpec, ExitCode, Measurement, SizeUnit, Verdict
from .state_store import FileStateStore, MemoryStateStore, StateStoreError

__all__ = [
    "cli_main",
    "CheckKind",
    "CheckResult",
    "CheckSpec",
    "ExitCode",
    "FileStateStore",
    "Measurement",
    "MemoryStateStore",
    "SizeUnit",
    "StateStoreError",
    "TargetError",
    "Verdict",
    "evaluate",
    "run_check",
]
