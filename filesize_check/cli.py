"""Command line interface for filesize_check."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path

from .checker import TargetError, run_check
from .config import ConfigError, apply_overrides, load_config
from .logger import configure_logging, log_event
from .models import CheckKind, CheckSpec, ExitCode, SizeUnit
from .state_store import FileStateStore, StateStoreError

_DESCRIPTION = "Report whether a file's size changed since the previous run."
_EPILOG = """\
exit codes:
  0  check passed
  1  file changed size (--change)
  2  file size unchanged (--same)
  3  file grew beyond the threshold (--grow*)
  4  file shrank beyond the threshold (--shrink*)
  5  invalid arguments
  6  other error (missing file, unreadable state)
  7  help shown
"""

_UNIT_FLAGS = (
    ("b", "byte", SizeUnit.BYTE),
    ("kb", "kilobyte", SizeUnit.KILOBYTE),
    ("mb", "megabyte", SizeUnit.MEGABYTE),
    ("gb", "gigabyte", SizeUnit.GIGABYTE),
)


class UsageError(Exception):
    """Raised for invalid or conflicting command line arguments."""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
        if args.help:
            parser.print_help()
            return ExitCode.HELP
        if args.path is None:
            raise UsageError("the following arguments are required: path")
    except UsageError as exc:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {exc}", file=sys.stderr)
        return ExitCode.SYNTAX_ERROR

    try:
        config = apply_overrides(
            load_config(args.config),
            state_file=args.state_file,
            log_level=args.log_level,
            log_file=args.log_file,
        )
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return ExitCode.OTHER_ERROR

    try:
        logger = configure_logging(config.log_file, level=config.log_level_value)
    except OSError as exc:
        print(f"ERROR: Cannot open log file {config.log_file}: {exc}", file=sys.stderr)
        return ExitCode.OTHER_ERROR
    store = FileStateStore(config.state_file, logger=logger)

    if args.show_state:
        return _show_state(store, args.path, logger)

    spec: CheckSpec = args.check or CheckSpec.default()
    try:
        result = run_check(args.path, spec, store, logger=logger)
    except (TargetError, StateStoreError) as exc:
        log_event(logger, level=logging.ERROR, action="check.error", message=str(exc), path=args.path)
        print(f"ERROR: {exc}", file=sys.stderr)
        return ExitCode.OTHER_ERROR

    print(result.render())
    return result.exit_code


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="check-filesize",
        description=_DESCRIPTION,
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument("path", nargs="?", help="File whose size is monitored")
    parser.add_argument("-h", "--help", action="store_true", help="Show this help message and exit")

    checks = parser.add_argument_group("checks (at most one, default --change)")
    group = checks.add_mutually_exclusive_group()
    parser.set_defaults(check=None)
    group.add_argument(
        "--change",
        dest="check",
        action="store_const",
        const=CheckSpec(CheckKind.CHANGE),
        help="Fail if the size changed",
    )
    group.add_argument(
        "--same",
        dest="check",
        action="store_const",
        const=CheckSpec(CheckKind.SAME),
        help="Fail if the size did not change",
    )
    group.add_argument(
        "--grow",
        dest="check",
        action="store_const",
        const=CheckSpec(CheckKind.GROW),
        help="Fail if the file grew at all",
    )
    group.add_argument(
        "--shrink",
        dest="check",
        action="store_const",
        const=CheckSpec(CheckKind.SHRINK),
        help="Fail if the file shrank at all",
    )
    for kind in (CheckKind.GROW, CheckKind.SHRINK):
        group.add_argument(
            f"--{kind.value}per",
            f"--{kind.value}-by-percent",
            dest="check",
            metavar="PERCENT",
            type=_threshold_type(kind, SizeUnit.PERCENT),
            help=f"Fail if the file {_verb(kind)} by more than PERCENT percent",
        )
        for short, long, unit in _UNIT_FLAGS:
            group.add_argument(
                f"--{kind.value}{short}",
                f"--{kind.value}-by-{long}",
                dest="check",
                metavar="N",
                type=_threshold_type(kind, unit),
                help=f"Fail if the file {_verb(kind)} by N {unit.label} or more",
            )

    options = parser.add_argument_group("options")
    options.add_argument("--state-file", type=Path, help="State file recording previous sizes")
    options.add_argument("--config", type=Path, help="YAML configuration file")
    options.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    options.add_argument("--log-file", type=Path, help="Write JSON logs to this rotating file")
    options.add_argument(
        "--show-state",
        action="store_true",
        help="Print the recorded size for the path without checking or updating it",
    )
    return parser


def _threshold_type(kind: CheckKind, unit: SizeUnit):
    def parse(raw: str) -> CheckSpec:
        try:
            value = Decimal(raw)
        except InvalidOperation:
            raise argparse.ArgumentTypeError(f"invalid number: {raw!r}") from None
        if not value.is_finite() or value < 0:
            raise argparse.ArgumentTypeError(f"threshold must be a non-negative number: {raw!r}")
        return CheckSpec(kind, unit, value)

    parse.__name__ = "threshold"
    return parse


def _verb(kind: CheckKind) -> str:
    return "grew" if kind is CheckKind.GROW else "shrank"


def _show_state(store: FileStateStore, path: str, logger: logging.Logger) -> int:
    key = os.path.abspath(path)
    try:
        recorded = {record.path: record.size_bytes for record in store.records()}
    except StateStoreError as exc:
        log_event(logger, level=logging.ERROR, action="state.error", message=str(exc), path=key)
        print(f"ERROR: {exc}", file=sys.stderr)
        return ExitCode.OTHER_ERROR
    if key not in recorded:
        print(f"ERROR: No recorded size for {key}", file=sys.stderr)
        return ExitCode.OTHER_ERROR
    print(f"{key}={recorded[key]}")
    return ExitCode.OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
