"""Persisted mapping from monitored file paths to their last known size.

The on-disk format is UTF-8 text with one ``<path>=<size_bytes>`` record
per line. Bytes that do not decode, such as non-UTF-8 file names, pass
through unchanged via ``surrogateescape``. The size is always the text
after the *last* ``=``, so paths that contain ``=`` round-trip unchanged.
Paths containing a newline cannot be represented and are rejected.
"""
from __future__ import annotations

import fcntl
import logging
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Protocol

from .logger import LOGGER_NAME, log_event

LOGGER = logging.getLogger(f"{LOGGER_NAME}.state")


class StateStoreError(Exception):
    """Raised when the store cannot be read or updated."""


@dataclass(frozen=True, slots=True)
class FileSizeRecord:
    """Last observed size of one monitored path."""

    path: str
    size_bytes: int

    def to_line(self) -> str:
        return f"{self.path}={self.size_bytes}"


class StateStore(Protocol):
    def get(self, path: str) -> int | None:
        ...

    def put(self, path: str, size_bytes: int) -> None:
        ...


class MemoryStateStore:
    """Dict-backed store for tests and embedding."""

    def __init__(self, records: dict[str, int] | None = None) -> None:
        self._records: dict[str, int] = dict(records or {})

    def get(self, path: str) -> int | None:
        return self._records.get(path)

    def put(self, path: str, size_bytes: int) -> None:
        _validate(path, size_bytes)
        self._records[path] = size_bytes

    def records(self) -> list[FileSizeRecord]:
        return [FileSizeRecord(path, size) for path, size in self._records.items()]


class FileStateStore:
    """Text file store shared by every invocation on the machine.

    Updates take an exclusive lock on ``<store>.lock`` for the whole
    read-modify-write and replace the store through an atomic rename, so
    concurrent checks of different paths never lose each other's records.
    """

    def __init__(self, store_path: str | os.PathLike[str], logger: logging.Logger | None = None) -> None:
        self.store_path = Path(store_path)
        self.lock_path = self.store_path.with_name(self.store_path.name + ".lock")
        self.logger = logger or LOGGER

    # -- public API -----------------------------------------------------
    def get(self, path: str) -> int | None:
        """Return the recorded size for *path*, or ``None`` when unknown."""

        size: int | None = None
        for entry in self._read_entries():
            if entry.record is not None and entry.record.path == path:
                size = entry.record.size_bytes
        return size

    def put(self, path: str, size_bytes: int) -> None:
        """Insert or overwrite the record for *path*.

        An existing record keeps its position in the file; a new one is
        appended. Every other line is written back untouched.
        """

        _validate(path, size_bytes)
        new_record = FileSizeRecord(path, size_bytes)
        with self._locked():
            entries = self._read_entries()
            lines: list[str] = []
            replaced = False
            for entry in entries:
                if entry.record is not None and entry.record.path == path:
                    if replaced:
                        continue
                    lines.append(new_record.to_line())
                    replaced = True
                else:
                    lines.append(entry.raw)
            if not replaced:
                lines.append(new_record.to_line())
            self._write_lines(lines)

        log_event(
            self.logger,
            level=logging.DEBUG,
            action="state.put",
            message=f"{'Updated' if replaced else 'Recorded'} size for {path}",
            path=path,
            extra={"bytes": size_bytes, "store": str(self.store_path)},
        )

    def records(self) -> list[FileSizeRecord]:
        """Return every parseable record in file order."""

        latest: dict[str, int] = {}
        for entry in self._read_entries():
            if entry.record is not None:
                latest[entry.record.path] = entry.record.size_bytes
        return [FileSizeRecord(path, size) for path, size in latest.items()]

    # -- helpers --------------------------------------------------------
    def _read_entries(self) -> list[_Entry]:
        if not self.store_path.parent.is_dir():
            raise StateStoreError(f"State directory does not exist: {self.store_path.parent}")
        try:
            text = self.store_path.read_text(encoding="utf-8", errors="surrogateescape")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StateStoreError(f"Cannot read state file {self.store_path}: {exc}") from exc

        entries: list[_Entry] = []
        for lineno, line in enumerate(text.split("\n"), start=1):
            if not line:
                continue
            record = _parse_line(line)
            if record is None:
                log_event(
                    self.logger,
                    level=logging.WARNING,
                    action="state.malformed",
                    message=f"Ignoring malformed line {lineno} in {self.store_path}",
                    extra={"line": line},
                )
            entries.append(_Entry(raw=line, record=record))
        return entries

    def _write_lines(self, lines: list[str]) -> None:
        payload = "".join(f"{line}\n" for line in lines)
        directory = self.store_path.parent
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.store_path.name}.", dir=directory)
        except OSError as exc:
            raise StateStoreError(f"Cannot write state file {self.store_path}: {exc}") from exc
        committed = False
        try:
            with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self.store_path)
            committed = True
        except OSError as exc:
            raise StateStoreError(f"Cannot write state file {self.store_path}: {exc}") from exc
        finally:
            if not committed:
                Path(tmp_name).unlink(missing_ok=True)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        try:
            handle = self.lock_path.open("a")
        except OSError as exc:
            raise StateStoreError(f"Cannot lock state file {self.store_path}: {exc}") from exc
        with handle:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


@dataclass(slots=True)
class _Entry:
    raw: str
    record: FileSizeRecord | None


def _parse_line(line: str) -> FileSizeRecord | None:
    path, sep, value = line.rpartition("=")
    if not sep or not path or not (value.isascii() and value.isdigit()):
        return None
    return FileSizeRecord(path, int(value))


def _validate(path: str, size_bytes: int) -> None:
    if not path:
        raise StateStoreError("Cannot record an empty path")
    if "\n" in path or "\r" in path:
        raise StateStoreError(f"Cannot record a path containing a line break: {path!r}")
    if size_bytes < 0:
        raise StateStoreError(f"Size must be non-negative, got {size_bytes}")


__all__ = [
    "FileSizeRecord",
    "FileStateStore",
    "MemoryStateStore",
    "StateStore",
    "StateStoreError",
]
