from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from filesize_check.state_store import FileStateStore, MemoryStateStore, StateStoreError


def test_missing_store_means_no_records(tmp_path: Path) -> None:
    store = FileStateStore(tmp_path / "sizes.state")
    assert store.get("/data/app.log") is None
    assert store.records() == []
    assert not (tmp_path / "sizes.state").exists()


def test_put_creates_store_and_round_trips(tmp_path: Path) -> None:
    store_path = tmp_path / "sizes.state"
    store = FileStateStore(store_path)
    store.put("/data/app.log", 120)
    assert store_path.read_text(encoding="utf-8") == "/data/app.log=120\n"
    assert FileStateStore(store_path).get("/data/app.log") == 120


def test_update_preserves_other_records_and_order(tmp_path: Path) -> None:
    store_path = tmp_path / "sizes.state"
    store_path.write_text("/a=1\n/b=2\n/c=3\n", encoding="utf-8")
    store = FileStateStore(store_path)

    store.put("/b", 20)
    store.put("/d", 4)

    assert store_path.read_text(encoding="utf-8") == "/a=1\n/b=20\n/c=3\n/d=4\n"
    assert [record.path for record in store.records()] == ["/a", "/b", "/c", "/d"]


def test_equals_sign_in_path_is_kept_in_key(tmp_path: Path) -> None:
    store = FileStateStore(tmp_path / "sizes.state")
    store.put("/logs/level=debug.log", 10)
    store.put("/logs/level", 99)
    assert store.get("/logs/level=debug.log") == 10
    assert store.get("/logs/level") == 99


def test_prefix_paths_do_not_collide(tmp_path: Path) -> None:
    store = FileStateStore(tmp_path / "sizes.state")
    store.put("/var/log/app.log.1", 5)
    store.put("/var/log/app.log", 7)
    store.put("/var/log/app.log", 8)
    assert store.get("/var/log/app.log.1") == 5
    assert store.get("/var/log/app.log") == 8


def test_newline_in_path_is_rejected(tmp_path: Path) -> None:
    store = FileStateStore(tmp_path / "sizes.state")
    with pytest.raises(StateStoreError):
        store.put("/tmp/evil\n/etc/passwd", 1)
    assert not (tmp_path / "sizes.state").exists()


def test_malformed_lines_are_ignored_but_preserved(tmp_path: Path, caplog) -> None:
    store_path = tmp_path / "sizes.state"
    store_path.write_text("garbage\n/a=1\n/b=notanumber\n", encoding="utf-8")
    store = FileStateStore(store_path, logger=logging.getLogger("state-store-test"))

    with caplog.at_level(logging.WARNING, logger="state-store-test"):
        assert store.get("/b") is None
    assert "state.malformed" in caplog.text

    store.put("/a", 2)
    assert store_path.read_text(encoding="utf-8") == "garbage\n/a=2\n/b=notanumber\n"


def test_duplicate_records_collapse_on_update(tmp_path: Path) -> None:
    store_path = tmp_path / "sizes.state"
    store_path.write_text("/a=1\n/b=2\n/a=3\n", encoding="utf-8")
    store = FileStateStore(store_path)
    assert store.get("/a") == 3

    store.put("/a", 4)
    assert store_path.read_text(encoding="utf-8") == "/a=4\n/b=2\n"


def test_missing_parent_directory_is_an_error(tmp_path: Path) -> None:
    store = FileStateStore(tmp_path / "missing" / "sizes.state")
    with pytest.raises(StateStoreError):
        store.get("/a")
    with pytest.raises(StateStoreError):
        store.put("/a", 1)


def test_memory_store() -> None:
    store = MemoryStateStore({"/a": 1})
    assert store.get("/a") == 1
    assert store.get("/b") is None
    store.put("/b", 2)
    assert [record.to_line() for record in store.records()] == ["/a=1", "/b=2"]
    with pytest.raises(StateStoreError):
        store.put("/c", -1)


def test_non_utf8_path_round_trips(tmp_path: Path) -> None:
    store_path = tmp_path / "sizes.state"
    name = os.fsdecode(os.fsencode(tmp_path) + b"/bad\xffname.log")
    store = FileStateStore(store_path)

    store.put(name, 3)

    assert store.get(name) == 3
    assert store_path.read_bytes() == os.fsencode(tmp_path) + b"/bad\xffname.log=3\n"


def test_foreign_bytes_in_store_are_preserved(tmp_path: Path) -> None:
    store_path = tmp_path / "sizes.state"
    store_path.write_bytes(b"/old/\xe9t\xe9.log=5\n")
    store = FileStateStore(store_path)

    assert store.get("/new.log") is None
    store.put("/new.log", 9)

    assert store_path.read_bytes() == b"/old/\xe9t\xe9.log=5\n/new.log=9\n"


def test_failed_write_leaves_no_temp_file(tmp_path: Path, monkeypatch) -> None:
    store_path = tmp_path / "sizes.state"
    store = FileStateStore(store_path)

    def broken_fsync(fd: int) -> None:
        raise ValueError("disk on fire")

    monkeypatch.setattr(os, "fsync", broken_fsync)
    with pytest.raises(ValueError):
        store.put("/a", 1)

    assert sorted(path.name for path in tmp_path.iterdir()) == ["sizes.state.lock"]


def test_concurrent_puts_keep_every_record(tmp_path: Path) -> None:
    store_path = tmp_path / "sizes.state"
    workers = 8
    paths_per_worker = 15

    def record_batch(worker: int) -> None:
        store = FileStateStore(store_path)
        for index in range(paths_per_worker):
            store.put(f"/data/w{worker}/file{index}.log", worker * 100 + index)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        list(pool.map(record_batch, range(workers)))

    records = {record.path: record.size_bytes for record in FileStateStore(store_path).records()}
    assert len(records) == workers * paths_per_worker
    assert records["/data/w7/file14.log"] == 714
