import json
from pathlib import Path

import pytest

from workspace_backend.store import MemoryKV, SqliteKV, append_record, open_kv, read_collection

from .fakes import StaleReadKV


def clock(value: int):
    return lambda: value


def test_read_missing_key_returns_empty_and_writes_nothing() -> None:
    kv = MemoryKV()
    assert read_collection(kv, "tasks") == []
    assert kv.data == {}


def test_read_default_is_a_fresh_list() -> None:
    kv = MemoryKV()
    first = read_collection(kv, "tasks")
    first.append("x")
    assert read_collection(kv, "tasks") == []


def test_append_prepends_and_grows_by_one() -> None:
    kv = MemoryKV()
    append_record(kv, "tasks", {"title": "a"}, clock=clock(1))
    item = append_record(kv, "tasks", {"title": "b"}, clock=clock(2))

    items = read_collection(kv, "tasks")
    assert len(items) == 2
    assert items[0] == item == {"id": 2, "title": "b"}
    assert items[1] == {"id": 1, "title": "a"}


def test_append_stores_compact_json() -> None:
    kv = MemoryKV()
    append_record(kv, "clients", {"name": "Иван", "stage": "lead"}, clock=clock(5))
    assert kv.data["clients"] == '[{"id":5,"name":"Иван","stage":"lead"}]'


def test_caller_id_wins_over_generated_id() -> None:
    kv = MemoryKV()
    item = append_record(kv, "clients", {"id": "mine", "name": "x"}, clock=clock(7))
    assert item["id"] == "mine"
    assert read_collection(kv, "clients")[0]["id"] == "mine"


def test_corrupt_blob_raises() -> None:
    kv = MemoryKV({"tasks": "{not json"})
    with pytest.raises(json.JSONDecodeError):
        read_collection(kv, "tasks")


def test_unsynchronized_appends_can_lose_a_write() -> None:
    # both appends read the empty collection before either one writes
    kv = MemoryKV()
    racing = StaleReadKV(kv)
    append_record(racing, "tasks", {"title": "first"}, clock=clock(1))
    append_record(racing, "tasks", {"title": "second"}, clock=clock(1))

    assert read_collection(kv, "tasks") == [{"id": 1, "title": "second"}]


def test_sqlite_kv_round_trip(tmp_path: Path) -> None:
    db = tmp_path / "nested" / "kv.sqlite3"
    kv = SqliteKV(db)
    assert kv.get("tasks") is None

    kv.put("tasks", "[]")
    kv.put("tasks", '[{"id":1}]')
    assert SqliteKV(db).get("tasks") == '[{"id":1}]'


def test_sqlite_kv_with_collections(tmp_path: Path) -> None:
    kv = SqliteKV(tmp_path / "kv.sqlite3")
    append_record(kv, "clients", {"name": "a"}, clock=clock(10))
    assert read_collection(kv, "clients") == [{"id": 10, "name": "a"}]


def test_open_kv(tmp_path: Path) -> None:
    assert isinstance(open_kv(""), MemoryKV)
    assert isinstance(open_kv(str(tmp_path / "kv.sqlite3")), SqliteKV)
