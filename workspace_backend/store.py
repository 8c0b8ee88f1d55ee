"""JSON collections kept as one blob per key in a plain get/put store.

append_record is an unguarded read-modify-write: two appends racing on the
same key can drop one of the records (last put wins). Ids are wall-clock
milliseconds and may collide inside the same millisecond.
"""

import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class KV(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def put(self, key: str, value: str) -> None: ...


class MemoryKV:
    def __init__(self, data: Optional[dict] = None):
        self.data = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def put(self, key: str, value: str) -> None:
        self.data[key] = value


class SqliteKV:
    """
    SQLite-backed get/put.

    Each call opens its own connection; there is no append or
    compare-and-set, only whole-value overwrite.
    """

    def __init__(self, db_path: str | Path = "kv.sqlite3"):
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._get_conn()
        try:
            conn.execute("CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
            conn.commit()
        finally:
            conn.close()
        logger.info("SqliteKV ready db=%s", self._db_path)

    def _get_conn(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._db_path), timeout=30.0)

    def get(self, key: str) -> Optional[str]:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        return row[0] if row else None

    def put(self, key: str, value: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
            conn.commit()
        finally:
            conn.close()


def open_kv(path: str = "") -> KV:
    if path:
        return SqliteKV(path)
    logger.info("KV_PATH not set, using in-memory store")
    return MemoryKV()


def now_ms() -> int:
    return int(time.time() * 1000)


def read_collection(kv: KV, key: str, default=()) -> list:
    raw = kv.get(key)
    if not raw:
        return list(default)
    return json.loads(raw)


def append_record(kv: KV, key: str, fields: dict, clock=now_ms) -> dict:
    items = read_collection(kv, key)
    # caller fields go on top, so a caller-supplied id wins
    item = {"id": clock(), **fields}
    items.insert(0, item)
    kv.put(key, json.dumps(items, ensure_ascii=False, separators=(",", ":")))
    logger.debug("appended to %s id=%s total=%d", key, item["id"], len(items))
    return item
