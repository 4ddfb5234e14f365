# src/focuslist/storage/kv_store.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sqlite3
import time
from collections.abc import Iterable
from pathlib import Path

from ..core.ports import StoreRecord

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """A store read/write failed. The operation did not happen and can be retried."""


class SqliteKeyValueStore:
    """
    SQLite-backed key-value store with an async facade.

    Values are JSON documents, one row per key. A set() call writes all of its
    keys in one transaction, so a reader never observes half of a record.

    Thread-safety:
    - each call opens its own SQLite connection
    - blocking work runs in asyncio.to_thread so the event loop never stalls
    """

    def __init__(self, db_path: str | Path = "store.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._ensure_schema()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open store at {self._db_path}: {e}") from e
        logger.info("KeyValueStore ready db=%s", self._db_path)

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _get_sync(self, keys: list[str]) -> StoreRecord:
        if not keys:
            return {}
        conn = self._get_conn()
        try:
            placeholders = ",".join("?" for _ in keys)
            rows = conn.execute(
                f"SELECT key, value FROM kv WHERE key IN ({placeholders})",
                keys,
            ).fetchall()
        finally:
            conn.close()

        out: StoreRecord = {}
        for key, raw in rows:
            try:
                out[key] = json.loads(raw)
            except (TypeError, ValueError):
                # A corrupt value reads as missing; callers already handle absent keys.
                logger.warning("Ignoring undecodable value for key=%s", key)
        return out

    def _set_sync(self, rows: list[tuple[str, str, float]]) -> None:
        conn = self._get_conn()
        try:
            with conn:
                conn.executemany(
                    """
                    INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    rows,
                )
        finally:
            conn.close()

    # ---- public API ----

    async def get(self, keys: Iterable[str]) -> StoreRecord:
        key_list = [str(k) for k in keys]
        try:
            return await asyncio.to_thread(self._get_sync, key_list)
        except (sqlite3.Error, OSError) as e:
            logger.exception("Store read failed keys=%s", key_list)
            raise StorageError(f"read failed for keys {key_list}: {e}") from e

    async def set(self, record: StoreRecord) -> None:
        if not record:
            return
        now = time.time()
        try:
            rows = [(str(k), json.dumps(v, ensure_ascii=False), now) for k, v in record.items()]
        except (TypeError, ValueError) as e:
            raise StorageError(f"record is not JSON-serializable: {e}") from e

        try:
            await asyncio.to_thread(self._set_sync, rows)
        except (sqlite3.Error, OSError) as e:
            logger.exception("Store write failed keys=%s", list(record))
            raise StorageError(f"write failed for keys {list(record)}: {e}") from e
        logger.debug("Store write keys=%s", list(record))
