"""
SQLite Storage — Infrastructure adapter for a single key/value table.

Values are stored JSON-encoded. Each call opens its own connection so the
adapter can be driven from worker threads.
"""

import asyncio
import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from hafiz.domain.constants import STORAGE_TIMEOUT
from hafiz.domain.ports import KeyValueStorage

from .write_guard import WriteTicket, run_guarded_write

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class SqliteStorage(KeyValueStorage):
    """Key/value storage backed by an SQLite database file."""

    def __init__(self, db_path: Path, timeout: float = STORAGE_TIMEOUT):
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._schema_ready = False

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        if not self._schema_ready:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        try:
            if not self._schema_ready:
                conn.executescript(SCHEMA_SQL)
                self._schema_ready = True
            yield conn
        finally:
            conn.close()

    def _read(self, key: str) -> Any:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        return json.loads(row[0])

    def _write(self, key: str, value: Any, ticket: WriteTicket) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO kv (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, payload),
            )
            # Closing without commit rolls the upsert back.
            ticket.commit(conn.commit)

    async def load_value(self, key: str, default: Any = None) -> Any:
        try:
            value = await asyncio.wait_for(
                asyncio.to_thread(self._read, key), timeout=self.timeout
            )
        except (sqlite3.Error, OSError, ValueError, asyncio.TimeoutError) as e:
            logger.error(f"Error reading {key} from {self.db_path}: {e!r}")
            return default
        return default if value is None else value

    async def save_value(self, key: str, value: Any) -> bool:
        return await run_guarded_write(self._write, self.timeout, key, value)
