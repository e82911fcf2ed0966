"""
JSON File Storage — Infrastructure adapter writing one JSON file per key.

Implements KeyValueStorage on top of a data directory. Writes go to a
temporary file first and are moved into place with os.replace.
"""

import asyncio
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from hafiz.domain.constants import STORAGE_TIMEOUT
from hafiz.domain.ports import KeyValueStorage

from .write_guard import WriteTicket, run_guarded_write

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class JsonFileStorage(KeyValueStorage):
    """
    Stores each key as ``<data_dir>/<key>.json``.

    Blocking file I/O runs in a worker thread, bounded by ``timeout`` seconds.
    A save that times out is never moved into place.
    """

    def __init__(self, data_dir: Path, timeout: float = STORAGE_TIMEOUT):
        self.data_dir = Path(data_dir)
        self.timeout = timeout

    def _path_for(self, key: str) -> Path:
        return self.data_dir / f"{_UNSAFE_CHARS.sub('_', key)}.json"

    def _read(self, key: str) -> Any:
        path = self._path_for(key)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def _write(self, key: str, value: Any, ticket: WriteTicket) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self._path_for(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(value, fh, ensure_ascii=False, indent=2)
            ticket.commit(lambda: os.replace(tmp_name, path))
        finally:
            Path(tmp_name).unlink(missing_ok=True)

    async def load_value(self, key: str, default: Any = None) -> Any:
        try:
            value = await asyncio.wait_for(
                asyncio.to_thread(self._read, key), timeout=self.timeout
            )
        except (OSError, ValueError, asyncio.TimeoutError) as e:
            logger.error(f"Error reading {key} from {self.data_dir}: {e!r}")
            return default
        return default if value is None else value

    async def save_value(self, key: str, value: Any) -> bool:
        return await run_guarded_write(self._write, self.timeout, key, value)
