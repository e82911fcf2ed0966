"""
Process-local adapter for KeyValueStorage.

Values are round-tripped through JSON so callers never share mutable state
with the store, matching what the durable backends do.
"""

import json
import logging
from typing import Any

from hafiz.domain.ports import KeyValueStorage

logger = logging.getLogger(__name__)


class MemoryStorage(KeyValueStorage):
    """Keeps serialized values in a dict. Nothing survives the process."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self._data[key] = json.dumps(value)

    async def load_value(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.error(f"Error reading {key}: {e}")
            return default

    async def save_value(self, key: str, value: Any) -> bool:
        self._data[key] = json.dumps(value)
        return True

