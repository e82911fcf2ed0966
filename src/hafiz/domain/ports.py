"""
Ports (interfaces) for persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from typing import Any


class KeyValueStorage(ABC):
    """
    Port for a durable key-value store holding JSON-compatible values.

    Implementations:
        - MemoryStorage: Process-local dictionary.
        - JsonFileStorage: One JSON document per key in a directory.
        - SqliteStorage: A single key/value table in SQLite.
    """

    @abstractmethod
    async def load_value(self, key: str, default: Any = None) -> Any:
        """
        Load the value stored under ``key``.

        Never raises: any backend failure is logged and ``default`` returned.
        """
        pass

    @abstractmethod
    async def save_value(self, key: str, value: Any) -> bool:
        """
        Persist ``value`` under ``key``, replacing any previous value.

        Returns:
            True on success. Failure is signalled by returning False or raising.
        """
        pass

