# Storage Adapters Package
from .json_storage import JsonFileStorage
from .memory_storage import MemoryStorage
from .sqlite_storage import SqliteStorage

__all__ = ["JsonFileStorage", "MemoryStorage", "SqliteStorage"]
