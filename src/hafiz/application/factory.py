"""
Storage Factory
Centralizes the logic for selecting the storage adapter and wiring services.
"""

import logging

from hafiz.application.config import AppConfig
from hafiz.application.service import MemorizationService
from hafiz.domain.ports import KeyValueStorage
from hafiz.infrastructure.adapters import JsonFileStorage, MemoryStorage, SqliteStorage

logger = logging.getLogger(__name__)


def build_storage(config: AppConfig) -> KeyValueStorage:
    """
    Returns the KeyValueStorage implementation selected by ``config.backend``.
    """
    if config.backend == "memory":
        return MemoryStorage()

    if config.backend == "sqlite":
        logger.debug(f"Storage: SQLite at {config.sqlite_path}")
        return SqliteStorage(config.sqlite_path, timeout=config.storage_timeout)

    logger.debug(f"Storage: JSON files in {config.data_dir}")
    return JsonFileStorage(config.data_dir, timeout=config.storage_timeout)


def build_service(config: AppConfig) -> MemorizationService:
    return MemorizationService.from_storage(
        build_storage(config), success_threshold=config.success_threshold
    )
