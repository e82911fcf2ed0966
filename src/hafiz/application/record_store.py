"""
Shared machinery for unit-keyed stores persisted as a single mapping.

The whole mapping lives in memory after ``initialize`` and every mutation
rewrites it in full under one storage key.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from hafiz.domain.errors import PersistenceError
from hafiz.domain.models import UnitId
from hafiz.domain.ports import KeyValueStorage

logger = logging.getLogger(__name__)

R = TypeVar("R")


class UnitRecordStore(Generic[R]):
    """
    Base class for ProgressStore and CardStore.

    Mutations are write-ahead: the candidate mapping is persisted first and
    only swapped into memory once the save succeeded. A lock serializes the
    read-modify-persist sequence between coroutines.
    """

    record_name = "record"

    def __init__(self, storage: KeyValueStorage, storage_key: str):
        self._storage = storage
        self._key = storage_key
        self._records: dict[UnitId, R] = {}
        self._initialized = False
        self._lock = asyncio.Lock()

    # -- subclass hooks -----------------------------------------------

    def _encode(self, record: R) -> dict[str, Any]:
        raise NotImplementedError

    def _decode(self, data: Any) -> R:
        raise NotImplementedError

    # -- lifecycle ----------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Load the persisted mapping. Later calls are no-ops."""
        if self._initialized:
            return
        async with self._lock:
            if self._initialized:
                return
            payload = await self._storage.load_value(self._key, {})
            self._records = self._decode_mapping(payload)
            self._initialized = True
            logger.info(f"{type(self).__name__} initialized with {len(self._records)} units")

    def _decode_mapping(self, payload: Any) -> dict[UnitId, R]:
        if not isinstance(payload, dict):
            if payload is not None:
                logger.warning(
                    f"Ignoring stored {self._key}: expected a mapping, "
                    f"got {type(payload).__name__}"
                )
            return {}

        records: dict[UnitId, R] = {}
        for raw_key, raw_record in payload.items():
            try:
                records[UnitId.parse(raw_key)] = self._decode(raw_record)
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed {self.record_name} {raw_key!r}: {e}")
        return records

    def _encode_mapping(self, records: dict[UnitId, R]) -> dict[str, Any]:
        return {str(unit_id): self._encode(record) for unit_id, record in records.items()}

    # -- mutation -----------------------------------------------------

    async def _commit(self, mutate: Callable[[dict[UnitId, R]], None]) -> None:
        """
        Apply ``mutate`` to a copy of the mapping, persist it, then swap it in.

        Raises:
            PersistenceError: The save failed; memory keeps the prior mapping.
        """
        await self.initialize()
        async with self._lock:
            candidate = dict(self._records)
            mutate(candidate)
            await self._persist(candidate)
            self._records = candidate

    async def _persist(self, records: dict[UnitId, R]) -> None:
        payload = self._encode_mapping(records)
        try:
            ok = await self._storage.save_value(self._key, payload)
        except Exception as e:
            logger.error(f"Failed to save {self._key}: {e!r}")
            raise PersistenceError(f"Failed to save {self._key}: {e!r}") from e
        if not ok:
            logger.error(f"Failed to save {self._key}: storage rejected the write")
            raise PersistenceError(f"Failed to save {self._key}")

    async def clear_all(self) -> None:
        """Empty the mapping and persist the empty state."""
        await self._commit(lambda records: records.clear())
        logger.info(f"Cleared all {self._key}")

    # -- reads --------------------------------------------------------

    async def records(self) -> list[tuple[UnitId, R]]:
        """Snapshot of all stored records, in storage order."""
        await self.initialize()
        return list(self._records.items())

    async def count(self) -> int:
        await self.initialize()
        return len(self._records)
