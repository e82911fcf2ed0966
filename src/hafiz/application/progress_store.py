"""
Durable memorization status per verse.

Owns no scheduling logic, only status transitions and their persistence.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from hafiz.domain.constants import PROGRESS_STORAGE_KEY
from hafiz.domain.models import MemorizationStatus, UnitId, VerseProgress
from hafiz.domain.ports import KeyValueStorage

from .record_store import UnitRecordStore

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProgressStore(UnitRecordStore[VerseProgress]):
    """
    Maps each unit to its VerseProgress.

    Units without a record are implicitly NOT_STARTED and are never persisted
    as such unless a caller sets that status explicitly.
    """

    record_name = "progress record"

    def __init__(
        self,
        storage: KeyValueStorage,
        storage_key: str = PROGRESS_STORAGE_KEY,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(storage, storage_key)
        self._clock = clock

    def _encode(self, record: VerseProgress) -> dict[str, Any]:
        return record.to_dict()

    def _decode(self, data: Any) -> VerseProgress:
        return VerseProgress.from_dict(data)

    async def get_progress(self, unit_id: UnitId | str) -> VerseProgress:
        """Current progress of ``unit_id``; the NOT_STARTED default if unknown."""
        unit_id = UnitId.coerce(unit_id)
        await self.initialize()
        return self._records.get(unit_id) or VerseProgress()

    async def update_status(
        self, unit_id: UnitId | str, status: MemorizationStatus | str
    ) -> VerseProgress:
        """
        Replace the record of ``unit_id`` with ``status`` stamped at the current time.

        Raises:
            ValidationError: ``unit_id`` or ``status`` is invalid.
            PersistenceError: The save failed; the previous record is kept.
        """
        unit_id = UnitId.coerce(unit_id)
        new_status = MemorizationStatus.coerce(status)
        progress = VerseProgress(status=new_status, last_reviewed=self._clock())

        def apply(records: dict[UnitId, VerseProgress]) -> None:
            records[unit_id] = progress

        logger.debug(f"Updating verse {unit_id} to {new_status.value}")
        await self._commit(apply)
        return progress
