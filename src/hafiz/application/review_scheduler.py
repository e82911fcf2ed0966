"""
Review scheduler: which units need review, and in what order.

Eligibility is status based: LEARNING and REVIEWING units are due, oldest
review first. MASTERED units are done and NOT_STARTED units have nothing to
review.
"""

import logging

from hafiz.domain.models import DueUnit, MemorizationStatus, UnitId, VerseProgress

from .progress_store import ProgressStore

logger = logging.getLogger(__name__)

REVIEWABLE_STATUSES = frozenset({MemorizationStatus.LEARNING, MemorizationStatus.REVIEWING})


def next_status(current: MemorizationStatus | str, success: bool) -> MemorizationStatus:
    """
    Status after a review outcome.

    success on REVIEWING promotes to MASTERED; success on anything else moves
    to REVIEWING; a failure always lands on REVIEWING.
    """
    current = MemorizationStatus.coerce(current)
    if success and current is MemorizationStatus.REVIEWING:
        return MemorizationStatus.MASTERED
    return MemorizationStatus.REVIEWING


def _sort_key(entry: DueUnit) -> float:
    return entry.priority


class ReviewScheduler:
    def __init__(self, store: ProgressStore):
        self._store = store

    async def get_due_units(self) -> list[DueUnit]:
        """
        Units in LEARNING or REVIEWING, least recently reviewed first.

        Never-reviewed units sort first; ties keep storage order.
        """
        due = [
            DueUnit(unit_id, progress)
            for unit_id, progress in await self._store.records()
            if progress.status in REVIEWABLE_STATUSES
        ]
        due.sort(key=_sort_key)
        return due

    async def get_mastered_units(self) -> list[tuple[UnitId, VerseProgress]]:
        """MASTERED units in storage order."""
        return [
            (unit_id, progress)
            for unit_id, progress in await self._store.records()
            if progress.status is MemorizationStatus.MASTERED
        ]
