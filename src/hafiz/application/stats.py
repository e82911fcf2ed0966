from hafiz.domain.models import MemorizationStatus, ProgressStats

from .progress_store import ProgressStore


class StatsAggregator:
    """Read-only counts over the stored progress records."""

    def __init__(self, store: ProgressStore):
        self._store = store

    async def get_stats(self) -> ProgressStats:
        records = await self._store.records()
        counts = {status: 0 for status in MemorizationStatus}
        for _, progress in records:
            counts[progress.status] += 1
        return ProgressStats(
            total=len(records),
            learning=counts[MemorizationStatus.LEARNING],
            reviewing=counts[MemorizationStatus.REVIEWING],
            mastered=counts[MemorizationStatus.MASTERED],
        )
