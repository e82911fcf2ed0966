"""
Memorization Service — Application layer orchestrator.

Wires the progress store, card store, scheduler, engine and stats into the
operations the CLI and server expose. Follows Dependency Inversion: depends
on the KeyValueStorage port, not concrete adapters.
"""

import logging
from datetime import date

from hafiz.domain.constants import DEFAULT_SUCCESS_THRESHOLD
from hafiz.domain.errors import PersistenceError
from hafiz.domain.models import (
    DueUnit,
    MemorizationStatus,
    ProgressStats,
    ReviewOutcome,
    SpacedRepetitionCard,
    UnitId,
    VerseProgress,
)
from hafiz.domain.ports import KeyValueStorage

from .card_store import CardStore
from .progress_store import ProgressStore
from .review_scheduler import ReviewScheduler, next_status
from .srs_engine import SpacedRepetitionEngine, clamp_quality
from .stats import StatsAggregator

logger = logging.getLogger(__name__)


class MemorizationService:
    """
    One instance per process or session; pass it to callers explicitly.
    """

    def __init__(
        self,
        progress: ProgressStore,
        cards: CardStore,
        engine: SpacedRepetitionEngine | None = None,
        success_threshold: float = DEFAULT_SUCCESS_THRESHOLD,
    ):
        self.progress = progress
        self.cards = cards
        self.engine = engine or SpacedRepetitionEngine()
        self.scheduler = ReviewScheduler(progress)
        self.stats = StatsAggregator(progress)
        self.success_threshold = success_threshold

    @classmethod
    def from_storage(
        cls,
        storage: KeyValueStorage,
        success_threshold: float = DEFAULT_SUCCESS_THRESHOLD,
    ) -> "MemorizationService":
        return cls(
            ProgressStore(storage),
            CardStore(storage),
            success_threshold=success_threshold,
        )

    async def initialize(self) -> None:
        await self.progress.initialize()
        await self.cards.initialize()

    async def get_progress(self, unit_id: UnitId) -> VerseProgress:
        return await self.progress.get_progress(unit_id)

    async def update_status(
        self, unit_id: UnitId, status: MemorizationStatus | str
    ) -> VerseProgress:
        return await self.progress.update_status(unit_id, status)

    async def get_due_units(self) -> list[DueUnit]:
        return await self.scheduler.get_due_units()

    async def get_mastered_units(self) -> list[tuple[UnitId, VerseProgress]]:
        return await self.scheduler.get_mastered_units()

    async def get_stats(self) -> ProgressStats:
        return await self.stats.get_stats()

    async def get_card(self, unit_id: UnitId) -> SpacedRepetitionCard:
        return await self.cards.get_card(unit_id)

    async def record_review(
        self, unit_id: UnitId | str, quality: float, today: date | None = None
    ) -> ReviewOutcome:
        """
        Record one review of ``unit_id`` rated ``quality`` (0-5).

        The card is rescheduled and saved first, then the status moves along
        the review transition table. A NOT_STARTED unit is treated as LEARNING.
        If the status save fails, the previous card is written back before the
        error propagates.

        Raises:
            ValidationError: ``quality`` is not a number.
            PersistenceError: Either save failed.
        """
        q = clamp_quality(quality)
        success = q >= self.success_threshold

        unit_id = UnitId.coerce(unit_id)
        prior = await self.cards.get_card(unit_id)
        card = self.engine.schedule_next(q, prior, today=today)
        await self.cards.put_card(unit_id, card)

        current = (await self.progress.get_progress(unit_id)).status
        if current is MemorizationStatus.NOT_STARTED:
            current = MemorizationStatus.LEARNING
        try:
            progress = await self.progress.update_status(unit_id, next_status(current, success))
        except PersistenceError:
            logger.warning(f"Status save failed for {unit_id}; restoring its previous card")
            await self.cards.put_card(unit_id, prior)
            raise

        logger.info(
            f"Reviewed {unit_id}: quality={q} success={success} "
            f"status={progress.status.value} next_due={card.due}"
        )
        return ReviewOutcome(
            unit_id=unit_id, quality=q, success=success, progress=progress, card=card
        )

    async def cards_due(self, today: date | None = None) -> list[tuple[UnitId, SpacedRepetitionCard]]:
        """Units whose card is due on or before ``today``, earliest due first."""
        today = today or date.today()
        due = [
            (unit_id, card)
            for unit_id, card in await self.cards.records()
            if card.due is not None and card.due <= today
        ]
        due.sort(key=lambda entry: entry[1].due)
        return due

    async def clear_all(self) -> None:
        """Erase all status records and cards."""
        await self.progress.clear_all()
        await self.cards.clear_all()
