"""
SM-2 style spaced repetition engine.

This is a pure computation module with no I/O. It is the single source of
truth for interval math; the status model only categorizes units.
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from numbers import Real

from hafiz.domain.constants import (
    FIRST_INTERVAL_DAYS,
    MAX_INTERVAL_DAYS,
    MAX_QUALITY,
    MIN_EASINESS,
    MIN_INTERVAL_DAYS,
    MIN_QUALITY,
    SECOND_INTERVAL_DAYS,
)
from hafiz.domain.errors import ValidationError
from hafiz.domain.models import SpacedRepetitionCard


def clamp_quality(quality: float) -> float:
    """Clamp a rating into [0, 5]. NaN counts as a blackout (0)."""
    if isinstance(quality, bool) or not isinstance(quality, Real):
        raise ValidationError(f"quality must be a number, got {quality!r}")
    if math.isnan(quality):
        return MIN_QUALITY
    return max(MIN_QUALITY, min(MAX_QUALITY, quality))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class SpacedRepetitionEngine:
    """
    Computes the next card state from a 0-5 quality rating.

    Stateless and side-effect free; ``today`` is the only notion of time.
    """

    min_easiness: float = MIN_EASINESS
    max_interval: int = MAX_INTERVAL_DAYS

    def next_easiness(self, easiness: float, quality: float) -> float:
        """e' = e + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored at 1.3."""
        miss = MAX_QUALITY - quality
        return max(self.min_easiness, easiness + (0.1 - miss * (0.08 + miss * 0.02)))

    def schedule_next(
        self,
        quality: float,
        card: SpacedRepetitionCard | None = None,
        today: date | None = None,
    ) -> SpacedRepetitionCard:
        """
        Apply one review with the given quality to ``card``.

        Args:
            quality: Recall quality, clamped to 0-5.
                0 - Complete blackout
                3 - Correct response with serious difficulty
                5 - Perfect response
            card: Prior state; a fresh default card if omitted.
            today: Reference date for ``due``; defaults to date.today().

        Returns:
            A new SpacedRepetitionCard. The input card is not modified.
        """
        card = card or SpacedRepetitionCard()
        q = clamp_quality(quality)
        today = today or date.today()

        easiness = self.next_easiness(card.easiness, q)
        repetitions = card.repetitions + 1

        if repetitions == 1:
            interval = FIRST_INTERVAL_DAYS
        elif repetitions == 2:
            interval = SECOND_INTERVAL_DAYS
        else:
            previous = card.interval if card.interval >= MIN_INTERVAL_DAYS else MIN_INTERVAL_DAYS
            interval = _round_half_up(previous * easiness)

        interval = max(MIN_INTERVAL_DAYS, min(self.max_interval, interval))

        return SpacedRepetitionCard(
            easiness=easiness,
            interval=interval,
            repetitions=repetitions,
            due=today + timedelta(days=interval),
        )
