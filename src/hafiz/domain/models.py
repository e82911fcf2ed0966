"""
Domain models for verse memorization.

These are pure data structures with no I/O or external dependencies.
"""

import re
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from .constants import DEFAULT_EASINESS
from .errors import ValidationError

_UNIT_ID_RE = re.compile(r"^(\d+):(\d+)$")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True, order=True)
class UnitId:
    """
    Identifier of one memorizable verse.

    Attributes:
        collection: Surah number (>= 1).
        item: Ayah number within the surah (>= 0).
    """

    collection: int
    item: int

    def __post_init__(self):
        if not _is_int(self.collection) or self.collection < 1:
            raise ValidationError(f"collection must be an integer >= 1, got {self.collection!r}")
        if not _is_int(self.item) or self.item < 0:
            raise ValidationError(f"item must be an integer >= 0, got {self.item!r}")

    def __str__(self) -> str:
        return f"{self.collection}:{self.item}"

    @classmethod
    def coerce(cls, value: "UnitId | str") -> "UnitId":
        """Accept a UnitId or its ``"collection:item"`` string form."""
        if isinstance(value, cls):
            return value
        return cls.parse(value)

    @classmethod
    def parse(cls, text: str) -> "UnitId":
        """Parse the ``"collection:item"`` storage form."""
        match = _UNIT_ID_RE.match(text.strip()) if isinstance(text, str) else None
        if not match:
            raise ValidationError(f"Invalid unit identifier: {text!r} (expected 'collection:item')")
        return cls(int(match.group(1)), int(match.group(2)))


class MemorizationStatus(str, Enum):
    NOT_STARTED = "not_started"
    LEARNING = "learning"
    REVIEWING = "reviewing"
    MASTERED = "mastered"

    @classmethod
    def coerce(cls, value: "MemorizationStatus | str") -> "MemorizationStatus":
        """Accept an enum member or its string value; reject anything else."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        valid = ", ".join(s.value for s in cls)
        raise ValidationError(f"Invalid memorization status: {value!r} (expected one of {valid})")


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be an ISO string, got {value!r}")
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class VerseProgress:
    """
    Memorization status of a single unit.

    Attributes:
        status: Current memorization status.
        last_reviewed: Time of the last status change, None if never set.
    """

    status: MemorizationStatus = MemorizationStatus.NOT_STARTED
    last_reviewed: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "lastReviewed": self.last_reviewed.isoformat() if self.last_reviewed else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VerseProgress":
        """Raises ValueError (or ValidationError) on malformed payloads."""
        if not isinstance(data, dict):
            raise ValueError(f"progress record must be a mapping, got {type(data).__name__}")
        return cls(
            status=MemorizationStatus.coerce(data.get("status")),
            last_reviewed=_parse_timestamp(data.get("lastReviewed")),
        )


@dataclass(frozen=True)
class SpacedRepetitionCard:
    """
    Ease/interval state of a unit for the SM-2 style engine.

    Attributes:
        easiness: Ease factor, never below 1.3.
        interval: Current interval in days (0 before the first review).
        repetitions: Number of reviews applied.
        due: Date of the next review, None before the first review.
    """

    easiness: float = DEFAULT_EASINESS
    interval: int = 0
    repetitions: int = 0
    due: date | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "easiness": self.easiness,
            "interval": self.interval,
            "repetitions": self.repetitions,
            "due": self.due.isoformat() if self.due else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SpacedRepetitionCard":
        if not isinstance(data, dict):
            raise ValueError(f"card record must be a mapping, got {type(data).__name__}")
        due = data.get("due")
        return cls(
            easiness=float(data.get("easiness", DEFAULT_EASINESS)),
            interval=int(data.get("interval", 0)),
            repetitions=int(data.get("repetitions", 0)),
            due=date.fromisoformat(due) if due else None,
        )


@dataclass(frozen=True)
class DueUnit:
    """A unit waiting for review together with its current progress."""

    unit_id: UnitId
    progress: VerseProgress

    @property
    def priority(self) -> float:
        """Epoch seconds of the last review; 0 when never reviewed."""
        if self.progress.last_reviewed is None:
            return 0.0
        return self.progress.last_reviewed.timestamp()


@dataclass(frozen=True)
class ProgressStats:
    total: int = 0
    learning: int = 0
    reviewing: int = 0
    mastered: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class ReviewOutcome:
    """Result of recording one review of a unit."""

    unit_id: UnitId
    quality: float
    success: bool
    progress: VerseProgress
    card: SpacedRepetitionCard

    def to_dict(self) -> dict[str, Any]:
        return {
            "unit": str(self.unit_id),
            "quality": self.quality,
            "success": self.success,
            "progress": self.progress.to_dict(),
            "card": self.card.to_dict(),
        }
