"""
Durable SpacedRepetitionCard state per verse.

Kept under its own storage key, independent of the status mapping.
"""

from typing import Any

from hafiz.domain.constants import CARDS_STORAGE_KEY
from hafiz.domain.models import SpacedRepetitionCard, UnitId
from hafiz.domain.ports import KeyValueStorage

from .record_store import UnitRecordStore


class CardStore(UnitRecordStore[SpacedRepetitionCard]):
    record_name = "card"

    def __init__(self, storage: KeyValueStorage, storage_key: str = CARDS_STORAGE_KEY):
        super().__init__(storage, storage_key)

    def _encode(self, record: SpacedRepetitionCard) -> dict[str, Any]:
        return record.to_dict()

    def _decode(self, data: Any) -> SpacedRepetitionCard:
        return SpacedRepetitionCard.from_dict(data)

    async def get_card(self, unit_id: UnitId | str) -> SpacedRepetitionCard:
        """Stored card for ``unit_id``, or a fresh default card."""
        unit_id = UnitId.coerce(unit_id)
        await self.initialize()
        return self._records.get(unit_id) or SpacedRepetitionCard()

    async def put_card(
        self, unit_id: UnitId | str, card: SpacedRepetitionCard
    ) -> SpacedRepetitionCard:
        """Persist ``card`` for ``unit_id``. Raises PersistenceError on save failure."""
        unit_id = UnitId.coerce(unit_id)

        def apply(records: dict[UnitId, SpacedRepetitionCard]) -> None:
            records[unit_id] = card

        await self._commit(apply)
        return card
