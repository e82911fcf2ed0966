import pytest

from hafiz.application.progress_store import ProgressStore
from hafiz.application.review_scheduler import ReviewScheduler, next_status
from hafiz.domain.constants import PROGRESS_STORAGE_KEY
from hafiz.domain.errors import ValidationError
from hafiz.domain.models import MemorizationStatus, UnitId
from hafiz.infrastructure.adapters import MemoryStorage

S = MemorizationStatus


# --- Transition table ---


@pytest.mark.parametrize(
    "current, success, expected",
    [
        (S.REVIEWING, True, S.MASTERED),
        (S.LEARNING, True, S.REVIEWING),
        (S.LEARNING, False, S.REVIEWING),
        (S.REVIEWING, False, S.REVIEWING),
        (S.MASTERED, False, S.REVIEWING),
        (S.MASTERED, True, S.REVIEWING),
    ],
)
def test_next_status(current, success, expected):
    assert next_status(current, success) is expected


def test_next_status_rejects_unknown_status():
    with pytest.raises(ValidationError):
        next_status("done", True)


def test_two_successes_from_learning_reach_mastered():
    status = next_status(S.LEARNING, True)
    assert next_status(status, True) is S.MASTERED


# --- Due list ---


@pytest.mark.asyncio
async def test_due_units_after_status_changes(storage, clock):
    store = ProgressStore(storage, clock=clock)
    scheduler = ReviewScheduler(store)

    await store.update_status(UnitId(2, 5), S.LEARNING)
    await store.update_status(UnitId(2, 5), S.REVIEWING)

    due = await scheduler.get_due_units()
    assert [(d.unit_id, d.progress.status) for d in due] == [(UnitId(2, 5), S.REVIEWING)]


@pytest.mark.asyncio
async def test_due_units_exclude_mastered_and_not_started(storage, clock):
    store = ProgressStore(storage, clock=clock)
    scheduler = ReviewScheduler(store)

    await store.update_status(UnitId(1, 1), S.MASTERED)
    await store.update_status(UnitId(1, 2), S.NOT_STARTED)
    await store.update_status(UnitId(1, 3), S.LEARNING)

    due = await scheduler.get_due_units()
    assert [d.unit_id for d in due] == [UnitId(1, 3)]


@pytest.mark.asyncio
async def test_due_units_oldest_review_first(storage, clock):
    store = ProgressStore(storage, clock=clock)
    scheduler = ReviewScheduler(store)

    await store.update_status(UnitId(1, 1), S.LEARNING)  # 08:00
    await store.update_status(UnitId(1, 2), S.REVIEWING)  # 08:01
    await store.update_status(UnitId(1, 3), S.LEARNING)  # 08:02
    await store.update_status(UnitId(1, 1), S.REVIEWING)  # 08:03, now newest

    due = await scheduler.get_due_units()
    assert [d.unit_id for d in due] == [UnitId(1, 2), UnitId(1, 3), UnitId(1, 1)]
    stamps = [d.progress.last_reviewed for d in due]
    assert stamps == sorted(stamps)


@pytest.mark.asyncio
async def test_never_reviewed_sorts_first_in_storage_order():
    storage = MemoryStorage(
        {
            PROGRESS_STORAGE_KEY: {
                "3:1": {"status": "learning", "lastReviewed": "2024-01-05T00:00:00+00:00"},
                "3:9": {"status": "reviewing", "lastReviewed": None},
                "3:2": {"status": "learning", "lastReviewed": "2024-01-01T00:00:00+00:00"},
                "3:4": {"status": "learning"},
            }
        }
    )
    scheduler = ReviewScheduler(ProgressStore(storage))

    due = await scheduler.get_due_units()
    assert [str(d.unit_id) for d in due] == ["3:9", "3:4", "3:2", "3:1"]


@pytest.mark.asyncio
async def test_due_units_empty(storage):
    assert await ReviewScheduler(ProgressStore(storage)).get_due_units() == []


@pytest.mark.asyncio
async def test_mastered_units(storage, clock):
    store = ProgressStore(storage, clock=clock)
    await store.update_status(UnitId(1, 2), S.MASTERED)
    await store.update_status(UnitId(1, 1), S.LEARNING)
    await store.update_status(UnitId(1, 3), S.MASTERED)

    mastered = await ReviewScheduler(store).get_mastered_units()
    assert [u for u, _ in mastered] == [UnitId(1, 2), UnitId(1, 3)]
