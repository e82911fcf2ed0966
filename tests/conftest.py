from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from hafiz.domain.ports import KeyValueStorage
from hafiz.infrastructure.adapters import MemoryStorage


class FailingStorage(MemoryStorage):
    """MemoryStorage whose saves can be switched to fail."""

    def __init__(self, initial: dict[str, Any] | None = None, mode: str | None = None):
        super().__init__(initial)
        self.mode = mode  # None, "false" or "raise"
        self.save_calls = 0

    async def save_value(self, key: str, value: Any) -> bool:
        self.save_calls += 1
        if self.mode == "false":
            return False
        if self.mode == "raise":
            raise OSError("disk full")
        return await super().save_value(key, value)


class StepClock:
    """Deterministic clock advancing one minute per call."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(minutes=1)
        return value


@pytest.fixture
def storage() -> KeyValueStorage:
    return MemoryStorage()


@pytest.fixture
def failing_storage() -> FailingStorage:
    return FailingStorage()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/data
    monkeypatch.setenv("HOME", str(home))
    for var in ("HAFIZ_BACKEND", "HAFIZ_DATA_DIR", "HAFIZ_STORAGE_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)
    return home
