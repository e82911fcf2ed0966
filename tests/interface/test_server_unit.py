from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from hafiz.application.service import MemorizationService
from hafiz.consts import VERSION
from hafiz.infrastructure.adapters import MemoryStorage
from hafiz.server import app, get_service

from ..conftest import FailingStorage


@pytest.fixture
def storage():
    return FailingStorage()


@pytest.fixture
def client(storage):
    service = MemorizationService.from_storage(storage)
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version(client):
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


def test_read_unknown_progress(client):
    response = client.get("/progress/2:255")
    assert response.status_code == 200
    assert response.json() == {"unit": "2:255", "status": "not_started", "last_reviewed": None}


def test_update_then_due(client):
    assert client.put("/progress/2:5", json={"status": "learning"}).status_code == 200
    response = client.put("/progress/2:5", json={"status": "reviewing"})
    assert response.status_code == 200
    assert response.json()["status"] == "reviewing"
    assert response.json()["last_reviewed"] is not None

    due = client.get("/due").json()
    assert [(d["unit"], d["status"]) for d in due] == [("2:5", "reviewing")]


def test_invalid_status_is_422(client):
    response = client.put("/progress/2:5", json={"status": "memorized"})
    assert response.status_code == 422
    assert "Invalid memorization status" in response.json()["detail"]


def test_invalid_unit_is_422(client):
    response = client.get("/progress/0:1")
    assert response.status_code == 422


def test_review_endpoint(client):
    response = client.post("/review/1:1", json={"quality": 5})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["progress"]["status"] == "reviewing"
    assert data["card"]["interval"] == 1

    client.post("/review/1:1", json={"quality": 5})
    mastered = client.get("/mastered").json()
    assert [m["unit"] for m in mastered] == ["1:1"]


def test_stats_and_clear(client):
    client.put("/progress/1:1", json={"status": "learning"})
    client.put("/progress/1:2", json={"status": "mastered"})
    assert client.get("/stats").json() == {
        "total": 2,
        "learning": 1,
        "reviewing": 0,
        "mastered": 1,
    }

    assert client.delete("/progress").json() == {"cleared": True}
    assert client.get("/stats").json() == {
        "total": 0,
        "learning": 0,
        "reviewing": 0,
        "mastered": 0,
    }


def test_persistence_failure_is_503(client, storage):
    client.put("/progress/1:1", json={"status": "learning"})
    storage.mode = "raise"

    response = client.put("/progress/1:1", json={"status": "mastered"})
    assert response.status_code == 503

    storage.mode = None
    assert client.get("/progress/1:1").json()["status"] == "learning"


def test_review_unexpected_error_is_500(client):
    with patch.object(
        MemorizationService, "record_review", new_callable=AsyncMock
    ) as mock_review:
        mock_review.side_effect = RuntimeError("Boom")
        response = client.post("/review/1:1", json={"quality": 3})

    assert response.status_code == 500
    assert "Boom" in response.json()["detail"]


@pytest.mark.asyncio
async def test_default_service_built_from_config(mock_home, monkeypatch):
    import hafiz.server as server

    monkeypatch.setattr(server, "_service", None)
    monkeypatch.setenv("HAFIZ_BACKEND", "memory")

    service = await get_service()

    assert isinstance(service.progress._storage, MemoryStorage)
    assert await get_service() is service
