from pathlib import Path

from hafiz.application.config import AppConfig, resolve_config
from hafiz.application.factory import build_service, build_storage
from hafiz.infrastructure.adapters import JsonFileStorage, MemoryStorage, SqliteStorage


def test_defaults(mock_home):
    config = resolve_config()
    assert config.backend == "json"
    assert config.data_dir.resolve() == (mock_home / ".local/share/hafiz").resolve()
    assert config.storage_timeout == 5.0
    assert config.success_threshold == 3


def test_env_overrides(mock_home, monkeypatch, tmp_path):
    monkeypatch.setenv("HAFIZ_BACKEND", "sqlite")
    monkeypatch.setenv("HAFIZ_DATA_DIR", str(tmp_path / "store"))
    config = resolve_config()
    assert config.backend == "sqlite"
    assert config.sqlite_path == (tmp_path / "store" / "hafiz.sqlite3").resolve()


def test_toml_file_then_env_then_cli(mock_home, monkeypatch):
    cfg = mock_home / ".config/hafiz/config.toml"
    cfg.parent.mkdir(parents=True)
    cfg.write_text('backend = "sqlite"\nsuccess_threshold = 4\nstorage_timeout = 2.5\n')

    config = resolve_config()
    assert config.backend == "sqlite"
    assert config.success_threshold == 4

    monkeypatch.setenv("HAFIZ_SUCCESS_THRESHOLD", "2")
    assert resolve_config().success_threshold == 2

    config = resolve_config({"success_threshold": 5, "backend": None})
    assert config.success_threshold == 5
    assert config.backend == "sqlite"
    assert config.storage_timeout == 2.5


def test_build_storage_per_backend(mock_home, tmp_path):
    assert isinstance(build_storage(AppConfig(backend="memory")), MemoryStorage)

    json_storage = build_storage(AppConfig(backend="json", data_dir=tmp_path))
    assert isinstance(json_storage, JsonFileStorage)
    assert json_storage.data_dir == Path(tmp_path).resolve()

    sqlite_storage = build_storage(AppConfig(backend="sqlite", data_dir=tmp_path, storage_timeout=1))
    assert isinstance(sqlite_storage, SqliteStorage)
    assert sqlite_storage.timeout == 1


def test_build_service_uses_threshold(mock_home):
    service = build_service(AppConfig(backend="memory", success_threshold=4))
    assert service.success_threshold == 4
