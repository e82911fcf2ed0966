from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from hafiz.domain.constants import DEFAULT_SUCCESS_THRESHOLD, STORAGE_TIMEOUT


def config_file_path() -> Path:
    return Path.home() / ".config/hafiz/config.toml"


class AppConfig(BaseSettings):
    """
    Configuration model for hafiz.
    Supports loading from:
    1. Environment variables (HAFIZ_*)
    2. Config file (~/.config/hafiz/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="HAFIZ_",
        extra="ignore",
    )

    # Storage
    backend: Literal["json", "sqlite", "memory"] = "json"
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/hafiz")
    storage_timeout: float = Field(default=STORAGE_TIMEOUT, gt=0)

    # Scheduling
    success_threshold: float = Field(default=DEFAULT_SUCCESS_THRESHOLD, ge=0, le=5)

    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        toml_file = config_file_path()
        if toml_file.exists():
            # Highest priority first: CLI overrides, then env, then the file.
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("data_dir", mode="before")
    @classmethod
    def resolve_data_dir(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @property
    def sqlite_path(self) -> Path:
        return self.data_dir / "hafiz.sqlite3"


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/hafiz/config.toml (if exists)
    3. Environment variables (HAFIZ_*)
    4. cli_overrides (non-None values passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
