from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mnemo.domain.constants import (
    DEFAULT_CURVE_DAYS,
    DEFAULT_DUE_LIMIT,
    DEFAULT_UPCOMING_DAYS,
)


def config_dir() -> Path:
    return Path.home() / ".config/mnemo"


def config_files() -> list[Path]:
    return [config_dir() / "config.toml", Path.home() / ".mnemo.toml"]


class AppConfig(BaseSettings):
    """
    Configuration model for mnemo.
    Supports loading from:
    1. Config file (~/.config/mnemo/config.toml or ~/.mnemo.toml)
    2. Environment variables (MNEMO_*)
    3. Manual overrides (CLI / API)
    Later sources win.
    """

    model_config = SettingsConfigDict(
        env_prefix="MNEMO_",
        extra="ignore",
    )

    # Paths
    store_path: Path = Field(default_factory=lambda: config_dir() / "store.json")

    # Sessions
    due_limit: int = Field(default=DEFAULT_DUE_LIMIT, gt=0)
    upcoming_days: int = Field(default=DEFAULT_UPCOMING_DAYS, ge=0)
    curve_days: int = Field(default=DEFAULT_CURVE_DAYS, gt=0)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"

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

        # First existing file only; sources listed first take priority.
        toml_file = next((f for f in config_files() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("store_path", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        return Path(v).expanduser()


def resolve_config(overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. TOML config file (if exists)
    3. Environment variables (MNEMO_*)
    4. overrides (None values are ignored so they don't mask lower layers)
    """
    clean = {k: v for k, v in (overrides or {}).items() if v is not None}
    return AppConfig(**clean)
