# src/settee/config.py
from __future__ import annotations

import os
from functools import lru_cache, partial
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
    YamlConfigSettingsSource,
)

CONFIG_FILE_ENV = "SETTEE_CONFIG_FILE"


class ConfigError(RuntimeError):
    """Configuration-related error."""
    pass


# ─────────────────────────────────────────────────────────────
# Section configs
# ─────────────────────────────────────────────────────────────


class LoggingSettings(BaseModel):
    level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "INFO"
    format: str = "%(asctime)-20s %(name)-30s %(levelname)-8s: %(message)s"


class ModelSettings(BaseModel):
    discriminator_field: str = Field(
        "type",
        description="Document field naming the model type on the wire.",
        min_length=1,
    )
    single_result_limit: int = Field(
        2,
        description=(
            "Row limit for single-model queries. Must be at least 2 so that an "
            "ambiguous key can be told apart from a unique one in one round trip."
        ),
        ge=2,
    )


# ─────────────────────────────────────────────────────────────
# Top-level settings
# ─────────────────────────────────────────────────────────────


class AppSettings(BaseSettings):
    """
    Canonical configuration for settee.

    Precedence (highest → lowest):

    1. Init kwargs (tests/overrides)
    2. Environment variables
    3. .env and .env.local
    4. Secret files in /run/secrets/settee
    5. Config file, only when one is named explicitly
    6. Defaults in this class
    """

    model_config = SettingsConfigDict(
        env_prefix="SETTEE_",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        secrets_dir="/run/secrets/settee",
        extra="ignore",
        validate_default=True,
    )

    logging: LoggingSettings = LoggingSettings()
    models: ModelSettings = ModelSettings()


def _file_backed(path: Path) -> type[AppSettings]:
    """An AppSettings variant that reads `path` below every other source."""
    suffix = path.suffix.lower()
    if suffix == ".toml":
        source = partial(TomlConfigSettingsSource, toml_file=path)
    elif suffix in {".yaml", ".yml"}:
        source = partial(YamlConfigSettingsSource, yaml_file=path)
    else:
        raise ConfigError(f"Unsupported config file type: {path} (expected .toml/.yaml/.yml)")
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    class FileBackedSettings(AppSettings):
        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,
            file_secret_settings: PydanticBaseSettingsSource,
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Earlier sources override later sources.
            return (
                init_settings,
                env_settings,
                dotenv_settings,
                file_secret_settings,
                source(settings_cls),
            )

    return FileBackedSettings


def _load(config_file: Path | None, overrides: dict[str, Any]) -> AppSettings:
    settings_cls = AppSettings if config_file is None else _file_backed(config_file)
    return settings_cls(**overrides)


@lru_cache(maxsize=8)
def _cached(config_file: Path | None) -> AppSettings:
    return _load(config_file, {})


def get_settings(*, config_file: str | Path | None = None, **overrides: Any) -> AppSettings:
    """
    Accessor for process-wide settings.

    A config file is read only when named, either by `config_file` or by the
    SETTEE_CONFIG_FILE environment variable; settee never picks up a file
    from the working directory on its own.

    `overrides` are init kwargs with the highest precedence. Calls without
    overrides are cached per config file.
    """
    if config_file is None:
        config_file = os.environ.get(CONFIG_FILE_ENV) or None
    resolved = Path(config_file) if config_file is not None else None

    if overrides:
        return _load(resolved, overrides)
    return _cached(resolved)


def clear_settings_cache() -> None:
    _cached.cache_clear()
