"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments
  2. Environment variables  (CREATORINDEX__CACHE__TTL_HOURS=48)
  3. creatorindex.yaml      (searched in cwd, then ~/.config/creatorindex/)
  4. Hardcoded defaults

The config file is optional — all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from creatorindex.errors import CreatorIndexError
from creatorindex.sources import ApiSource, normalize_base_url

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("creatorindex")
_DEFAULT_DB_PATH = str(Path(_DEFAULT_DATA_DIR) / "cache.db")
_DEFAULT_INDEX_DIR = str(Path(_DEFAULT_DATA_DIR) / "indexes")


def _find_config_file() -> str | None:
    """Return the path of the first creatorindex.yaml found, or None."""
    candidates = [
        Path("creatorindex.yaml"),
        Path.home() / ".config" / "creatorindex" / "creatorindex.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class SourcesSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kemono: str = "https://kemono.cr"
    coomer: str = "https://coomer.st"

    @field_validator("kemono", "coomer")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        try:
            return normalize_base_url(v)
        except CreatorIndexError as exc:
            raise ValueError(exc.message) from exc

    def base_url_for(self, source: ApiSource) -> str:
        return self.coomer if source is ApiSource.COOMER else self.kemono


class FetcherSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Index files run to several megabytes; keep the read budget generous.
    timeout_seconds: float = 60.0
    connect_timeout_seconds: float = 10.0
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    chunk_size: int = 64 * 1024


class CacheSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ttl_hours: int = 24
    db_path: str = _DEFAULT_DB_PATH
    index_dir: str = _DEFAULT_INDEX_DIR


class SearchSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_results: int = 50
    min_query_length: int = 2
    popular_limit: int = 100
    progress_every: int = 10_000

    @field_validator("max_results", "min_query_length", "popular_limit", "progress_every")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: CREATORINDEX__SEARCH__MAX_RESULTS=25
        env_prefix="CREATORINDEX__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    data_dir: str = _DEFAULT_DATA_DIR
    sources: SourcesSettings = SourcesSettings()
    fetcher: FetcherSettings = FetcherSettings()
    cache: CacheSettings = CacheSettings()
    search: SearchSettings = SearchSettings()
    logging: LoggingSettings = LoggingSettings()

    @model_validator(mode="after")
    def derive_cache_paths(self) -> Settings:
        """Place cache paths under ``data_dir`` unless they were set explicitly."""
        data_dir = Path(self.data_dir).expanduser()
        update: dict[str, str] = {}
        if "db_path" not in self.cache.model_fields_set:
            update["db_path"] = str(data_dir / "cache.db")
        if "index_dir" not in self.cache.model_fields_set:
            update["index_dir"] = str(data_dir / "indexes")
        if update:
            self.cache = self.cache.model_copy(update=update)
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
