from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .adapters.flickr.rest import FLICKR_REST_URL

PROJECT_ROOT = Path(__file__).resolve().parents[2]


class CollectionSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    username: str
    album: str | None = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("collection.username must not be empty")
        return text

    @field_validator("album")
    @classmethod
    def validate_album(cls, value: str | None) -> str | None:
        if value is None:
            return None
        # Album titles are matched exactly, so only blank values are dropped.
        return value if value.strip() else None


class DisplaySettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mode: Literal["carousel", "gallery"] = "carousel"
    auto_advance_seconds: int | None = Field(default=None, ge=5, le=3600)


class RefreshSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    interval_minutes: int | None = Field(default=None, ge=1, le=1440)


class FlickrSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    endpoint: str = FLICKR_REST_URL
    timeout_seconds: int = Field(default=10, ge=1, le=60)

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, value: str) -> str:
        text = value.strip()
        parsed = urlparse(text)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("flickr.endpoint must be an absolute http(s) URL")
        return text


class ViewerYamlSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    collection: CollectionSettings
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    refresh: RefreshSettings = Field(default_factory=RefreshSettings)
    flickr: FlickrSettings = Field(default_factory=FlickrSettings)


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    flickr_api_key: str = ""
    viewer_env: Literal["dev", "test", "prod"] = "dev"
    viewer_config_path: Path = Path("config/viewer.yaml")

    @field_validator("flickr_api_key")
    @classmethod
    def validate_api_key(cls, value: str) -> str:
        return value.strip()


class AppSettings(BaseModel):
    env: EnvSettings
    yaml: ViewerYamlSettings
    project_root: Path
    config_path: Path


def _resolve_project_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return (PROJECT_ROOT / path).resolve()


def _load_yaml_settings(path: Path) -> ViewerYamlSettings:
    if not path.exists():
        raise FileNotFoundError(f"Viewer config file not found: {path}")

    raw_config = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ValueError("Viewer config must be a YAML mapping/object at the top level")
    return ViewerYamlSettings.model_validate(raw_config)


@lru_cache(maxsize=1)
def load_settings() -> AppSettings:
    env = EnvSettings()
    config_path = _resolve_project_path(env.viewer_config_path)
    yaml_settings = _load_yaml_settings(config_path)
    return AppSettings(
        env=env,
        yaml=yaml_settings,
        project_root=PROJECT_ROOT,
        config_path=config_path,
    )
