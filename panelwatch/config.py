"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from panelwatch.utils.platform import get_config_dir, get_data_dir


class ZoomConfig(BaseModel):
    base_url: str = "https://api.zoom.us/v2"
    access_token: str = ""
    # Server-to-Server OAuth, used when access_token is empty
    account_id: str = ""
    client_id: str = ""
    client_secret: str = ""
    token_url: str = "https://zoom.us/oauth/token"
    user_id: str = "me"
    page_size: int = Field(default=300, ge=1, le=300)
    timeout: float = 30.0


class DetectorConfig(BaseModel):
    webinars: list[str] = Field(default_factory=list)
    canonical_fingerprint: bool = False

    @field_validator("webinars", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        # Zoom webinar IDs are numeric; YAML hands them over as ints
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        return value


class TimerConfig(BaseModel):
    interval_seconds: float = Field(default=60 * 15, gt=0)
    run_on_start: bool = True


class SinkConfig(BaseModel):
    dedupe_window: int = Field(default=100, ge=1)
    webhook_url: str = ""
    webhook_headers: dict[str, str] = Field(default_factory=dict)
    webhook_timeout: float = 10.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PANELWATCH_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    zoom: ZoomConfig = Field(default_factory=ZoomConfig)
    detector: DetectorConfig = Field(default_factory=DetectorConfig)
    timer: TimerConfig = Field(default_factory=TimerConfig)
    sink: SinkConfig = Field(default_factory=SinkConfig)
    data_dir: str = ""
    log_level: str = "INFO"
    log_json: bool = False
    log_mask_emails: bool = True

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML arrives as init kwargs; env vars must win over it
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    def get_data_dir(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir)
        return get_data_dir()


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config."""
    yaml_data: dict[str, Any] = {}

    # Determine config file path
    if config_path is None:
        config_path = os.environ.get("PANELWATCH_CONFIG")
    if config_path is None:
        default = get_config_dir() / "config.yaml"
        if default.exists():
            config_path = default

    # Load YAML if found
    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    # Build settings: YAML values as defaults, env vars override
    return Settings(**yaml_data)
