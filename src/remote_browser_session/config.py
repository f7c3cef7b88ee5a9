"""Configuration models for the remote browser session service."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BrowserConfig(BaseModel):
    """Settings for the browser backend."""

    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 720
    launch_args: list[str] = Field(
        default_factory=lambda: [
            "--no-sandbox",
            "--disable-dev-shm-usage",
            "--disable-gpu",
        ]
    )
    screenshot_type: Literal["png", "jpeg"] = "png"


class TimeoutConfig(BaseModel):
    """Bounds (in milliseconds) for the blocking primitives."""

    navigate_ms: int = Field(default=60_000, ge=0)
    observe_ms: int = Field(default=30_000, ge=0)
    action_ms: int = Field(default=30_000, ge=0)


class LimitsConfig(BaseModel):
    """Registry and dispatcher limits."""

    max_sessions: Optional[int] = Field(
        default=None,
        ge=1,
        description="Maximum number of concurrently live sessions (unbounded if unset).",
    )
    max_wait_ms: int = Field(default=60_000, ge=0)
    teardown_on_invalid_instruction: bool = Field(
        default=True,
        description="If False, a malformed instruction leaves the session open.",
    )


class ServiceConfig(BaseModel):
    """Settings for the HTTP surface."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080)


class SessionServiceConfig(BaseSettings):
    """Top-level configuration for the session service."""

    model_config = SettingsConfigDict(
        env_prefix="REMOTE_BROWSER_SESSION_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)


def load_config(
    path: Path | None = None,
    *,
    env_file: Path | None = None,
    **overrides: object,
) -> SessionServiceConfig:
    """Load configuration from an optional YAML file, environment and overrides.

    Later sources win key by key: environment and ``.env`` values, then the
    YAML file, then ``overrides``.
    """

    settings_kwargs: dict[str, Any] = {} if env_file is None else {"_env_file": env_file}
    merged = SessionServiceConfig(**settings_kwargs).model_dump(mode="python")
    for layer in (_read_yaml(path), overrides):
        merged = _merged(merged, layer)
    return SessionServiceConfig.model_validate(merged)


def _read_yaml(path: Path | None) -> Mapping[str, Any]:
    if path is None:
        return {}
    import yaml

    loaded = yaml.safe_load(path.read_text()) or {}
    if not isinstance(loaded, Mapping):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    return loaded


def _merged(base: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in updates.items():
        current = result.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            result[key] = _merged(current, value)
        else:
            result[key] = value
    return result
