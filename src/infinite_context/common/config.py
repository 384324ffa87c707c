"""Service configuration from an optional YAML file and environment variables."""
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from infinite_context.common.errors import ConfigError

CONFIG_ENV = "INFINITE_CONTEXT_CONFIG"

# field name -> environment variable
ENV_VARS = {
    "gemini_api_key": "GEMINI_API_KEY",
    "gemini_model": "GEMINI_MODEL",
    "gemini_base_url": "GEMINI_BASE_URL",
    "request_timeout_s": "REQUEST_TIMEOUT",
    "chunk_size": "CHUNK_SIZE",
    "chunk_delay_ms": "CHUNK_DELAY_MS",
    "max_body_bytes": "MAX_BODY_BYTES",
    "chunk_template_path": "CHUNK_TEMPLATE_PATH",
    "log_level": "LOG_LEVEL",
}


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str
    gemini_model: str = "gemini-2.0-flash-lite"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    request_timeout_s: float = 120.0
    chunk_size: int = 500
    chunk_delay_ms: int = 100
    max_body_bytes: int = 10 * 1024 * 1024
    chunk_template_path: str | None = None
    log_level: str = "INFO"

    @property
    def chunk_delay_s(self) -> float:
        return self.chunk_delay_ms / 1000.0


def load_cfg(path: str | Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def _positive(name: str, value: Any, cast: type) -> Any:
    try:
        out = cast(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None
    if out <= 0:
        raise ConfigError(f"{name} must be positive, got {value!r}")
    return out


def settings_from_mapping(values: Mapping[str, Any]) -> Settings:
    """Validate raw values and build Settings."""
    key = values.get("gemini_api_key")
    if not key:
        raise ConfigError("Missing GEMINI_API_KEY environment variable")

    kwargs: dict[str, Any] = {"gemini_api_key": str(key)}
    for name in ("gemini_model", "gemini_base_url", "log_level", "chunk_template_path"):
        if values.get(name):
            kwargs[name] = str(values[name])
    if "gemini_base_url" in kwargs:
        kwargs["gemini_base_url"] = kwargs["gemini_base_url"].rstrip("/")

    if values.get("request_timeout_s") is not None:
        kwargs["request_timeout_s"] = _positive("request_timeout_s", values["request_timeout_s"], float)
    for name in ("chunk_size", "max_body_bytes"):
        if values.get(name) is not None:
            kwargs[name] = _positive(name, values[name], int)
    if values.get("chunk_delay_ms") is not None:
        try:
            delay = int(values["chunk_delay_ms"])
        except (TypeError, ValueError):
            raise ConfigError(f"chunk_delay_ms must be a number, got {values['chunk_delay_ms']!r}") from None
        if delay < 0:
            raise ConfigError("chunk_delay_ms must not be negative")
        kwargs["chunk_delay_ms"] = delay

    return Settings(**kwargs)


def load_settings(cfg_path: str | Path | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """
    Load settings: YAML file values first, environment variables override.

    Args:
        cfg_path: Optional YAML config path; defaults to $INFINITE_CONTEXT_CONFIG.
        environ: Environment mapping, os.environ when omitted.
    """
    env = os.environ if environ is None else environ
    path = cfg_path or env.get(CONFIG_ENV)

    values: dict[str, Any] = {}
    if path:
        values.update(load_cfg(path))
    for name, var in ENV_VARS.items():
        if env.get(var):
            values[name] = env[var]
    return settings_from_mapping(values)
