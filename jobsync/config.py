"""Client configuration and defaults.

Settings come from, lowest precedence first: the defaults below, an optional YAML
file (JOBSYNC_CONFIG or an explicit path), then JOBSYNC_* environment variables.

Example jobsync.yaml:

    base_url: http://arrflix.local:8080
    api_token: "..."
    timeout: 30
    enforce_sequence: false
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from jobsync.core.errors import ValidationError

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Server
DEFAULT_BASE_URL = "http://localhost:8080"
EVENTS_PATH = "/v1/events"

# Timeouts (seconds)
DEFAULT_TIMEOUT = 30.0
DEFAULT_CONNECT_TIMEOUT = 3.0
DEFAULT_STREAM_READ_TIMEOUT = 60.0  # server pings every 15s

_ENV_PREFIX = "JOBSYNC_"
_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    api_token: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    stream_read_timeout: float | None = DEFAULT_STREAM_READ_TIMEOUT
    events_path: str = EVENTS_PATH
    enforce_sequence: bool = False


def _coerce(name: str, value: Any) -> Any:
    if name in ("timeout", "connect_timeout"):
        return float(value)
    if name == "stream_read_timeout":
        if value is None or str(value).strip().lower() in {"", "none", "0"}:
            return None
        return float(value)
    if name == "enforce_sequence":
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in _TRUE
    if name == "api_token":
        return str(value) if value else None
    return str(value)


def _apply(settings: Settings, values: Mapping[str, Any], source: str) -> Settings:
    known = {f.name for f in fields(Settings)}
    changes: dict[str, Any] = {}
    for key, value in values.items():
        if key not in known:
            raise ValidationError(f"Unknown setting '{key}' in {source}")
        try:
            changes[key] = _coerce(key, value)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid value for '{key}' in {source}: {value!r}", cause=e) from e
    return replace(settings, **changes)


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ValidationError(f"Cannot read config file {path}", cause=e) from e
    if not isinstance(data, dict):
        raise ValidationError(f"Config file {path} must contain a mapping")
    return data


def _from_env(environ: Mapping[str, str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for f in fields(Settings):
        key = _ENV_PREFIX + f.name.upper()
        if key in environ:
            out[f.name] = environ[key]
    return out


def load_settings(
    path: str | Path | None = None, environ: Mapping[str, str] | None = None
) -> Settings:
    env = os.environ if environ is None else environ
    settings = Settings()
    cfg_path = path or env.get(_ENV_PREFIX + "CONFIG")
    if cfg_path:
        settings = _apply(settings, _load_yaml(Path(cfg_path)), str(cfg_path))
    settings = _apply(settings, _from_env(env), "environment")
    return replace(settings, base_url=settings.base_url.rstrip("/"))
