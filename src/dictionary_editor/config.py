"""Runtime settings: YAML file first, environment variables on top."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

from dictionary_editor.exceptions import ConfigError
from dictionary_editor.gateway import MemoryGateway, RemoteGateway, RestGateway
from dictionary_editor.generator import DEFAULT_MODEL

logger = logging.getLogger(__name__)

PLACEHOLDER_URL = "https://placeholder-project.supabase.co"
DEFAULT_CACHE_PATH = "~/.dictionary_editor.db"

# Environment variable -> Settings field; earlier names win.
_ENV_VARS: tuple[tuple[str, str], ...] = (
    ("DICTIONARY_EDITOR_DB", "cache_path"),
    ("SUPABASE_URL", "remote_url"),
    ("SUPABASE_ANON_KEY", "remote_key"),
    ("GEMINI_API_KEY", "generative_api_key"),
    ("API_KEY", "generative_api_key"),
    ("DICTIONARY_EDITOR_MODEL", "generative_model"),
    ("DICTIONARY_EDITOR_LOG_LEVEL", "log_level"),
)


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved configuration for the CLI and :func:`build_gateway`."""

    cache_path: str = DEFAULT_CACHE_PATH
    remote_url: str | None = None
    remote_key: str | None = None
    generative_api_key: str | None = None
    generative_model: str = DEFAULT_MODEL
    request_timeout: float = 10.0
    log_level: str = "WARNING"

    @property
    def remote_configured(self) -> bool:
        return bool(
            self.remote_url
            and self.remote_key
            and self.remote_url.rstrip("/") != PLACEHOLDER_URL
        )

    @property
    def resolved_cache_path(self) -> str:
        if self.cache_path == ":memory:":
            return self.cache_path
        return str(Path(self.cache_path).expanduser())


def _read_file(path: Path) -> dict:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return data


def load_settings(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Build :class:`Settings` from an optional YAML file and the environment."""
    environ = os.environ if environ is None else environ
    known = {f.name for f in fields(Settings)}
    values: dict = {}

    if path is not None:
        data = _read_file(Path(path))
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        values.update(data)

    seen: set[str] = set()
    for var, field_name in _ENV_VARS:
        value = environ.get(var)
        if value and field_name not in seen:
            values[field_name] = value
            seen.add(field_name)

    if "request_timeout" in values:
        try:
            values["request_timeout"] = float(values["request_timeout"])
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"request_timeout must be a number, got {values['request_timeout']!r}"
            ) from e

    settings = replace(Settings(), **values)
    if not isinstance(logging.getLevelName(str(settings.log_level).upper()), int):
        raise ConfigError(f"Unknown log_level: {settings.log_level!r}")
    if settings.remote_url and not settings.remote_configured:
        logger.info("Remote backend is not configured; running local-only")
    return settings


def build_gateway(settings: Settings) -> RemoteGateway:
    """Return a REST gateway when credentials are set, else an in-process one."""
    if settings.remote_configured:
        return RestGateway(
            settings.remote_url, settings.remote_key,
            timeout=settings.request_timeout,
        )
    logger.debug("Using in-memory gateway")
    return MemoryGateway()
