# src/logstream/core/config.py
"""
Configuration schema and loading for logstream.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import httpx
from pydantic import BaseModel, Field, field_validator

from logstream.contracts.errors import InvalidMetricTypeError
from logstream.stream.request_factory import parse_metric_types


class LoggingSettings(BaseModel):
    """Diagnostic logging (stderr); never mixed into the envelope stream."""

    model_config = {"frozen": True}

    level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = Field(
        default="WARNING",
        description="Root log level",
    )
    json_output: bool = Field(
        default=False,
        description="Emit structured JSON log records instead of console lines",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class LogstreamSettings(BaseModel):
    """Top-level logstream configuration.

    Example YAML:
        host: https://log-stream.example.com
        token: ${CF_OAUTH_TOKEN}
        source_ids: [my-app]
        metric_types: [log, gauge]
        shard_id: reader-group-1
        logging:
          level: INFO
    """

    model_config = {"frozen": True}

    host: str = Field(
        description="Gateway host, with or without scheme (https assumed)",
    )
    source_ids: list[str] = Field(
        default_factory=list,
        description="App names or source ids to scope the stream to (empty = all)",
    )
    metric_types: list[str] = Field(
        default_factory=list,
        description="Metric types to request (empty = all five)",
    )
    shard_id: str | None = Field(
        default=None,
        description="Shard token for splitting one stream across readers",
    )
    token: str | None = Field(
        default=None,
        description="OAuth bearer token for the gateway and app lookup",
    )
    api_url: str | None = Field(
        default=None,
        description="Cloud Controller API used to resolve app names (optional)",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Connect/write timeout; reads on the stream never time out",
    )
    verify_tls: bool = Field(
        default=True,
        description="Verify gateway TLS certificates",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Diagnostic logging configuration",
    )

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Host must be non-empty."""
        v = v.strip()
        if not v:
            raise ValueError("host must not be empty")
        return v

    @field_validator("metric_types")
    @classmethod
    def validate_metric_types(cls, v: list[str]) -> list[str]:
        """Every token must be a known metric type (all offenders reported)."""
        try:
            parse_metric_types(v)
        except InvalidMetricTypeError as e:
            raise ValueError(str(e)) from e
        return v

    @field_validator("shard_id", "token", "api_url")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


# Regex pattern for ${VAR} or ${VAR:-default} syntax
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values.

    Args:
        config: Configuration dict (may contain nested structures)

    Returns:
        New dict with environment variables expanded
    """

    def _expand_string(value: str) -> str:
        def replacer(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default = match.group(2)  # None if no default specified
            env_value = os.environ.get(var_name)
            if env_value is not None:
                return env_value
            if default is not None:
                return default
            # No env var and no default - keep original (will likely cause error)
            return match.group(0)

        return _ENV_VAR_PATTERN.sub(replacer, value)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _expand_string(value)
        elif isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_expand_value(item) for item in value]
        else:
            return value

    return {k: _expand_value(v) for k, v in config.items()}


def _lower_keys(value: Any) -> Any:
    """Lowercase mapping keys recursively (Dynaconf keeps env var case)."""
    if isinstance(value, Mapping):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_lower_keys(item) for item in value]
    return value


def load_settings(
    config_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> LogstreamSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Explicit overrides (CLI flags) - highest priority; None values ignored
    2. Environment variables (LOGSTREAM_*)
    3. Config file, if given
    4. Defaults from Pydantic schema - lowest priority

    Environment variable format: LOGSTREAM_LOGGING__LEVEL for nested keys.

    Args:
        config_path: Path to YAML configuration file, or None for env only
        overrides: Values that win over every other source

    Returns:
        Validated LogstreamSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config_path is given but doesn't exist
    """
    from dynaconf import Dynaconf

    # Explicit check for file existence (Dynaconf silently accepts missing files)
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="LOGSTREAM",
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,  # No [default]/[production] sections
        load_dotenv=False,  # The CLI loads .env itself
        merge_enabled=True,  # Deep merge nested dicts
    )

    # Filter out internal Dynaconf settings
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = _lower_keys({k: v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys})
    raw_config = _expand_env_vars(raw_config)

    for key, value in (overrides or {}).items():
        if value is not None:
            raw_config[key] = value

    return LogstreamSettings(**raw_config)


def _authorization_header(token: str) -> str:
    # `cf oauth-token` output already carries the scheme
    if token.lower().startswith("bearer "):
        return token
    return f"Bearer {token}"


def build_http_client(settings: LogstreamSettings) -> httpx.Client:
    """Create the authenticated client shared by app lookup and streaming.

    The read timeout is disabled: the event stream is long-lived and may be
    idle between batches.
    """
    headers: dict[str, str] = {}
    if settings.token is not None:
        headers["Authorization"] = _authorization_header(settings.token)
    return httpx.Client(
        headers=headers,
        timeout=httpx.Timeout(settings.timeout_seconds, read=None),
        verify=settings.verify_tls,
        follow_redirects=False,
    )
