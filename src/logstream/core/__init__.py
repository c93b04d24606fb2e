# src/logstream/core/__init__.py
"""Core infrastructure: Configuration, Logging."""

from logstream.core.config import (
    LoggingSettings,
    LogstreamSettings,
    build_http_client,
    load_settings,
)
from logstream.core.logging import configure_logging

__all__ = [
    "LoggingSettings",
    "LogstreamSettings",
    "build_http_client",
    "configure_logging",
    "load_settings",
]
