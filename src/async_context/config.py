"""Environment-driven settings and logging setup for async-context.

Settings are read from environment variables once and cached:

    ASYNC_CONTEXT_LOG_LEVEL    Level used by configure_logging (default: WARNING)
    ASYNC_CONTEXT_TRACE        Log every bind/restore at DEBUG (default: false)
    ASYNC_CONTEXT_MAX_WORKERS  Default size of ContextAwareThreadPoolExecutor
                               (default: ThreadPoolExecutor's own default,
                               valid range: 1-1024, clamped automatically)

The library never touches the root logger. Applications that want the
package's diagnostics on stderr call configure_logging().
"""

from __future__ import annotations

import logging
import os
import sys

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
DEFAULT_LOG_LEVEL = "WARNING"
MAX_WORKERS_LIMIT = 1024
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_TRUTHY = {"1", "true", "yes", "on"}


def _normalize_log_level(value: str) -> str:
    level = value.strip().upper()
    if level not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level '{value}'. Valid levels: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )
    return level


class ContextSettings(BaseModel):
    """Validated runtime settings for the async-context package."""

    model_config = ConfigDict(frozen=True)

    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        description="Log level applied to the async_context logger by configure_logging",
    )
    trace_bindings: bool = Field(
        default=False,
        description="Emit a DEBUG record for every bind and restore",
    )
    max_workers: int | None = Field(
        default=None,
        ge=1,
        le=MAX_WORKERS_LIMIT,
        description="Default worker count for ContextAwareThreadPoolExecutor",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the level name and reject unknown levels."""
        return _normalize_log_level(v)

    @classmethod
    def from_env(cls) -> ContextSettings:
        """Build settings from ASYNC_CONTEXT_* environment variables.

        Invalid values never fail the load: an unknown log level falls back to
        WARNING, an unparsable worker count is ignored and an out-of-range one
        is clamped.

        Returns:
            ContextSettings reflecting the current environment
        """
        log_level = os.getenv("ASYNC_CONTEXT_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
        if log_level not in VALID_LOG_LEVELS:
            print(
                f"Warning: Invalid ASYNC_CONTEXT_LOG_LEVEL '{log_level}'. "
                f"Valid levels: {', '.join(sorted(VALID_LOG_LEVELS))}. "
                f"Using {DEFAULT_LOG_LEVEL}.",
                file=sys.stderr,
            )
            log_level = DEFAULT_LOG_LEVEL

        trace_bindings = os.getenv("ASYNC_CONTEXT_TRACE", "false").strip().lower() in _TRUTHY

        max_workers: int | None = None
        raw_workers = os.getenv("ASYNC_CONTEXT_MAX_WORKERS", "").strip()
        if raw_workers:
            try:
                max_workers = max(1, min(MAX_WORKERS_LIMIT, int(raw_workers)))
            except ValueError:
                logger.warning(f"Ignoring non-integer ASYNC_CONTEXT_MAX_WORKERS: {raw_workers!r}")

        return cls(
            log_level=log_level,
            trace_bindings=trace_bindings,
            max_workers=max_workers,
        )


_settings: ContextSettings | None = None


def get_settings() -> ContextSettings:
    """Return the process settings, loading them from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = ContextSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Send async_context diagnostics to stderr.

    Calling this more than once only updates the level; a second handler is
    never attached.

    Args:
        level: Level name or number. Defaults to ContextSettings.log_level.

    Returns:
        The configured package logger
    """
    package_logger = logging.getLogger("async_context")
    if level is None:
        level = get_settings().log_level
    if isinstance(level, str):
        level = getattr(logging, _normalize_log_level(level))

    package_logger.setLevel(level)
    if not any(getattr(h, "_async_context_handler", False) for h in package_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._async_context_handler = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)

    return package_logger


__all__ = [
    "ContextSettings",
    "configure_logging",
    "get_settings",
    "reset_settings",
]
