"""Shutdown and engine configuration built from composable option functions."""

from .engine import (
    EngineOption,
    EngineSettings,
    build_engine_settings,
    with_access_log,
    with_backlog,
    with_idle_timeout,
    with_max_field_size,
    with_max_line_size,
    with_request_timeout,
)
from .options import (
    DEFAULT_SHUTDOWN_TIMEOUT,
    DEFAULT_SIGNALS,
    Option,
    ShutdownConfig,
    build_config,
    with_engine_options,
    with_logger,
    with_signals,
    with_timeout,
)

__all__ = [
    # Shutdown
    "ShutdownConfig",
    "Option",
    "DEFAULT_SHUTDOWN_TIMEOUT",
    "DEFAULT_SIGNALS",
    "build_config",
    "with_timeout",
    "with_logger",
    "with_signals",
    "with_engine_options",

    # Engine
    "EngineSettings",
    "EngineOption",
    "build_engine_settings",
    "with_idle_timeout",
    "with_request_timeout",
    "with_backlog",
    "with_max_line_size",
    "with_max_field_size",
    "with_access_log",
]
