"""Graceful shutdown for aiohttp servers.

Serve until SIGINT/SIGTERM (or an explicit request), stop accepting new
connections, drain in-flight requests within a bounded timeout and report a
single outcome to the caller.
"""

from .modules.config import (
    EngineSettings,
    ShutdownConfig,
    build_config,
    with_access_log,
    with_backlog,
    with_engine_options,
    with_idle_timeout,
    with_logger,
    with_max_field_size,
    with_max_line_size,
    with_request_timeout,
    with_signals,
    with_timeout,
)
from .modules.engine import HttpEngine, ServerClosedError
from .modules.server import (
    Server,
    listen_and_serve,
    listen_and_serve_tls,
    serve,
    serve_tls,
)
from .modules.shutdown import (
    BindError,
    GracefulServerError,
    Outcome,
    OutcomeKind,
    ServeError,
    ShutdownError,
    ShutdownTimeoutError,
)
from .modules.trigger import TriggerSignal

__all__ = [
    # Facade
    "Server",
    "listen_and_serve",
    "listen_and_serve_tls",
    "serve",
    "serve_tls",

    # Options
    "ShutdownConfig",
    "EngineSettings",
    "build_config",
    "with_timeout",
    "with_logger",
    "with_signals",
    "with_engine_options",
    "with_idle_timeout",
    "with_request_timeout",
    "with_backlog",
    "with_max_line_size",
    "with_max_field_size",
    "with_access_log",

    # Results
    "Outcome",
    "OutcomeKind",
    "TriggerSignal",
    "HttpEngine",

    # Errors
    "GracefulServerError",
    "BindError",
    "ServeError",
    "ShutdownError",
    "ShutdownTimeoutError",
    "ServerClosedError",
]
