"""Shutdown coordination: merging the serve loop and the shutdown watcher into one outcome."""

from .coordinator import CoordinatorState, ShutdownCoordinator, format_address
from .errors import (
    BindError,
    GracefulServerError,
    ServeError,
    ShutdownError,
    ShutdownTimeoutError,
)
from .outcome import Outcome, OutcomeKind

__all__ = [
    'ShutdownCoordinator',
    'CoordinatorState',
    'format_address',
    'Outcome',
    'OutcomeKind',
    'GracefulServerError',
    'BindError',
    'ServeError',
    'ShutdownError',
    'ShutdownTimeoutError',
]
