import signal
from datetime import timedelta
from typing import Callable, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from ..logging import BaseLogger, DefaultLogger
from .engine import EngineOption

DEFAULT_SHUTDOWN_TIMEOUT = 10.0
DEFAULT_SIGNALS: Tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


class ShutdownConfig(BaseModel):
    """Immutable graceful shutdown parameters, resolved once before serving."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    timeout: float = Field(default=DEFAULT_SHUTDOWN_TIMEOUT, ge=0)  # seconds
    signals: Tuple[signal.Signals, ...] = DEFAULT_SIGNALS
    logger: BaseLogger = Field(default_factory=DefaultLogger)
    engine_options: Tuple[EngineOption, ...] = ()


Option = Callable[[ShutdownConfig], ShutdownConfig]


def _to_seconds(value: Union[float, int, timedelta]) -> float:
    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    else:
        seconds = float(value)
    if seconds < 0:
        raise ValueError(f"Shutdown timeout must not be negative, got {seconds}")
    return seconds


def with_timeout(value: Union[float, int, timedelta]) -> Option:
    """Set the graceful shutdown timeout.

    Args:
        value: Seconds, or a timedelta
    """
    seconds = _to_seconds(value)

    def apply(config: ShutdownConfig) -> ShutdownConfig:
        return config.model_copy(update={"timeout": seconds})
    return apply


def with_logger(logger: Optional[BaseLogger]) -> Option:
    """Set the logger for lifecycle events. None keeps the current one."""
    def apply(config: ShutdownConfig) -> ShutdownConfig:
        if logger is None:
            return config
        return config.model_copy(update={"logger": logger})
    return apply


def with_signals(*signals: Union[signal.Signals, int]) -> Option:
    """Set which OS signals trigger graceful shutdown.

    The set is replaced as a whole. Passing no signals keeps the current set so
    an empty override never disables signal handling entirely.
    """
    resolved = tuple(signal.Signals(sig) for sig in signals)

    def apply(config: ShutdownConfig) -> ShutdownConfig:
        if not resolved:
            return config
        return config.model_copy(update={"signals": resolved})
    return apply


def with_engine_options(*options: EngineOption) -> Option:
    """Set the options tuning the underlying aiohttp engine.

    Like ``with_signals`` the list is replaced as a whole and an empty call is
    a no-op.
    """
    def apply(config: ShutdownConfig) -> ShutdownConfig:
        if not options:
            return config
        return config.model_copy(update={"engine_options": tuple(options)})
    return apply


def build_config(*options: Option) -> ShutdownConfig:
    """Apply options in order on top of the defaults, later options win."""
    config = ShutdownConfig()
    for option in options:
        config = option(config)
    return config
