from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..trigger import TriggerSignal
from .errors import GracefulServerError, ServeError, ShutdownError


class OutcomeKind(str, Enum):
    CLEAN = "clean"
    SHUTDOWN_ERROR = "shutdown_error"
    SERVE_ERROR = "serve_error"


@dataclass(frozen=True)
class Outcome:
    """The single result of one serve invocation."""
    kind: OutcomeKind
    error: Optional[GracefulServerError] = None
    trigger: Optional[TriggerSignal] = None
    shutdown_duration: Optional[float] = None  # seconds, None when shutdown never ran

    @classmethod
    def clean(cls, trigger: Optional[TriggerSignal] = None, shutdown_duration: Optional[float] = None) -> 'Outcome':
        return cls(OutcomeKind.CLEAN, None, trigger, shutdown_duration)

    @classmethod
    def shutdown_failed(
        cls,
        error: ShutdownError,
        trigger: Optional[TriggerSignal] = None,
        shutdown_duration: Optional[float] = None
    ) -> 'Outcome':
        return cls(OutcomeKind.SHUTDOWN_ERROR, error, trigger, shutdown_duration)

    @classmethod
    def serve_failed(
        cls,
        error: ServeError,
        trigger: Optional[TriggerSignal] = None,
        shutdown_duration: Optional[float] = None
    ) -> 'Outcome':
        return cls(OutcomeKind.SERVE_ERROR, error, trigger, shutdown_duration)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.CLEAN

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error
