"""Scoped, one-shot delivery of the event that asks the server to shut down."""

import asyncio
import signal
import threading
from asyncio import AbstractEventLoop
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Union
import types

from ..logging import BaseLogger, DefaultLogger

# Type for signal handlers
SignalHandlerType = Union[Callable[[int, Optional[types.FrameType]], Any], int, None]


@dataclass(frozen=True)
class TriggerSignal:
    """What caused shutdown. Carried to the logs and the outcome only."""
    name: str
    signum: Optional[int] = None

    @classmethod
    def from_signal(cls, sig: Union[signal.Signals, int]) -> 'TriggerSignal':
        sig = signal.Signals(sig)
        return cls(name=sig.name, signum=int(sig))

    @classmethod
    def external(cls, reason: str = "shutdown requested") -> 'TriggerSignal':
        return cls(name=reason)

    @classmethod
    def serve_exited(cls) -> 'TriggerSignal':
        return cls(name="serve loop exited")

    def __str__(self) -> str:
        return self.name


class TriggerSource:
    """Delivers at most one shutdown trigger to an awaiting coordinator.

    OS signals are registered with the running event loop on ``arm()`` and
    released on ``disarm()``, restoring whatever handlers were installed
    before. ``fire()`` is the external cancellation path and may be called from
    any thread, even before the source is armed.
    """

    def __init__(self, signals: Iterable[Union[signal.Signals, int]], logger: Optional[BaseLogger] = None):
        self.signals = tuple(signal.Signals(sig) for sig in signals)
        self.logger = logger or DefaultLogger()
        self._lock = threading.Lock()
        self._loop: Optional[AbstractEventLoop] = None
        self._future: Optional["asyncio.Future[TriggerSignal]"] = None
        self._pending: Optional[TriggerSignal] = None
        self._original_handlers: Dict[signal.Signals, SignalHandlerType] = {}

    @property
    def armed(self) -> bool:
        return self._loop is not None

    @property
    def fired(self) -> bool:
        """Whether a trigger has been delivered (or is waiting for ``arm()``)."""
        if self._pending is not None:
            return True
        return self._future is not None and self._future.done() and not self._future.cancelled()

    def arm(self) -> None:
        """Start listening for triggers on the running event loop.

        Raises:
            RuntimeError: If the source is already armed or no loop is running
        """
        loop = asyncio.get_running_loop()
        with self._lock:
            if self._loop is not None:
                raise RuntimeError("Trigger source is already armed")
            self._loop = loop
            self._future = loop.create_future()
            pending, self._pending = self._pending, None

        for sig in self.signals:
            original = signal.getsignal(sig)
            try:
                loop.add_signal_handler(sig, self._deliver, TriggerSignal.from_signal(sig))
            except (NotImplementedError, RuntimeError, ValueError) as e:
                # Signal handlers only work in the main thread and not on every platform
                self.logger.log_warning("unable to listen for signal", signal=sig.name, error=str(e))
                continue
            self._original_handlers[sig] = original

        if pending is not None:
            self._deliver(pending)

    def disarm(self) -> None:
        """Unregister every signal handler and restore the previous ones.

        Safe to call more than once and on a source that was never armed.
        """
        with self._lock:
            loop, self._loop = self._loop, None
        if loop is None:
            return

        for sig, original in self._original_handlers.items():
            try:
                loop.remove_signal_handler(sig)
                if original is not None:
                    signal.signal(sig, original)
            except (RuntimeError, ValueError) as e:
                self.logger.log_warning("unable to restore signal handler", signal=sig.name, error=str(e))
        self._original_handlers.clear()

    def fire(self, trigger: Optional[TriggerSignal] = None) -> None:
        """Request shutdown from outside the signal path. Thread-safe."""
        trigger = trigger or TriggerSignal.external()
        with self._lock:
            loop = self._loop
            if loop is None:
                if self._future is None and self._pending is None:
                    self._pending = trigger
                    return
        if loop is None:
            self.logger.log_debug("ignoring trigger, source is no longer armed", signal=str(trigger))
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            self._deliver(trigger)
        else:
            loop.call_soon_threadsafe(self._deliver, trigger)

    async def wait(self) -> TriggerSignal:
        """Block until the first trigger is delivered."""
        if self._future is None:
            raise RuntimeError("Trigger source must be armed before waiting")
        return await self._future

    def _deliver(self, trigger: TriggerSignal) -> None:
        if self._future is None or self._future.done():
            self.logger.log_debug("ignoring trigger, shutdown already requested", signal=str(trigger))
            return
        self._future.set_result(trigger)

    def __enter__(self) -> 'TriggerSource':
        self.arm()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disarm()
