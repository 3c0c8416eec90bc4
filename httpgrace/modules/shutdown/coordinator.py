"""Shutdown coordinator reconciling the serve loop with shutdown triggers."""

import asyncio
import socket
import time
from enum import Enum
from typing import Optional

from ..config import ShutdownConfig
from ..engine import DrainTimeoutError, HttpEngine, ServerClosedError
from ..trigger import TriggerSignal, TriggerSource
from .errors import ServeError, ShutdownError, ShutdownTimeoutError
from .outcome import Outcome


class CoordinatorState(str, Enum):
    IDLE = "idle"
    SERVING = "serving"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


def format_address(sock: socket.socket) -> str:
    """Render the local address of a listening socket as host:port."""
    try:
        name = sock.getsockname()
    except OSError:
        return "unknown"
    if isinstance(name, tuple):
        host, port = name[0], name[1]
        if ":" in host:
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    return str(name)


class ShutdownCoordinator:
    """Coordinates one serve invocation with its graceful shutdown.

    Two tasks run concurrently: the serve path, blocked in the engine's serve
    call, and the shutdown watcher, blocked on the trigger source. Their
    results are merged into exactly one ``Outcome``:

    * serve ended with ``ServerClosedError``: the watcher's result, clean or
      ``ShutdownError``
    * serve failed with anything else: ``ServeError``, after the watcher is
      cancelled, or awaited if it had already started shutting down

    ``run`` never returns while the serve call or a started shutdown is still
    running.
    """

    def __init__(
        self,
        engine: HttpEngine,
        config: ShutdownConfig,
        trigger: Optional[TriggerSource] = None
    ):
        """
        Initialize the shutdown coordinator.

        Args:
            engine: Engine to serve with and shut down
            config: Resolved shutdown configuration
            trigger: Trigger source, defaults to one listening for ``config.signals``
        """
        self.engine = engine
        self.config = config
        self.logger = config.logger
        self.trigger = trigger or TriggerSource(config.signals, logger=config.logger)
        self._state = CoordinatorState.IDLE
        self._received: Optional[TriggerSignal] = None
        self._shutdown_duration: Optional[float] = None

    @property
    def state(self) -> CoordinatorState:
        return self._state

    async def run(
        self,
        sock: socket.socket,
        cert_file: Optional[str] = None,
        key_file: Optional[str] = None
    ) -> Outcome:
        """
        Serve on ``sock`` until a trigger fires and shutdown completes.

        Args:
            sock: Bound socket to serve on
            cert_file: Certificate chain, serves HTTPS together with ``key_file``
            key_file: Private key for ``cert_file``

        Returns:
            Outcome: The merged result of the serve and shutdown paths
        """
        if self._state is not CoordinatorState.IDLE:
            raise RuntimeError("A shutdown coordinator can only run once")

        # Armed before serving so a trigger that fires during startup is not lost
        self.trigger.arm()
        watcher: Optional["asyncio.Task[None]"] = None
        try:
            watcher = asyncio.create_task(self._handle_shutdown())
            self._transition(CoordinatorState.SERVING)

            try:
                await self._serve(sock, cert_file, key_file)
            except ServeError as e:
                self._transition(CoordinatorState.SHUTTING_DOWN)
                await self._stop_watcher(watcher)
                return Outcome.serve_failed(e, self._received, self._shutdown_duration)

            if not self.trigger.fired:
                # Shutdown was started on the engine directly, join that drain
                self.trigger.fire(TriggerSignal.serve_exited())
            try:
                await watcher
            except ShutdownError as e:
                return Outcome.shutdown_failed(e, self._received, self._shutdown_duration)
            return Outcome.clean(self._received, self._shutdown_duration)
        finally:
            self.trigger.disarm()
            if watcher is not None and not watcher.done():
                watcher.cancel()
            self._transition(CoordinatorState.TERMINATED)

    async def _serve(self, sock: socket.socket, cert_file: Optional[str], key_file: Optional[str]) -> None:
        tls = bool(cert_file and key_file)
        self.logger.log_info(
            "starting server",
            mode="HTTPS" if tls else "HTTP",
            addr=format_address(sock),
            shutdown_timeout=self.config.timeout
        )
        try:
            if tls:
                await self.engine.serve_tls(sock, cert_file, key_file)
            else:
                await self.engine.serve(sock)
        except ServerClosedError:
            return
        except Exception as e:
            self.logger.log_error("server error", error=str(e) or type(e).__name__)
            raise ServeError(str(e) or type(e).__name__) from e

    async def _handle_shutdown(self) -> None:
        trigger = await self.trigger.wait()
        self._received = trigger
        # One trigger is all we act on, later ones fall back to the previous handlers
        self.trigger.disarm()
        self._transition(CoordinatorState.SHUTTING_DOWN)
        self.logger.log_info("shutdown signal received", signal=str(trigger))

        started = time.monotonic()
        try:
            await self.engine.shutdown(self.config.timeout)
        except DrainTimeoutError as e:
            self._log_failure(e, started)
            raise ShutdownTimeoutError(self.config.timeout, e.in_flight) from e
        except Exception as e:
            self._log_failure(e, started)
            raise ShutdownError(str(e) or type(e).__name__) from e

        self._shutdown_duration = time.monotonic() - started
        self.logger.log_info(
            "server shutdown completed gracefully",
            duration=round(self._shutdown_duration, 3)
        )

    def _log_failure(self, error: Exception, started: float) -> None:
        self._shutdown_duration = time.monotonic() - started
        self.logger.log_error(
            "server shutdown failed",
            error=str(error) or type(error).__name__,
            timeout=self.config.timeout,
            duration=round(self._shutdown_duration, 3)
        )

    async def _stop_watcher(self, watcher: "asyncio.Task[None]") -> None:
        """Tear down the watcher after the serve loop failed on its own."""
        if self._received is None:
            watcher.cancel()
        # Wait even after cancelling so the watcher never outlives the invocation
        await asyncio.wait([watcher])
        if not watcher.cancelled() and watcher.exception() is not None:
            self.logger.log_debug(
                "discarding shutdown result, serve error takes precedence",
                error=str(watcher.exception())
            )

    def _transition(self, state: CoordinatorState) -> None:
        if self._state is state:
            return
        self.logger.log_debug("coordinator state changed", previous=self._state.value, state=state.value)
        self._state = state
