import socket
from typing import Optional, Union

from aiohttp import web

from ..config import Option, build_config, build_engine_settings
from ..engine import Handler, HttpEngine, ServerClosedError
from ..shutdown import Outcome, ShutdownCoordinator
from ..trigger import TriggerSignal, TriggerSource
from .listener import listen


class Server:
    """An aiohttp application with built-in graceful shutdown.

    The handle is single use: it serves once, and a shutdown requested through
    ``shutdown()`` before serving starts is honoured as soon as it does.

    Example:
        server = Server(app, with_timeout(5))
        server.engine.configure(with_idle_timeout(30))
        await server.listen_and_serve("127.0.0.1:8080")
    """

    def __init__(self, app: Union[web.Application, Handler], *options: Option):
        """
        Initialize the server.

        Args:
            app: aiohttp application or bare request handler
            options: Configuration options, applied in order
        """
        self.config = build_config(*options)
        self.logger = self.config.logger
        self.engine = HttpEngine(
            app,
            settings=build_engine_settings(self.config.engine_options),
            logger=self.logger
        )
        self.trigger = TriggerSource(self.config.signals, logger=self.logger)
        self.addr: Optional[str] = None
        self.outcome: Optional[Outcome] = None
        self._started = False

    async def listen_and_serve(self, addr: str) -> None:
        """Serve plain HTTP on ``addr`` until shut down.

        Raises:
            BindError: If ``addr`` cannot be bound, before anything else happens
            ServeError: If serving failed for another reason than shutdown
            ShutdownTimeoutError: If in-flight requests outlived the timeout
        """
        self.addr = addr
        sock = listen(addr, self.engine.settings.backlog)
        await self._serve(sock)

    async def listen_and_serve_tls(self, addr: str, cert_file: str, key_file: str) -> None:
        """Serve HTTPS on ``addr`` until shut down."""
        self.addr = addr
        sock = listen(addr, self.engine.settings.backlog)
        await self._serve(sock, cert_file, key_file)

    async def serve(self, sock: socket.socket) -> None:
        """Serve plain HTTP on an already bound socket until shut down."""
        await self._serve(sock)

    async def serve_tls(self, sock: socket.socket, cert_file: str, key_file: str) -> None:
        """Serve HTTPS on an already bound socket until shut down."""
        await self._serve(sock, cert_file, key_file)

    def shutdown(self, reason: str = "shutdown requested") -> None:
        """Ask the server to shut down gracefully. Safe to call from any thread."""
        self.trigger.fire(TriggerSignal.external(reason))

    async def _serve(self, sock: socket.socket, cert_file: Optional[str] = None, key_file: Optional[str] = None) -> None:
        if self._started:
            sock.close()
            if self.outcome is None:
                raise RuntimeError("Server is already serving")
            raise ServerClosedError("Server has already been shut down")
        self._started = True

        coordinator = ShutdownCoordinator(self.engine, self.config, self.trigger)
        self.outcome = await coordinator.run(sock, cert_file, key_file)
        self.outcome.raise_for_error()
