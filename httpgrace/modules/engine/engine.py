"""aiohttp backed request handling engine with a bounded, draining shutdown."""

import asyncio
import socket
import ssl
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Union

from aiohttp import web
from aiohttp.web_protocol import RequestHandler
from aiohttp.log import access_logger

from ..config import EngineOption, EngineSettings, build_engine_settings
from ..logging import BaseLogger, DefaultLogger
from .errors import DrainTimeoutError, ServerClosedError

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

# Grace given to idle connections, and to requests that outlived the drain, before teardown
CLOSE_GRACE = 0.01


class _TrackedConnection(asyncio.Protocol):
    """Forwards a connection to aiohttp's protocol, telling the engine when request bytes arrive."""

    def __init__(self, engine: "HttpEngine", protocol: RequestHandler):
        self.engine = engine
        self.protocol = protocol

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.protocol.connection_made(transport)

    def data_received(self, data: bytes) -> None:
        self.engine._request_arriving(self.protocol)
        self.protocol.data_received(data)

    def eof_received(self) -> Optional[bool]:
        return self.protocol.eof_received()

    def pause_writing(self) -> None:
        self.protocol.pause_writing()

    def resume_writing(self) -> None:
        self.protocol.resume_writing()

    def connection_lost(self, exc: Optional[BaseException]) -> None:
        self.engine._connection_gone(self.protocol)
        self.protocol.connection_lost(exc)


class HttpEngine:
    """Serves an aiohttp application on a caller supplied socket.

    The engine is single use. Once ``shutdown`` has been called every serve
    call, running or future, raises ``ServerClosedError``.
    """

    def __init__(
        self,
        app: Union[web.Application, Handler],
        settings: Optional[EngineSettings] = None,
        logger: Optional[BaseLogger] = None
    ):
        """
        Initialize the engine.

        Args:
            app: aiohttp application, or a bare request handler mounted on every path
            settings: Engine tuning, defaults to ``EngineSettings()``
            logger: Logger instance for request level warnings
        """
        if not isinstance(app, web.Application):
            app = self._wrap_handler(app)
        if app.frozen:
            raise RuntimeError("Application is already frozen, pass an application that has not been served yet")

        self.app = app
        self.settings = settings or EngineSettings()
        self.logger = logger or DefaultLogger()
        self.app.middlewares.append(self._track_requests)
        self.app.middlewares.append(self._enforce_request_timeout)

        self._runner: Optional[web.AppRunner] = None
        self._server: Optional[asyncio.AbstractServer] = None
        self._serving = False
        self._shutting_down = False
        self._shutdown_task: Optional["asyncio.Future[None]"] = None
        self._setup_done = asyncio.Event()
        self._closed = asyncio.Event()
        self._drained = asyncio.Event()
        self._drained.set()
        self._in_flight = 0
        # Connections that sent request bytes whose handler has not started yet
        self._receiving: Set[RequestHandler] = set()
        self._handling: Set[RequestHandler] = set()

    @property
    def in_flight(self) -> int:
        """Number of requests whose handler is currently running."""
        return self._in_flight

    @property
    def listening(self) -> bool:
        return self._server is not None and self._server.is_serving()

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def configure(self, *options: EngineOption) -> None:
        """Tune the engine before it starts serving."""
        if self._serving or self._shutting_down:
            raise RuntimeError("Engine settings cannot change once serving has started")
        self.settings = build_engine_settings(options, self.settings)

    async def serve(self, sock: socket.socket) -> None:
        """Serve plain HTTP until shutdown.

        Raises:
            ServerClosedError: Once shutdown has started, the expected way out
        """
        self._check_open(sock)
        await self._serve(sock, None)

    async def serve_tls(self, sock: socket.socket, cert_file: str, key_file: str) -> None:
        """Serve HTTPS until shutdown.

        Raises:
            ServerClosedError: Once shutdown has started, the expected way out
            OSError: If the certificate or key cannot be loaded
        """
        self._check_open(sock)
        try:
            ssl_context = self._load_tls(cert_file, key_file)
        except Exception:
            sock.close()
            raise
        await self._serve(sock, ssl_context)

    async def shutdown(self, timeout: float) -> None:
        """Stop accepting connections and wait for in-flight requests.

        Calling it again, concurrently or later, joins the first shutdown.

        Args:
            timeout: Seconds to wait for in-flight requests

        Raises:
            DrainTimeoutError: If requests were still running when the timeout
                elapsed. Their connections have been closed by then.
        """
        if self._shutdown_task is None:
            self._shutdown_task = asyncio.ensure_future(self._shutdown(timeout))
        # Cancelling a caller must not cancel the drain itself
        await asyncio.shield(self._shutdown_task)

    def _check_open(self, sock: socket.socket) -> None:
        if self._shutting_down:
            sock.close()
            raise ServerClosedError()
        if self._serving:
            raise RuntimeError("Engine is already serving")

    async def _serve(self, sock: socket.socket, ssl_context: Optional[ssl.SSLContext]) -> None:
        self._serving = True
        runner = web.AppRunner(
            self.app,
            handle_signals=False,
            shutdown_timeout=CLOSE_GRACE,
            **self._runner_kwargs()
        )
        self._runner = runner
        try:
            await runner.setup()
            loop = asyncio.get_running_loop()
            self._server = await loop.create_server(
                lambda: _TrackedConnection(self, runner.server()),
                sock=sock,
                ssl=ssl_context,
                backlog=self.settings.backlog
            )
        except BaseException:
            sock.close()
            self._runner = None
            await runner.cleanup()
            raise
        finally:
            self._setup_done.set()

        if self._shutdown_task is not None and self._shutdown_task.done():
            # Shutdown gave up waiting for startup, nobody else will tear down
            self._server.close()
            await self._close_connections()

        try:
            await self._closed.wait()
        except asyncio.CancelledError:
            # Nobody will call shutdown for a cancelled serve, release the listener here
            self._shutting_down = True
            self._closed.set()
            self._server.close()
            await self._close_connections()
            raise
        raise ServerClosedError()

    async def _shutdown(self, timeout: float) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        self._shutting_down = True
        self._closed.set()

        timed_out = False
        try:
            if self._serving and not self._setup_done.is_set():
                await asyncio.wait_for(self._setup_done.wait(), timeout)
            if self._server is not None:
                # Stop accepting new connections, established ones keep running
                self._server.close()
            if not self._drained.is_set():
                await asyncio.wait_for(self._drained.wait(), max(deadline - loop.time(), 0))
        except asyncio.TimeoutError:
            timed_out = True

        in_flight = self._in_flight + len(self._receiving)
        if self._setup_done.is_set() or not self._serving:
            await self._close_connections()
        if timed_out:
            raise DrainTimeoutError(timeout, in_flight)

    async def _close_connections(self) -> None:
        runner, self._runner = self._runner, None
        if runner is None:
            return
        if runner.server is not None:
            await runner.server.shutdown(CLOSE_GRACE)
        await runner.cleanup()

    def _request_arriving(self, protocol: RequestHandler) -> None:
        # Bytes that arrive once shutdown started begin a request the drain does not wait for
        if self._shutting_down or protocol in self._handling:
            return
        self._receiving.add(protocol)
        self._drained.clear()

    def _connection_gone(self, protocol: RequestHandler) -> None:
        self._receiving.discard(protocol)
        self._handling.discard(protocol)
        self._update_drained()

    def _update_drained(self) -> None:
        if self._in_flight == 0 and not self._receiving:
            self._drained.set()
        else:
            self._drained.clear()

    @web.middleware
    async def _track_requests(self, request: web.Request, handler: Handler) -> web.StreamResponse:
        """Count running handlers and turn away requests that arrive mid-shutdown."""
        protocol = request.protocol
        started_before_shutdown = protocol in self._receiving
        self._receiving.discard(protocol)
        if self._shutting_down and not started_before_shutdown:
            self._update_drained()
            response = web.Response(status=503, text="Server is shutting down", headers={"Retry-After": "1"})
            response.force_close()
            return response

        self._in_flight += 1
        self._handling.add(protocol)
        self._drained.clear()
        try:
            response = await handler(request)
        finally:
            self._in_flight -= 1
            self._handling.discard(protocol)
            self._update_drained()

        if self._shutting_down:
            response.force_close()
        return response

    @web.middleware
    async def _enforce_request_timeout(self, request: web.Request, handler: Handler) -> web.StreamResponse:
        timeout = self.settings.request_timeout
        if timeout is None:
            return await handler(request)
        try:
            async with asyncio.timeout(timeout) as deadline:
                return await handler(request)
        except TimeoutError:
            if not deadline.expired():
                # Raised by the handler itself, not our deadline
                raise
            self.logger.log_warning("request timed out", method=request.method, path=request.path, timeout=timeout)
            raise web.HTTPServiceUnavailable(text="Request timed out")

    def _runner_kwargs(self) -> Dict[str, Any]:
        return {
            "keepalive_timeout": self.settings.keepalive_timeout,
            "max_line_size": self.settings.max_line_size,
            "max_field_size": self.settings.max_field_size,
            "access_log": access_logger if self.settings.access_log else None,
        }

    @staticmethod
    def _load_tls(cert_file: str, key_file: str) -> ssl.SSLContext:
        context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
        context.load_cert_chain(cert_file, key_file)
        return context

    @staticmethod
    def _wrap_handler(handler: Handler) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", handler)
        return app
