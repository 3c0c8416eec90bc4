"""End to end tests for the Server handle over real sockets."""

import asyncio
import os
import signal

import aiohttp
import pytest
from aiohttp import web

from httpgrace.modules.config import (
    with_engine_options,
    with_idle_timeout,
    with_logger,
    with_signals,
    with_timeout,
)
from httpgrace.modules.engine import ServerClosedError
from httpgrace.modules.server import Server
from httpgrace.modules.shutdown import BindError, OutcomeKind, ServeError, ShutdownTimeoutError
from tests.utils.network import bind_local, fetch, url_for, wait_until


def sleeping_app(delay: float) -> web.Application:
    async def handler(request: web.Request) -> web.Response:
        await asyncio.sleep(delay)
        return web.Response(text="ok")

    app = web.Application()
    app.router.add_get("/", handler)
    return app


@pytest.fixture
def make_server(capture_logger, restore_signals):
    def factory(app, *options):
        return Server(app, with_logger(capture_logger), with_signals(signal.SIGUSR1), *options)
    return factory


class TestServer:
    @pytest.mark.asyncio
    async def test_concurrent_requests_drain(self, make_server):
        """Test that every in-flight request completes when shutdown starts mid-flight."""
        server = make_server(sleeping_app(0.05), with_timeout(2))
        sock = bind_local()
        sock_host, sock_port = sock.getsockname()[:2]
        url = url_for(sock)
        serving = asyncio.create_task(server.serve(sock))
        await wait_until(lambda: server.engine.listening)

        connector = aiohttp.TCPConnector(limit=0)
        async with aiohttp.ClientSession(connector=connector) as client:
            requests = [asyncio.create_task(fetch(client, url)) for _ in range(100)]
            await wait_until(lambda: server.engine.in_flight == 100)

            loop = asyncio.get_running_loop()
            started = loop.time()
            server.shutdown()
            await wait_until(lambda: not server.engine.listening)
            with pytest.raises(ConnectionRefusedError):
                await asyncio.open_connection(sock_host, sock_port)
            await asyncio.wait_for(serving, 2.0)
            elapsed = loop.time() - started

            results = await asyncio.gather(*requests)

        assert results == [(200, "ok")] * 100
        assert elapsed < 1.0
        assert server.outcome.kind is OutcomeKind.CLEAN
        assert server.engine.in_flight == 0

    @pytest.mark.asyncio
    async def test_no_new_connections_while_draining(self, make_server):
        server = make_server(sleeping_app(0.3), with_timeout(2))
        sock = bind_local()
        host, port = sock.getsockname()[:2]
        serving = asyncio.create_task(server.serve(sock))
        await wait_until(lambda: server.engine.listening)

        async with aiohttp.ClientSession() as client:
            request = asyncio.create_task(fetch(client, url_for(sock)))
            await wait_until(lambda: server.engine.in_flight == 1)

            server.shutdown()
            await wait_until(lambda: not server.engine.listening)
            assert server.engine.in_flight == 1
            with pytest.raises(ConnectionRefusedError):
                await asyncio.open_connection(host, port)

            assert await request == (200, "ok")
        await asyncio.wait_for(serving, 1.0)
        assert server.outcome.ok

    @pytest.mark.asyncio
    async def test_request_still_arriving_is_drained(self, make_server):
        """Test that a connection mid-way through sending its request keeps the drain open."""
        server = make_server(sleeping_app(0), with_timeout(1))
        sock = bind_local()
        host, port = sock.getsockname()[:2]
        serving = asyncio.create_task(server.serve(sock))
        await wait_until(lambda: server.engine.listening)

        reader, writer = await asyncio.open_connection(host, port)
        writer.write(b"GET / HTTP/1.1\r\nHost: test\r\n")
        await writer.drain()
        await asyncio.sleep(0.05)

        server.shutdown()
        await wait_until(lambda: not server.engine.listening)
        writer.write(b"\r\n")
        await writer.drain()
        response = await asyncio.wait_for(reader.read(), 1.0)
        writer.close()

        assert response.startswith(b"HTTP/1.1 200")
        await asyncio.wait_for(serving, 1.0)
        assert server.outcome.kind is OutcomeKind.CLEAN

    @pytest.mark.asyncio
    async def test_cancelled_serve_stops_listening(self, make_server):
        before = signal.getsignal(signal.SIGUSR1)
        server = make_server(sleeping_app(0))
        sock = bind_local()
        host, port = sock.getsockname()[:2]
        serving = asyncio.create_task(server.serve(sock))
        await wait_until(lambda: server.engine.listening)

        serving.cancel()
        with pytest.raises(asyncio.CancelledError):
            await serving

        assert not server.engine.listening
        assert not server.trigger.armed
        assert signal.getsignal(signal.SIGUSR1) == before
        with pytest.raises(ConnectionRefusedError):
            await asyncio.open_connection(host, port)

    @pytest.mark.asyncio
    async def test_drain_timeout(self, make_server):
        """Test that requests outliving the timeout are cut off and reported."""
        server = make_server(sleeping_app(0.5), with_timeout(0.01))
        sock = bind_local()
        url = url_for(sock)
        serving = asyncio.create_task(server.serve(sock))
        await wait_until(lambda: server.engine.listening)

        async with aiohttp.ClientSession() as client:
            requests = [asyncio.create_task(fetch(client, url)) for _ in range(5)]
            await wait_until(lambda: server.engine.in_flight == 5)

            loop = asyncio.get_running_loop()
            started = loop.time()
            server.shutdown()
            with pytest.raises(ShutdownTimeoutError) as exc_info:
                await asyncio.wait_for(serving, 1.0)
            assert loop.time() - started < 0.4

            results = await asyncio.gather(*requests, return_exceptions=True)

        assert all(isinstance(result, aiohttp.ClientError) for result in results)
        assert exc_info.value.timeout == 0.01
        assert server.outcome.kind is OutcomeKind.SHUTDOWN_ERROR

    @pytest.mark.asyncio
    async def test_bind_error_leaves_signals_alone(self, make_server):
        taken = bind_local()
        addr = "127.0.0.1:%d" % taken.getsockname()[1]
        before = signal.getsignal(signal.SIGUSR1)
        server = make_server(sleeping_app(0))
        try:
            with pytest.raises(BindError):
                await server.listen_and_serve(addr)
        finally:
            taken.close()

        assert signal.getsignal(signal.SIGUSR1) == before
        assert not server.trigger.armed
        assert server.outcome is None

    @pytest.mark.asyncio
    async def test_listen_and_serve(self, make_server):
        server = make_server(sleeping_app(0))
        serving = asyncio.create_task(server.listen_and_serve("127.0.0.1:0"))
        await wait_until(lambda: server.engine.listening)

        server.shutdown("test finished")
        await asyncio.wait_for(serving, 1.0)
        assert server.outcome.ok
        assert server.outcome.trigger.name == "test finished"

    @pytest.mark.asyncio
    async def test_os_signal_shuts_down(self, make_server, capture_logger):
        server = make_server(sleeping_app(0))
        serving = asyncio.create_task(server.serve(bind_local()))
        await wait_until(lambda: server.engine.listening)

        os.kill(os.getpid(), signal.SIGUSR1)
        await asyncio.wait_for(serving, 1.0)

        assert server.outcome.ok
        assert capture_logger.find("shutdown signal received")["signal"] == "SIGUSR1"

    @pytest.mark.asyncio
    async def test_shutdown_before_serve(self, make_server):
        server = make_server(sleeping_app(0))
        server.shutdown()

        await asyncio.wait_for(server.serve(bind_local()), 1.0)
        assert server.outcome.ok
        assert not server.engine.listening

    @pytest.mark.asyncio
    async def test_serve_twice(self, make_server):
        server = make_server(sleeping_app(0))
        serving = asyncio.create_task(server.serve(bind_local()))
        await wait_until(lambda: server.engine.listening)

        second = bind_local()
        with pytest.raises(RuntimeError):
            await server.serve(second)
        assert second.fileno() == -1

        server.shutdown()
        await asyncio.wait_for(serving, 1.0)

        with pytest.raises(ServerClosedError):
            await server.serve(bind_local())

    @pytest.mark.asyncio
    async def test_engine_options_reach_the_engine(self, make_server):
        server = make_server(sleeping_app(0), with_engine_options(with_idle_timeout(3)))
        assert server.engine.settings.keepalive_timeout == 3

        server.engine.configure(with_idle_timeout(4))
        assert server.engine.settings.keepalive_timeout == 4

    @pytest.mark.asyncio
    async def test_bad_certificate_is_a_serve_error(self, make_server, tmp_path):
        cert = tmp_path / "cert.pem"
        key = tmp_path / "key.pem"
        cert.write_text("not a certificate")
        key.write_text("not a key")
        before = signal.getsignal(signal.SIGUSR1)

        server = make_server(sleeping_app(0))
        with pytest.raises(ServeError):
            await asyncio.wait_for(server.serve_tls(bind_local(), str(cert), str(key)), 1.0)

        assert server.outcome.kind is OutcomeKind.SERVE_ERROR
        assert signal.getsignal(signal.SIGUSR1) == before

    @pytest.mark.asyncio
    async def test_bare_handler(self, make_server):
        async def handler(request: web.Request) -> web.Response:
            return web.Response(text="handled " + request.path)

        server = make_server(handler)
        sock = bind_local()
        serving = asyncio.create_task(server.serve(sock))
        await wait_until(lambda: server.engine.listening)

        async with aiohttp.ClientSession() as client:
            assert await fetch(client, url_for(sock, "/anything")) == (200, "handled /anything")

        server.shutdown()
        await asyncio.wait_for(serving, 1.0)
