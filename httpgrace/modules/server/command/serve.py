import os
from typing import Optional

from aiohttp import web

from ...config import (
    EngineOption,
    with_engine_options,
    with_idle_timeout,
    with_logger,
    with_request_timeout,
    with_timeout,
)
from ...logging import BaseLogger
from ...shutdown import GracefulServerError
from ..loop import run_sync
from ..server import Server


class ServeCommand:
    """Command class for serving a directory of static files."""

    def __init__(
        self,
        logger: BaseLogger,
        timeout: float = 10.0,
        idle_timeout: Optional[float] = None,
        request_timeout: Optional[float] = None
    ):
        """
        Initialize the serve command.

        Args:
            logger: Logger instance
            timeout: Graceful shutdown timeout in seconds
            idle_timeout: Keep-alive idle timeout in seconds
            request_timeout: Per request timeout in seconds
        """
        self.logger = logger
        self.timeout = timeout
        self.idle_timeout = idle_timeout
        self.request_timeout = request_timeout

    def create_app(self, directory: str) -> web.Application:
        """Create an application serving ``directory`` with directory listings."""
        app = web.Application()
        app.router.add_static("/", os.path.abspath(directory), show_index=True)
        return app

    def create_server(self, directory: str) -> Server:
        engine_options: list[EngineOption] = []
        if self.idle_timeout is not None:
            engine_options.append(with_idle_timeout(self.idle_timeout))
        if self.request_timeout is not None:
            engine_options.append(with_request_timeout(self.request_timeout))

        return Server(
            self.create_app(directory),
            with_timeout(self.timeout),
            with_logger(self.logger),
            with_engine_options(*engine_options)
        )

    def run(
        self,
        directory: str,
        addr: str,
        cert_file: Optional[str] = None,
        key_file: Optional[str] = None
    ) -> int:
        """
        Run the serve command.

        Args:
            directory: Directory to serve
            addr: Address to listen on, host:port
            cert_file: TLS certificate chain, enables HTTPS together with key_file
            key_file: TLS private key

        Returns:
            int: Process exit code
        """
        if bool(cert_file) != bool(key_file):
            self.logger.log_error("--cert and --key must be given together")
            return 2

        server = self.create_server(directory)
        try:
            if cert_file and key_file:
                run_sync(server.listen_and_serve_tls(addr, cert_file, key_file), self.logger)
            else:
                run_sync(server.listen_and_serve(addr), self.logger)
        except GracefulServerError as e:
            self.logger.log_error(f"Server stopped with error: {str(e)}")
            return 1
        return 0
