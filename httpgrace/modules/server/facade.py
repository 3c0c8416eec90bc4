"""Blocking entry points, each serving one application until it shuts down."""

import socket
from typing import Union

from aiohttp import web

from ..config import Option
from ..engine import Handler
from .loop import run_sync
from .server import Server


def listen_and_serve(addr: str, app: Union[web.Application, Handler], *options: Option) -> None:
    """Start a non-TLS HTTP server with graceful shutdown."""
    server = Server(app, *options)
    run_sync(server.listen_and_serve(addr), server.logger)


def listen_and_serve_tls(
    addr: str,
    cert_file: str,
    key_file: str,
    app: Union[web.Application, Handler],
    *options: Option
) -> None:
    """Start a TLS HTTP server with graceful shutdown."""
    server = Server(app, *options)
    run_sync(server.listen_and_serve_tls(addr, cert_file, key_file), server.logger)


def serve(sock: socket.socket, app: Union[web.Application, Handler], *options: Option) -> None:
    """Start a non-TLS HTTP server with graceful shutdown on a caller supplied socket."""
    server = Server(app, *options)
    run_sync(server.serve(sock), server.logger)


def serve_tls(
    sock: socket.socket,
    cert_file: str,
    key_file: str,
    app: Union[web.Application, Handler],
    *options: Option
) -> None:
    """Start a TLS HTTP server with graceful shutdown on a caller supplied socket."""
    server = Server(app, *options)
    run_sync(server.serve_tls(sock, cert_file, key_file), server.logger)
