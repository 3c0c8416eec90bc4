"""Public serving surface: the Server handle and blocking convenience functions."""

from .facade import listen_and_serve, listen_and_serve_tls, serve, serve_tls
from .listener import listen, parse_address
from .loop import run_sync
from .server import Server

__all__ = [
    'Server',
    'listen_and_serve',
    'listen_and_serve_tls',
    'serve',
    'serve_tls',
    'listen',
    'parse_address',
    'run_sync',
]
