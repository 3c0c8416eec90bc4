import socket
from typing import Tuple

from ..shutdown import BindError


def parse_address(addr: str) -> Tuple[str, int]:
    """Split ``host:port`` into its parts.

    An empty host means every interface, IPv6 hosts are written in brackets
    (``[::1]:8080``) and port 0 asks the OS for an ephemeral port.

    Raises:
        ValueError: If the address is malformed
    """
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"missing port in address {addr!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        raise ValueError(f"too many colons in address {addr!r}")

    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"invalid port {port!r} in address {addr!r}") from None
    if not 0 <= port_number <= 65535:
        raise ValueError(f"port {port_number} out of range in address {addr!r}")
    return host, port_number


def listen(addr: str, backlog: int = 128) -> socket.socket:
    """Bind a listening TCP socket on ``addr``.

    Raises:
        BindError: If the address is invalid or cannot be bound
    """
    try:
        host, port = parse_address(addr)
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        return socket.create_server((host, port), family=family, backlog=backlog)
    except (OSError, ValueError) as e:
        raise BindError(addr, e) from e
