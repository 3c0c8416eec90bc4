from typing import Optional


class GracefulServerError(Exception):
    pass

class BindError(GracefulServerError):
    def __init__(self, addr: str, reason: Exception):
        self.addr = addr
        self.reason = reason
        super().__init__(f"listen tcp {addr}: {reason}")

class ServeError(GracefulServerError):
    pass

class ShutdownError(GracefulServerError):
    pass

class ShutdownTimeoutError(ShutdownError):
    def __init__(self, timeout: float, in_flight: Optional[int] = None):
        self.timeout = timeout
        self.in_flight = in_flight
        message = f"Graceful shutdown did not finish within {timeout} seconds"
        if in_flight:
            message += f", {in_flight} request(s) were forcibly closed"
        super().__init__(message)
