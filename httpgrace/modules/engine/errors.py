class ServerClosedError(Exception):
    """Raised by serve calls once a shutdown of the same engine has started."""

    def __init__(self, message: str = "Server closed"):
        super().__init__(message)


class DrainTimeoutError(Exception):
    def __init__(self, timeout: float, in_flight: int):
        self.timeout = timeout
        self.in_flight = in_flight
        super().__init__(
            f"Shutdown timed out after {timeout} seconds with {in_flight} request(s) still in flight"
        )
