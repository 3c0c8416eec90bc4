from typing import Any

from .base import BaseLogger, format_fields


class DefaultLogger(BaseLogger):
    """Logger that writes to the process-wide loguru logger as it is configured.

    Unlike the other loggers it never calls ``configure``, so embedding
    applications keep their own sinks.
    """

    def _render(self, message: str, fields: dict) -> str:
        if not fields:
            return message
        return f"{message} {format_fields(fields)}"

    def log_error(self, message: str, **fields: Any):
        self.logger.bind(**fields).error(self._render(message, fields))

    def log_warning(self, message: str, **fields: Any):
        self.logger.bind(**fields).warning(self._render(message, fields))

    def log_info(self, message: str, **fields: Any):
        self.logger.bind(**fields).info(self._render(message, fields))

    def log_debug(self, message: str, **fields: Any):
        self.logger.bind(**fields).debug(self._render(message, fields))
