import sys
from typing import Any
from .base import BaseLogger, format_fields


class PlainLogger(BaseLogger):
    """Logger that outputs plain text, suitable for CI/file output."""

    def __init__(self, log_level: str = "INFO"):
        super().__init__(log_level)
        # Configure loguru for plain output
        self.logger.configure(
            handlers=[{
                "sink": sys.stdout,
                "format": "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {message}",
                "colorize": False,
                "level": log_level
            }]
        )

    def _render(self, message: str, fields: dict) -> str:
        if not fields:
            return message
        return f"{message} {format_fields(fields)}"

    def log_error(self, message: str, **fields: Any):
        self.logger.error(self._render(message, fields))

    def log_warning(self, message: str, **fields: Any):
        self.logger.warning(self._render(message, fields))

    def log_info(self, message: str, **fields: Any):
        self.logger.info(self._render(message, fields))

    def log_debug(self, message: str, **fields: Any):
        self.logger.debug(self._render(message, fields))
