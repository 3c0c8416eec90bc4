import sys
from typing import Any
from .base import BaseLogger


class JsonLogger(BaseLogger):
    """Logger that outputs JSON for machine parsing."""

    def __init__(self, log_level: str = "INFO"):
        super().__init__(log_level)
        # Configure loguru for JSON output
        self.logger.configure(
            handlers=[{
                "sink": sys.stdout,
                "serialize": True,  # JSON output, bound fields land in record.extra
                "format": "{time} | {level} | {message}",
                "level": log_level
            }]
        )

    def _fields(self, fields: dict) -> dict:
        # Durations and signals are not JSON native
        return {key: value if isinstance(value, (int, float, bool)) or value is None else str(value)
                for key, value in fields.items()}

    def log_error(self, message: str, **fields: Any):
        self.logger.bind(**self._fields(fields)).error(message)

    def log_warning(self, message: str, **fields: Any):
        self.logger.bind(**self._fields(fields)).warning(message)

    def log_info(self, message: str, **fields: Any):
        self.logger.bind(**self._fields(fields)).info(message)

    def log_debug(self, message: str, **fields: Any):
        self.logger.bind(**self._fields(fields)).debug(message)
