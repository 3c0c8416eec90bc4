import click
from typing import Any
from .base import BaseLogger
import sys


class ColorfulLogger(BaseLogger):
    """Logger that outputs colorful text for CLI usage."""

    def __init__(self, log_level: str = "INFO"):
        super().__init__(log_level)
        # Configure loguru for colored output
        self.logger.configure(
            handlers=[{
                "sink": sys.stdout,
                "colorize": True,
                "format": "<cyan>{time:YYYY-MM-DD HH:mm:ss.SSS}</cyan> | "
                         "<level>{level: <8}</level> | "
                         "<white>{message}</white>",
                "level": log_level
            }]
        )

    def _render(self, message: str, color: str, fields: dict) -> str:
        parts = [click.style(message, fg=color, bold=True)]
        for key, value in fields.items():
            parts.append(click.style(f"{key}=", fg="blue") + click.style(str(value), fg="white"))
        return " ".join(parts)

    def log_error(self, message: str, **fields: Any):
        self.logger.error(self._render(message, "red", fields))

    def log_warning(self, message: str, **fields: Any):
        self.logger.warning(self._render(message, "yellow", fields))

    def log_info(self, message: str, **fields: Any):
        self.logger.info(self._render(message, "white", fields))

    def log_debug(self, message: str, **fields: Any):
        self.logger.debug(self._render(message, "blue", fields))
