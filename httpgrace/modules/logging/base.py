from abc import ABC, abstractmethod
from typing import Any, Dict

from loguru import logger


def format_fields(fields: Dict[str, Any]) -> str:
    """Render structured fields as space separated key=value pairs."""
    return " ".join(f"{key}={value}" for key, value in fields.items())


class BaseLogger(ABC):
    """Abstract base class for loggers."""

    def __init__(self, log_level: str = "INFO"):
        self.logger = logger
        self.log_level = log_level

    @abstractmethod
    def log_error(self, message: str, **fields: Any):
        """Log an error message."""
        pass

    @abstractmethod
    def log_warning(self, message: str, **fields: Any):
        """Log a warning message."""
        pass

    @abstractmethod
    def log_info(self, message: str, **fields: Any):
        """Log an info message."""
        pass

    @abstractmethod
    def log_debug(self, message: str, **fields: Any):
        """Log a debug message."""
        pass
