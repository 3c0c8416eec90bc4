from typing import Any, Dict, List, Tuple
from httpgrace.modules.logging.base import BaseLogger


class _CaptureLogger(BaseLogger):
    """Test logger that captures all logs."""
    def __init__(self):
        self.records: List[Tuple[str, str, Dict[str, Any]]] = []

    def log_error(self, message: str, **fields: Any) -> None:
        self.records.append(("ERROR", message, fields))

    def log_warning(self, message: str, **fields: Any) -> None:
        self.records.append(("WARNING", message, fields))

    def log_info(self, message: str, **fields: Any) -> None:
        self.records.append(("INFO", message, fields))

    def log_debug(self, message: str, **fields: Any) -> None:
        self.records.append(("DEBUG", message, fields))

    def messages(self, level: str = None) -> List[str]:
        """Get captured messages, optionally only those of one level."""
        return [message for lvl, message, _ in self.records if level is None or lvl == level]

    def find(self, message: str) -> Dict[str, Any]:
        """Get the fields of the first record with this message."""
        for _, logged, fields in self.records:
            if logged == message:
                return fields
        raise AssertionError(f"{message!r} was not logged, got {self.messages()}")


def create_capture_logger() -> _CaptureLogger:
    """Create a capturing logger instance."""
    return _CaptureLogger()
