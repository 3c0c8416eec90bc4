import signal

import pytest

from tests.utils.capture_logger import create_capture_logger


@pytest.fixture
def capture_logger():
    """Create a logger that records every call."""
    return create_capture_logger()


@pytest.fixture
def restore_signals():
    """Snapshot the handlers of the signals tests play with and put them back afterwards."""
    signals = (signal.SIGINT, signal.SIGTERM, signal.SIGUSR1, signal.SIGUSR2)
    saved = {sig: signal.getsignal(sig) for sig in signals}
    yield saved
    for sig, handler in saved.items():
        if handler is not None:
            signal.signal(sig, handler)
