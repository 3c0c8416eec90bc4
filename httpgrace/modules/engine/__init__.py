"""Request handling engine wrapping aiohttp."""

from .engine import CLOSE_GRACE, Handler, HttpEngine
from .errors import DrainTimeoutError, ServerClosedError

__all__ = ['HttpEngine', 'Handler', 'CLOSE_GRACE', 'DrainTimeoutError', 'ServerClosedError']
