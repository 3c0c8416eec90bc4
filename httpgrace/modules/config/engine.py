"""Pass-through tuning of the aiohttp request handling engine."""

from typing import Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field


class EngineSettings(BaseModel):
    """Tuning knobs handed to the aiohttp runner and listener."""
    model_config = ConfigDict(frozen=True)

    keepalive_timeout: float = Field(default=75.0, ge=0)  # idle keep-alive connections are closed after this
    request_timeout: Optional[float] = Field(default=None, gt=0)  # None disables the per-request limit
    backlog: int = Field(default=128, gt=0)
    max_line_size: int = Field(default=8190, gt=0)
    max_field_size: int = Field(default=8190, gt=0)
    access_log: bool = False


EngineOption = Callable[[EngineSettings], EngineSettings]


def _update(**changes) -> EngineOption:
    def apply(settings: EngineSettings) -> EngineSettings:
        # Round-trip through validation so bad values fail at build time
        return EngineSettings.model_validate({**settings.model_dump(), **changes})
    return apply


def with_idle_timeout(seconds: float) -> EngineOption:
    """Close keep-alive connections that stay idle for longer than ``seconds``."""
    return _update(keepalive_timeout=seconds)


def with_request_timeout(seconds: Optional[float]) -> EngineOption:
    """Answer 503 for requests whose handler runs longer than ``seconds``."""
    return _update(request_timeout=seconds)


def with_backlog(backlog: int) -> EngineOption:
    return _update(backlog=backlog)


def with_max_line_size(size: int) -> EngineOption:
    return _update(max_line_size=size)


def with_max_field_size(size: int) -> EngineOption:
    return _update(max_field_size=size)


def with_access_log(enabled: bool = True) -> EngineOption:
    return _update(access_log=enabled)


def build_engine_settings(
    options: Iterable[EngineOption],
    base: Optional[EngineSettings] = None
) -> EngineSettings:
    """Apply engine options in order, later options win."""
    settings = base or EngineSettings()
    for option in options:
        settings = option(settings)
    return settings
