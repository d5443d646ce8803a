"""
Logging for htmlpack, on loguru.

LOG() writes a debug record when the verbosity of the state bound to
the current context allows it. The bound state is held in a ContextVar:
each asyncio task (one per transform) works on its own copy of the
context, so concurrent transforms never see each other's state or
verbosity.

Every record carries the template it concerns in extra["resource"],
shown in the log line:

    12:01:07 │ DEBUG   │ cards/card.html      │ source_strip         @ 41   ║ Stripping...

Usage:
    from .log import LOG, state_connectToLogger, resource_logger

    state_connectToLogger(state)          # once per transform / CLI run
    LOG("Compiling template...", level=2)
    resource_logger(path).warning("...")  # host reports
"""

import sys
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger

# State of the transform (or CLI run) running in this context
_program_state: ContextVar[Optional[Any]] = ContextVar('program_state', default=None)

NO_RESOURCE = "-"

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <7}</level> │ "
    "<magenta>{extra[resource]: <20}</magenta> │ "
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.configure(extra={"resource": NO_RESOURCE})
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def resource_of(state: Any) -> str:
    """Name shown for the state's template: its resource path, else NO_RESOURCE"""
    path = getattr(state, 'resourcePath', None)
    return str(path) if path is not None else NO_RESOURCE


def resource_logger(path: Union[str, Path, None]) -> Any:
    """Logger whose records name the given template"""
    return logger.bind(resource=str(path) if path is not None else NO_RESOURCE)


def state_connectToLogger(state: Any) -> None:
    """
    Bind a state to the current logging context.

    Call once at the start of a transform (TransformState) or a CLI run
    (RunState); LOG() calls made later in the same context, including
    from worker threads started with asyncio.to_thread, use its
    verbosity and resource path.

    Args:
        state: Object with a verbosity attribute
    """
    _program_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message if the bound state's verbosity allows.

    Args:
        message: Log message
        level: Minimum verbosity required (1=normal, 2=verbose, 3=debug)
        **kwargs: Additional loguru metadata

    Nothing is logged when no state is bound to the context.
    """
    state = _program_state.get()

    if state is not None and getattr(state, 'verbosity', 0) >= level:
        logger.opt(depth=1).bind(resource=resource_of(state)).debug(message, **kwargs)
