"""
Host-facing reporting hooks

A transform reports into the build host that invoked it: it declares
the result cacheable, emits validator warnings and at most one fatal
error. Any object with the attributes and methods of TransformHost can
act as host; BuildHost is the default implementation used by the CLI
and the tests.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .log import resource_logger


@runtime_checkable
class TransformHost(Protocol):
    """
    What the orchestrator needs from the build host

    Attributes:
        resourcePath: Path of the template file being transformed
        resourceQuery: Query string attached to the resource ("?scope=x"), or ""
        minimize: Host-wide minification flag
        options: Host-supplied transform options
    """
    resourcePath: Path
    resourceQuery: str
    minimize: bool
    options: Dict[str, Any]

    def cacheable(self, flag: bool = True) -> None: ...

    def emitWarning(self, message: str) -> None: ...

    def emitError(self, message: str) -> None: ...


@dataclass
class BuildHost:
    """
    Recording host

    Keeps every report so callers can inspect them after the transform,
    and mirrors warnings and errors to the log.

    Attributes:
        resourcePath: Path of the template file
        resourceQuery: Query string attached to the resource
        minimize: Minify while inlining assets
        options: Host-supplied transform options
        isCacheable: Last value passed to cacheable(), None before the call
        warnings: Warning messages in report order
        errors: Error messages in report order
    """
    resourcePath: Path = field(default=Path("template.html"))
    resourceQuery: str = field(default="")
    minimize: bool = field(default=False)
    options: Dict[str, Any] = field(default_factory=dict)

    isCacheable: Optional[bool] = field(default=None)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def cacheable(self, flag: bool = True) -> None:
        self.isCacheable = flag

    def emitWarning(self, message: str) -> None:
        self.warnings.append(message)
        resource_logger(self.resourcePath).warning(message)

    def emitError(self, message: str) -> None:
        self.errors.append(message)
        resource_logger(self.resourcePath).error(message)
