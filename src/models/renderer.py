"""
Renderer and diagnostics models

CompiledRenderer is produced once by the template compiler and consumed
by the module serializer. Diagnostics accumulate across the pipeline.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class CompiledRenderer:
    """
    Result of compiling a template

    Attributes:
        render: Body of the main render routine
                (e.g. 'with(this){return _c(\'div\')}')
        staticRenderFns: Bodies of the hoisted static render routines,
                         referenced from render as _m(0), _m(1), ...
        errors: Compile errors; a non-empty list means render is unusable
    """
    render: str
    staticRenderFns: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class Diagnostics:
    """
    Warnings and the fatal error of one invocation

    Attributes:
        warnings: Validator warnings, in report order
        fatalError: Message of the first fatal failure, if any
    """
    warnings: List[str] = field(default_factory=list)
    fatalError: Optional[str] = None
