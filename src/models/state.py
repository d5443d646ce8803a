"""
Transform state model and pipeline helper

Defines the TransformState dataclass for the functional pipeline pattern and
the pipeline() helper for composing transformation stages.
"""

import inspect
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, TypeVar, Union
from dataclasses import dataclass, field

from .options import PipelineOptions
from .renderer import CompiledRenderer, Diagnostics
from .tokens import Token


TS = TypeVar("TS", bound="TransformState")


class Phase(Enum):
    """Orchestrator phases, in pipeline order, plus the absorbing FAILED"""
    IDLE = "idle"
    STRIPPING = "stripping"
    TRIMMING = "trimming"
    ENRICHING = "enriching"
    INLINING = "inlining"
    VALIDATING = "validating"
    COMPILING = "compiling"
    SERIALIZING = "serializing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class TransformState:
    """
    Central state container for one transform invocation (state bus pattern).

    This dataclass carries all invocation state through the functional
    pipeline, with each stage adding new fields as the transform progresses.

    Pipeline stages and their state additions:
        - Initial: source, options, resourcePath, host, verbosity
        - source_strip: tokens, markup
        - markup_trim: markup
        - markup_enrich: markup
        - assets_inline: markup
        - template_validate: diagnostics.warnings
        - template_compile: renderer
        - module_serialize: output

    Attributes:
        source: Raw template text (read-only)
        options: Merged pipeline options (read-only)
        resourcePath: Path of the template file; assets resolve against it
        host: Host object receiving reports (see lib.host)
        verbosity: Logging verbosity level (0-3)
        phase: Current orchestrator phase
        tokens: Tokens emitted by the comment stripper
        markup: Markup threaded between the text stages
        diagnostics: Warnings and fatal error collected so far
        renderer: Compiled renderer
        output: Serialized module text
    """

    # Invocation inputs
    source: str = field(default="")
    options: PipelineOptions = field(default_factory=PipelineOptions)
    resourcePath: Path = field(default=Path("template.html"))
    host: Optional[Any] = field(default=None)
    verbosity: int = field(default=1)

    # Pipeline state
    phase: Phase = field(default=Phase.IDLE)
    tokens: List[Token] = field(default_factory=list)
    markup: str = field(default="")
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    renderer: Optional[CompiledRenderer] = field(default=None)
    output: Optional[str] = field(default=None)

    def copy(self: TS) -> TS:
        """
        Creates a shallow copy of the TransformState instance.

        Returns:
            A new TransformState instance.
        """
        return type(self)(**self.__dict__)


Stage = Callable[[TransformState], Union[TransformState, Awaitable[TransformState]]]


async def pipeline(initial_state: TransformState, *stages: Stage) -> TransformState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (TransformState) -> TransformState, or a
    coroutine function returning one, that receives the output of the
    previous stage and returns a new state. Coroutine stages are awaited
    before the next stage starts, so the stages never overlap.

    Args:
        initial_state: Starting TransformState
        *stages: Variable number of stage functions to execute in order

    Returns:
        Final TransformState after all transformations

    Example:
        final_state = await pipeline(
            initial_state,
            source_strip,
            markup_trim,
            module_serialize,
        )
    """
    state = initial_state
    for stage in stages:
        result = stage(state)
        if inspect.isawaitable(result):
            result = await result
        state = result
    return state
