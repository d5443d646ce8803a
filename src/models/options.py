"""
Pipeline options model

Immutable per-invocation options threaded read-only through the
enrichment, asset inlining and validation stages.
"""

from typing import Any, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PipelineOptions(BaseModel):
    """
    Options of one transform invocation.

    Built by merging the settings defaults, the host-supplied options and
    the resource query (see lib.query.options_merge). Unknown host keys are
    kept as extra fields so later stages can read them.

    Attributes:
        scope: Root style scope ("none" disables root scoping)
        minimize: Minify markup and styles while inlining assets
        esModule: Serialize as an ES module instead of CommonJS; None
                  defers to the configured module format
        directives: Custom directive names (no v- prefix) the validator
                    accepts alongside the built-in ones
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    scope: str = Field(default="none")
    minimize: bool = Field(default=False)
    esModule: bool | None = Field(default=None)
    directives: Tuple[str, ...] = Field(default=())

    @field_validator("directives", mode="before")
    @classmethod
    def directives_split(cls, value: Any) -> Any:
        """A query gives "focus,tooltip" as one string"""
        if isinstance(value, str):
            return tuple(name.strip() for name in value.split(",") if name.strip())
        return value
