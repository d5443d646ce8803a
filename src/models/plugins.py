"""
Enrichment plugin specification models

Defines the structure of markup enrichment plugins for the registry
that runs them.
"""

from dataclasses import dataclass, field
from typing import Callable, List


@dataclass
class PluginSpec:
    """
    Specification for a markup enrichment plugin

    Attributes:
        name: Stage name used in error reports (e.g., "markdown")
        description: Human-readable description
        handler: Transformation function (soup, options) -> None that
                 rewrites the parsed markup in place
        examples: Example markup the plugin rewrites
    """
    name: str
    description: str
    handler: Callable
    examples: List[str] = field(default_factory=list)
