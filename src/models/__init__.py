"""
Models package for htmlpack

Contains data structures and type definitions for the transform pipeline.
"""

from .state import TransformState, Phase, pipeline
from .tokens import Token, LexerState
from .options import PipelineOptions
from .renderer import CompiledRenderer, Diagnostics
from .errors import HtmlpackError, EnrichmentError, AssetError, TransformError
from .plugins import PluginSpec
from .run import RunState

__all__ = [
    "TransformState",
    "Phase",
    "pipeline",
    "Token",
    "LexerState",
    "PipelineOptions",
    "CompiledRenderer",
    "Diagnostics",
    "HtmlpackError",
    "EnrichmentError",
    "AssetError",
    "TransformError",
    "PluginSpec",
    "RunState",
]
