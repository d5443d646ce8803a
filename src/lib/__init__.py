"""
htmlpack - Build-time HTML template transform

Turns HTML template files into compiled renderer modules.
"""

__version__ = "1.0.0"

from .lexer import LeadingCommentLexer, comments_strip, trailing_trim
from .enrich import PluginRegistry
from .assets import AssetInliner
from .compiler import TemplateCompiler
from .host import BuildHost, TransformHost
from .loader import transform
from .log import LOG, state_connectToLogger

__all__ = [
    "LeadingCommentLexer",
    "comments_strip",
    "trailing_trim",
    "PluginRegistry",
    "AssetInliner",
    "TemplateCompiler",
    "BuildHost",
    "TransformHost",
    "transform",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
