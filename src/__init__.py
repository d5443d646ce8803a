"""
htmlpack - Build-time HTML template transform

Strips, enriches and inlines an HTML template, then compiles it into a
module exporting its render functions.
"""

__version__ = "1.0.0"

from .lib import BuildHost, TemplateCompiler, PluginRegistry, transform, LOG, state_connectToLogger

__all__ = ["BuildHost", "TemplateCompiler", "PluginRegistry", "transform", "LOG", "state_connectToLogger", "__version__"]
