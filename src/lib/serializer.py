"""
Module serializer

Formats a CompiledRenderer as module source text exporting
{render, staticRenderFns}, each routine wrapped in a zero-argument
function literal and pretty-printed with jsbeautifier.
"""

from typing import Any, Optional

import jsbeautifier

from ..config import appsettings
from ..models.renderer import CompiledRenderer


def beautifier_options(indent_size: int) -> Any:
    options = jsbeautifier.default_options()
    options.indent_size = indent_size
    options.indent_char = ' '
    options.end_with_newline = False
    return options


def indent(text: str, prefix: str) -> str:
    """Indent every line of text but the first"""
    return text.replace('\n', '\n' + prefix)


def function_wrap(code: str, indent_size: Optional[int] = None) -> str:
    """
    Wrap a routine body in a zero-argument function literal.

    Args:
        code: Routine body (e.g. "with(this){return _c('div')}")
        indent_size: Indentation width; defaults to the configured one

    Returns:
        "function () {\\n<body>\\n}" with the body pretty-printed and
        indented one level
    """
    size = indent_size or appsettings.indent_size
    body = jsbeautifier.beautify(code, beautifier_options(size)).strip()
    pad = ' ' * size
    return "function () {\n" + pad + indent(body, pad) + "\n}"


def module_serialize(renderer: CompiledRenderer, esModule: bool = False,
                     indent_size: Optional[int] = None) -> str:
    """
    Serialize a renderer as an exporting module.

    Args:
        renderer: Compiled (or fallback) renderer
        esModule: Emit "export default" instead of "module.exports ="
        indent_size: Indentation width; defaults to the configured one

    Returns:
        Module source text; identical renderers give identical text

    Example output:
        module.exports = {
            render: function () {
                with(this) {
                    return _c('div')
                }
            },
            staticRenderFns: []
        };
    """
    size = indent_size or appsettings.indent_size
    pad = ' ' * size
    render = indent(function_wrap(renderer.render, size), pad)
    statics = [indent(function_wrap(code, size), pad * 2) for code in renderer.staticRenderFns]

    if statics:
        static_block = "[\n" + ",\n".join(pad * 2 + fn for fn in statics) + "\n" + pad + "]"
    else:
        static_block = "[]"

    export = "export default" if esModule else "module.exports ="
    return (
        f"{export} {{\n"
        f"{pad}render: {render},\n"
        f"{pad}staticRenderFns: {static_block}\n"
        f"}};\n"
    )
