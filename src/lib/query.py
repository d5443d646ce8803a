"""
Option merging for a transform invocation

Options come from three places, later ones winning:
1. settings defaults (scope)
2. options configured on the host for this kind of file
3. the resource query attached to the file reference
   ("template.html?scope=app&minimize")
"""

import json
from typing import Any, Dict
from urllib.parse import unquote

from ..config import appsettings
from ..models.options import PipelineOptions


def query_parse(query: str) -> Dict[str, Any]:
    """
    Parse a resource query string.

    Supported forms:
        ?{"scope": "app"}       JSON object
        ?scope=app&minimize     key=value pairs and bare flags (True)
        ?-minimize / ?+minimize negated / explicit flags
        ?tag[]=a&tag[]=b        repeated keys collected into a list

    "true"/"false" values become booleans. Pairs may be separated by
    '&' or ','.

    Args:
        query: Query string, with or without the leading '?'

    Returns:
        Parsed options (empty for an empty query)

    Raises:
        ValueError: The query is a malformed JSON object
    """
    query = query[1:] if query.startswith('?') else query
    if not query:
        return {}
    if query.startswith('{'):
        parsed = json.loads(query)
        if not isinstance(parsed, dict):
            raise ValueError(f"resource query must be a JSON object: {query}")
        return parsed

    result: Dict[str, Any] = {}
    for argument in query.replace(',', '&').split('&'):
        if not argument:
            continue
        if '=' in argument:
            name, _, raw = argument.partition('=')
            name = unquote(name)
            raw = unquote(raw)
            value: Any = {'true': True, 'false': False}.get(raw, raw)
        elif argument[0] in '+-':
            name = unquote(argument[1:])
            value = argument[0] == '+'
        else:
            name = unquote(argument)
            value = True

        if name.endswith('[]'):
            result.setdefault(name[:-2], []).append(value)
        else:
            result[name] = value
    return result


def options_merge(host: Any) -> PipelineOptions:
    """
    Build the PipelineOptions of one invocation.

    Args:
        host: Host supplying options, resourceQuery and minimize

    Returns:
        Validated, immutable options
    """
    merged: Dict[str, Any] = {
        'scope': appsettings.default_scope,
        'minimize': bool(getattr(host, 'minimize', False)),
    }
    merged.update(getattr(host, 'options', None) or {})
    merged.update(query_parse(getattr(host, 'resourceQuery', '') or ''))
    return PipelineOptions(**merged)
