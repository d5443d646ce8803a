"""
Template validator

Reports non-fatal structural issues in template markup as human-readable
warnings. Never raises: any markup, even an unparsable one, yields a
(possibly empty) list.
"""

import re
from typing import FrozenSet, Iterable, List, Optional

from .markup import ElementNode, markup_parse


# Elements that may not appear inside <p> (browsers close the <p> early)
BLOCK_ELEMENTS = frozenset({
    'address', 'article', 'aside', 'blockquote', 'details', 'dialog', 'div',
    'dl', 'fieldset', 'figcaption', 'figure', 'footer', 'form', 'h1', 'h2',
    'h3', 'h4', 'h5', 'h6', 'header', 'hgroup', 'hr', 'main', 'menu', 'nav',
    'ol', 'p', 'pre', 'section', 'table', 'ul',
})

INTERACTIVE_ELEMENTS = frozenset({
    'a', 'button', 'details', 'embed', 'iframe', 'label', 'select', 'textarea',
})

OBSOLETE_ELEMENTS = frozenset({
    'acronym', 'applet', 'basefont', 'big', 'blink', 'center', 'dir', 'font',
    'frame', 'frameset', 'marquee', 'nobr', 'strike', 'tt',
})

LIST_PARENTS = frozenset({'ul', 'ol', 'menu'})

# Children a list may hold besides <li>; template/slot are transparent
LIST_CHILD_ALLOWED = frozenset({'li', 'template', 'slot', 'script'})

TABLE_SECTIONS = frozenset({'thead', 'tbody', 'tfoot'})

BUILTIN_DIRECTIVES = frozenset({
    'bind', 'cloak', 'else', 'else-if', 'for', 'html', 'if', 'model', 'on',
    'once', 'pre', 'show', 'slot', 'text',
})

# v-on:click, v-bind:href, v-focus.lazy: the name ends at ':' or '.'
DIRECTIVE_RE = re.compile(r'^v-([a-zA-Z][a-zA-Z0-9-]*)')


def ancestor_find(element: ElementNode, tags: Iterable[str]) -> Optional[ElementNode]:
    """Nearest ancestor of element whose tag is in tags"""
    wanted = set(tags)
    parent = element.parent
    while parent is not None:
        if parent.tag.lower() in wanted:
            return parent
        parent = parent.parent
    return None


def parent_tag(element: ElementNode) -> Optional[str]:
    """Tag of the closest enclosing element, looking through <template>"""
    parent = element.parent
    while parent is not None and parent.tag == 'template':
        parent = parent.parent
    return parent.tag.lower() if parent is not None else None


def nesting_check(element: ElementNode) -> List[str]:
    """Warnings for content models the browser would repair"""
    warnings: List[str] = []
    where = f"line {element.line_number}"
    tag = element.tag.lower()
    parent = parent_tag(element)

    if tag in BLOCK_ELEMENTS and parent == 'p':
        warnings.append(
            f"<{tag}> cannot be a child of <p> ({where}): the browser closes the "
            f"paragraph before it"
        )
    if tag == 'li' and ancestor_find(element, LIST_PARENTS) is None:
        warnings.append(f"<li> outside of <ul>, <ol> or <menu> ({where})")
    if tag in LIST_PARENTS:
        for child in element.elements():
            if child.tag.lower() not in LIST_CHILD_ALLOWED:
                warnings.append(
                    f"<{child.tag}> cannot be a direct child of <{tag}> "
                    f"(line {child.line_number}): wrap it in <li>"
                )
    if tag == 'tr' and parent == 'table':
        warnings.append(
            f"<tr> cannot be a direct child of <table> ({where}): the browser "
            f"inserts <tbody>, which can break the rendered structure"
        )
    if tag in ('td', 'th') and parent != 'tr':
        warnings.append(f"<{tag}> must be a direct child of <tr> ({where})")
    if tag in INTERACTIVE_ELEMENTS:
        outer = ancestor_find(element, ('a', 'button'))
        if outer is not None:
            warnings.append(
                f"interactive <{tag}> nested inside <{outer.tag}> ({where})"
            )
    return warnings


def attributes_check(element: ElementNode, directives: FrozenSet[str] = frozenset()) -> List[str]:
    """Warnings for duplicate attributes and directives that are neither built in nor known"""
    warnings: List[str] = []
    seen = set()
    for name, _ in element.attrs:
        if name in seen:
            warnings.append(
                f"duplicate attribute '{name}' on <{element.tag}> (line {element.line_number})"
            )
        seen.add(name)

        match = DIRECTIVE_RE.match(name)
        if match is None:
            continue
        directive = match.group(1)
        if directive not in BUILTIN_DIRECTIVES and directive not in directives:
            warnings.append(
                f"'{name}' on <{element.tag}> (line {element.line_number}) is not a built-in "
                f"directive: make sure v-{directive} is registered"
            )
    return warnings


def template_validate(markup: str, directives: Iterable[str] = ()) -> List[str]:
    """
    Validate template markup.

    Args:
        markup: Template markup
        directives: Names of custom directives the application registers
                    (without the v- prefix); these are not reported

    Returns:
        Ordered list of warnings, empty when the markup looks sound
    """
    known = frozenset(directives)
    tree = markup_parse(markup)
    warnings: List[str] = []
    for element in tree.walk():
        if element.tag.lower() in OBSOLETE_ELEMENTS:
            warnings.append(
                f"<{element.tag}> is obsolete (line {element.line_number}): use CSS instead"
            )
        warnings.extend(nesting_check(element))
        warnings.extend(attributes_check(element, known))
    return warnings
