"""
Structure-preserving markup tree

Builds a light element tree from template markup without repairing it:
unclosed tags, stray end tags and misnested elements are recorded as
errors instead of being silently fixed, so the validator and the
compiler see the template exactly as written.

Example:
    >>> tree = markup_parse('<div id="app"><p>{{ msg }}</p></div>')
    >>> tree.roots[0].tag
    'div'
    >>> tree.roots[0].children[0].children[0].text
    '{{ msg }}'
"""

import re
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Dict, List, Optional, Tuple, Union


VOID_ELEMENTS = frozenset({
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input', 'link',
    'meta', 'param', 'source', 'track', 'wbr',
})

HTML_TAGS = frozenset({
    'html', 'body', 'base', 'head', 'link', 'meta', 'style', 'title',
    'address', 'article', 'aside', 'footer', 'header', 'h1', 'h2', 'h3', 'h4',
    'h5', 'h6', 'hgroup', 'nav', 'section', 'div', 'dd', 'dl', 'dt',
    'figcaption', 'figure', 'picture', 'hr', 'img', 'li', 'main', 'ol', 'p',
    'pre', 'ul', 'a', 'b', 'abbr', 'bdi', 'bdo', 'br', 'cite', 'code', 'data',
    'dfn', 'em', 'i', 'kbd', 'mark', 'q', 'rp', 'rt', 'rtc', 'ruby', 's',
    'samp', 'small', 'span', 'strong', 'sub', 'sup', 'time', 'u', 'var', 'wbr',
    'area', 'audio', 'map', 'track', 'video', 'embed', 'object', 'param',
    'source', 'canvas', 'script', 'noscript', 'del', 'ins', 'caption', 'col',
    'colgroup', 'table', 'thead', 'tbody', 'td', 'th', 'tr', 'button',
    'datalist', 'fieldset', 'form', 'input', 'label', 'legend', 'meter',
    'optgroup', 'option', 'output', 'progress', 'select', 'textarea',
    'details', 'dialog', 'menu', 'menuitem', 'summary', 'content', 'element',
    'shadow', 'template', 'blockquote', 'iframe', 'tfoot',
})

SVG_TAGS = frozenset({
    'svg', 'animate', 'circle', 'clippath', 'cursor', 'defs', 'desc',
    'ellipse', 'filter', 'font-face', 'foreignobject', 'g', 'glyph', 'image',
    'line', 'marker', 'mask', 'missing-glyph', 'path', 'pattern', 'polygon',
    'polyline', 'rect', 'switch', 'symbol', 'text', 'textpath', 'tspan', 'use',
    'view', 'lineargradient', 'radialgradient', 'stop',
})


# Tag name of a raw start tag, and each attribute name with its value
STARTTAG_NAME_RE = re.compile(r'<([a-zA-Z][^\t\n\r\f />\x00]*)')
ATTRIBUTE_RE = re.compile(r'''(?P<name>[^\s/>"'=][^\s/=>]*)(?:\s*=\s*(?:'[^']*'|"[^"]*"|[^\s>]*))?''')


def reservedTag_is(tag: str) -> bool:
    """True for plain HTML/SVG tags, False for components (SVG tags match in any case)"""
    return tag in HTML_TAGS or tag.lower() in SVG_TAGS


@dataclass
class TextNode:
    """
    Text between tags, entities already decoded

    Attributes:
        text: The decoded text
        line_number: Source line where the text starts
    """
    text: str
    line_number: int


@dataclass
class ElementNode:
    """
    One element of the markup tree

    Attributes:
        tag: Tag name as written in the source
        attrs: Attributes in source order, names as written; duplicates
               are kept and a valueless attribute has value None
        children: Child elements and text nodes in source order
        line_number: Source line of the start tag
        parent: Enclosing element, None for top-level elements
    """
    tag: str
    attrs: List[Tuple[str, Optional[str]]]
    children: List[Union['ElementNode', TextNode]]
    line_number: int
    parent: Optional['ElementNode'] = field(default=None, repr=False, compare=False)

    @property
    def attrsMap(self) -> Dict[str, Optional[str]]:
        """Attributes as a dict (first occurrence wins)"""
        mapping: Dict[str, Optional[str]] = {}
        for name, value in self.attrs:
            mapping.setdefault(name, value)
        return mapping

    def elements(self) -> List['ElementNode']:
        """Child elements, text nodes skipped"""
        return [child for child in self.children if isinstance(child, ElementNode)]


Node = Union[ElementNode, TextNode]


@dataclass
class MarkupTree:
    """
    Result of parsing a template

    Attributes:
        roots: Top-level nodes in source order
        errors: Structural problems found while parsing
    """
    roots: List[Node]
    errors: List[str]

    def walk(self) -> List[ElementNode]:
        """All elements, depth-first in document order"""
        found: List[ElementNode] = []
        pending: List[Node] = list(reversed(self.roots))
        while pending:
            node = pending.pop()
            if isinstance(node, ElementNode):
                found.append(node)
                pending.extend(reversed(node.children))
        return found


class MarkupTreeBuilder(HTMLParser):
    """
    HTMLParser subclass assembling a MarkupTree

    Comments, doctype declarations and processing instructions are
    dropped. Contents of <script> and <style> arrive as raw text.

    HTMLParser lower-cases tag and attribute names; the builder takes
    them back from the raw start tag so <MyButton :isActive> keeps its
    spelling. Every spelling met is recorded in sourceNames, keyed by
    its lower-cased form (first spelling wins).
    """

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.roots: List[Node] = []
        self.errors: List[str] = []
        self.stack: List[ElementNode] = []
        self.sourceNames: Dict[str, str] = {}

    def node_append(self, node: Node) -> None:
        if self.stack:
            parent = self.stack[-1]
            if isinstance(node, ElementNode):
                node.parent = parent
            parent.children.append(node)
        else:
            self.roots.append(node)

    def name_record(self, written: str) -> str:
        self.sourceNames.setdefault(written.lower(), written)
        return written

    def element_make(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> ElementNode:
        """Element for the current start tag, names restored to their source spelling"""
        raw = self.get_starttag_text() or ''
        match = STARTTAG_NAME_RE.match(raw)
        written: Dict[str, str] = {}
        if match is not None and match.group(1).lower() == tag:
            tag = match.group(1)
            for found in ATTRIBUTE_RE.finditer(raw, match.end()):
                written.setdefault(found.group('name').lower(), found.group('name'))
        self.name_record(tag)
        attrs = [(self.name_record(written.get(name, name)), value) for name, value in attrs]
        return ElementNode(tag=tag, attrs=attrs, children=[], line_number=self.getpos()[0])

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        element = self.element_make(tag, attrs)
        self.node_append(element)
        if tag not in VOID_ELEMENTS:
            self.stack.append(element)

    def handle_startendtag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        self.node_append(self.element_make(tag, attrs))

    def handle_endtag(self, tag: str) -> None:
        # End tags arrive lower-cased
        if tag in VOID_ELEMENTS:
            return
        for index in range(len(self.stack) - 1, -1, -1):
            if self.stack[index].tag.lower() == tag:
                for unclosed in self.stack[index + 1:]:
                    self.errors.append(f"tag <{unclosed.tag}> has no matching end tag.")
                del self.stack[index:]
                return
        self.errors.append(f"end tag </{tag}> on line {self.getpos()[0]} has no matching start tag.")

    def handle_data(self, data: str) -> None:
        if not data:
            return
        parent_children = self.stack[-1].children if self.stack else self.roots
        if parent_children and isinstance(parent_children[-1], TextNode):
            # HTMLParser may deliver one text run in several pieces
            parent_children[-1].text += data
            return
        self.node_append(TextNode(text=data, line_number=self.getpos()[0]))

    def tree_finish(self) -> MarkupTree:
        self.close()
        for unclosed in self.stack:
            self.errors.append(f"tag <{unclosed.tag}> has no matching end tag.")
        self.stack = []
        return MarkupTree(roots=self.roots, errors=self.errors)


def markup_parse(markup: str) -> MarkupTree:
    """
    Parse markup into a MarkupTree.

    Args:
        markup: Template markup

    Returns:
        MarkupTree with the top-level nodes and any structural errors
    """
    builder = MarkupTreeBuilder()
    builder.feed(markup)
    return builder.tree_finish()


def sourceNames_collect(markup: str) -> Dict[str, str]:
    """
    Mixed-case tag and attribute names of markup, keyed by lower-cased name.

    Example:
        >>> sourceNames_collect('<MyButton :isActive="on" class="x"/>')
        {'mybutton': 'MyButton', ':isactive': ':isActive'}
    """
    builder = MarkupTreeBuilder()
    builder.feed(markup)
    builder.close()
    return {lower: written for lower, written in builder.sourceNames.items() if lower != written}
