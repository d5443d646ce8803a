"""
Markup enrichment plugins for htmlpack

Each plugin rewrites a parsed template (BeautifulSoup tree). The
registry runs them in a fixed order, re-parsing the previous plugin's
serialized output for the next one:

1. block    - <block>/<inline> shorthands to <div>/<span>
2. scope    - style scope classes and scoped <style> selectors
3. markdown - markdown regions rendered to HTML
4. lorem    - <lorem> placeholders replaced by filler text
"""

import textwrap
from itertools import cycle, islice
from typing import Any, Dict, List, Optional

import markdown as markdown_module
from bs4 import BeautifulSoup, Tag

from ..config import appsettings
from ..models.errors import EnrichmentError
from ..models.options import PipelineOptions
from ..models.plugins import PluginSpec
from .log import LOG
from .markup import sourceNames_collect


PARSER = "html.parser"

BLOCK_SHORTHANDS: Dict[str, str] = {
    'block': 'div',
    'inline': 'span',
}

# Elements where scope="..." is a real HTML attribute
SCOPE_ATTRIBUTE_ELEMENTS = frozenset({'th', 'td'})

# At-rules whose blocks hold ordinary style rules
CONDITIONAL_AT_RULES = ('@media', '@supports', '@document', '@layer', '@container')

LOREM_WORDS = (
    "lorem ipsum dolor sit amet consectetur adipiscing elit sed do eiusmod "
    "tempor incididunt ut labore et dolore magna aliqua ut enim ad minim "
    "veniam quis nostrud exercitation ullamco laboris nisi ut aliquip ex ea "
    "commodo consequat duis aute irure dolor in reprehenderit in voluptate "
    "velit esse cillum dolore eu fugiat nulla pariatur excepteur sint "
    "occaecat cupidatat non proident sunt in culpa qui officia deserunt "
    "mollit anim id est laborum"
).split()
SENTENCE_LENGTHS = (8, 12, 6, 10, 9, 14, 7)
SENTENCES_PER_PARAGRAPH = 4


def soup_parse(markup: str, source: Optional[str] = None) -> BeautifulSoup:
    """
    Parse markup into a BeautifulSoup tree.

    html.parser lower-cases tag and attribute names, so names written in
    mixed case (components, camelCase props and events) are put back
    afterwards, spelled as in source (markup itself by default).
    """
    soup = BeautifulSoup(markup, PARSER)
    names = sourceNames_collect(markup if source is None else source)
    if names:
        for element in soup.find_all(True):
            element.name = names.get(element.name, element.name)
            if any(name in names for name in element.attrs):
                element.attrs = {names.get(name, name): value for name, value in element.attrs.items()}
    return soup


def fragment_nodes(html: str) -> List[Any]:
    """Parse html and detach its top-level nodes for insertion elsewhere"""
    fragment = soup_parse(html)
    return [node.extract() for node in list(fragment.contents)]


def class_add(element: Tag, names: str) -> None:
    """Append class names to an element, skipping ones already present"""
    classes = element.get('class') or []
    if isinstance(classes, str):
        classes = classes.split()
    for name in names.split():
        if name not in classes:
            classes.append(name)
    element['class'] = classes


def css_scope(css: str, scope: str) -> str:
    """
    Prefix the selectors of style rules with a scope class.

    Rules nested in conditional at-rules (@media, @supports, ...) are
    prefixed too; @keyframes, @font-face and friends are left alone.

    Example:
        >>> css_scope("p, a:hover { color: red }", "app")
        '.app p, .app a:hover { color: red }'
    """
    output: List[str] = []
    blocks: List[str] = []   # "group" for conditional at-rules, "other" otherwise
    start = 0
    for index, char in enumerate(css):
        if char == '{':
            prelude = css[start:index]
            stripped = prelude.strip()
            if stripped.startswith('@'):
                kind = 'group' if stripped.lower().startswith(CONDITIONAL_AT_RULES) else 'other'
                output.append(prelude)
            elif not blocks or blocks[-1] == 'group':
                kind = 'other'
                leading = prelude[:len(prelude) - len(prelude.lstrip())]
                trailing = prelude[len(prelude.rstrip()):]
                selectors = [f".{scope} {selector.strip()}" for selector in stripped.split(',')]
                output.append(leading + ', '.join(selectors) + trailing)
            else:
                kind = 'other'
                output.append(prelude)
            output.append('{')
            blocks.append(kind)
            start = index + 1
        elif char == '}':
            output.append(css[start:index + 1])
            if blocks:
                blocks.pop()
            start = index + 1
        elif char == ';' and (not blocks or blocks[-1] == 'group'):
            # Statement at-rules (@import, @charset) carry no selectors
            output.append(css[start:index + 1])
            start = index + 1
    output.append(css[start:])
    return ''.join(output)


def lorem_words(count: int, offset: int = 0) -> List[str]:
    return list(islice(cycle(LOREM_WORDS), offset, offset + count))


def lorem_sentences(count: int, offset: int = 0) -> List[str]:
    sentences = []
    position = offset
    for index in range(count):
        length = SENTENCE_LENGTHS[index % len(SENTENCE_LENGTHS)]
        words = lorem_words(length, position)
        position += length
        sentences.append(' '.join(words).capitalize() + '.')
    return sentences


def lorem_text(attrs: Dict[str, Any]) -> str:
    """
    Filler text for a <lorem> element.

    The text depends only on the attributes, never on chance, so the
    same template always enriches to the same markup.

    Raises:
        ValueError: A count attribute is not a non-negative integer
    """
    def count_of(name: str) -> Optional[int]:
        if name not in attrs:
            return None
        value = int(str(attrs[name]).strip())
        if value < 0:
            raise ValueError(f"<lorem {name}=\"{value}\"> must not be negative")
        return value

    paragraphs = count_of('paragraphs')
    if paragraphs is not None:
        return ''.join(
            '<p>' + ' '.join(lorem_sentences(SENTENCES_PER_PARAGRAPH, index * 40)) + '</p>'
            for index in range(paragraphs)
        )
    sentences = count_of('sentences')
    if sentences is not None:
        return ' '.join(lorem_sentences(sentences))
    words = count_of('words')
    if words is None:
        words = appsettings.lorem_words
    return ' '.join(lorem_words(words)).capitalize()


class PluginRegistry:
    """
    Registry of markup enrichment plugins

    Keeps the plugins in registration order, which is the order they
    run in.
    """

    def __init__(self) -> None:
        """Initialize the registry and register the built-in plugins"""
        self.specs: Dict[str, PluginSpec] = {}
        self.blockPlugin_register()
        self.scopePlugin_register()
        self.markdownPlugin_register()
        self.loremPlugin_register()

    def register(self, spec: PluginSpec) -> None:
        """Register a plugin specification (appended to the run order)"""
        self.specs[spec.name] = spec

    def get(self, name: str) -> Optional[PluginSpec]:
        return self.specs.get(name)

    def names(self) -> List[str]:
        return list(self.specs)

    def blockPlugin_register(self) -> None:
        """Register the block shorthand expansion"""

        def block_handler(soup: BeautifulSoup, options: PipelineOptions) -> None:
            """Turn <block>/<inline> into <div>/<span>, name="x" into a class"""
            for shorthand, tag in BLOCK_SHORTHANDS.items():
                for element in soup.find_all(shorthand):
                    element.name = tag
                    name = element.attrs.pop('name', None)
                    if name:
                        class_add(element, name)

        self.register(PluginSpec(
            name='block',
            description='Expand <block>/<inline> shorthands into <div>/<span>',
            handler=block_handler,
            examples=['<block name="card">...</block>'],
        ))

    def scopePlugin_register(self) -> None:
        """Register style scoping"""

        def scope_handler(soup: BeautifulSoup, options: PipelineOptions) -> None:
            """Mark elements with scope classes and scope <style scoped> rules"""
            rootScope = options.scope
            if rootScope and rootScope != 'none':
                for element in soup.find_all(True, recursive=False):
                    class_add(element, rootScope)

            for element in soup.find_all(attrs={'scope': True}):
                if element.name in SCOPE_ATTRIBUTE_ELEMENTS:
                    continue
                class_add(element, element.attrs.pop('scope'))

            if rootScope and rootScope != 'none':
                for style in soup.find_all('style', attrs={'scoped': True}):
                    del style['scoped']
                    style.string = css_scope(style.get_text(), rootScope)

        self.register(PluginSpec(
            name='scope',
            description='Apply the root style scope and local scope="..." attributes',
            handler=scope_handler,
            examples=['<div scope="sidebar">...</div>', '<style scoped>p { margin: 0 }</style>'],
        ))

    def markdownPlugin_register(self) -> None:
        """Register markdown expansion"""

        def markdown_render(source: str) -> str:
            source = textwrap.dedent(source).strip('\n')
            return markdown_module.markdown(source, extensions=['extra'])

        def markdown_handler(soup: BeautifulSoup, options: PipelineOptions) -> None:
            """Render md/markdown-attributed regions and <markdown> elements"""
            regions = soup.find_all(lambda tag: 'md' in tag.attrs or 'markdown' in tag.attrs)
            for element in regions:
                source = element.decode_contents(formatter=None)
                element.attrs.pop('md', None)
                element.attrs.pop('markdown', None)
                element.clear()
                for node in fragment_nodes(markdown_render(source)):
                    element.append(node)

            for element in soup.find_all('markdown'):
                nodes = fragment_nodes(markdown_render(element.decode_contents(formatter=None)))
                if nodes:
                    element.replace_with(*nodes)
                else:
                    element.decompose()

        self.register(PluginSpec(
            name='markdown',
            description='Render markdown inside md-attributed elements and <markdown>',
            handler=markdown_handler,
            examples=['<div md>\n  # Title\n  Some *text*\n</div>'],
        ))

    def loremPlugin_register(self) -> None:
        """Register placeholder text expansion"""

        def lorem_handler(soup: BeautifulSoup, options: PipelineOptions) -> None:
            """Replace <lorem> elements with filler text"""
            for element in soup.find_all('lorem'):
                nodes = fragment_nodes(lorem_text(element.attrs))
                if nodes:
                    element.replace_with(*nodes)
                else:
                    element.decompose()

        self.register(PluginSpec(
            name='lorem',
            description='Replace <lorem words|sentences|paragraphs="N"> with filler text',
            handler=lorem_handler,
            examples=['<p><lorem words="12"></lorem></p>', '<lorem paragraphs="2"/>'],
        ))


def markup_enrich(markup: str, options: PipelineOptions,
                  registry: Optional[PluginRegistry] = None) -> str:
    """
    Run all enrichment plugins over markup, in registry order.

    Args:
        markup: Trimmed template markup
        options: Invocation options (scope is read by the scope plugin)
        registry: Plugins to run; a fresh default registry when omitted

    Returns:
        The enriched markup

    Raises:
        EnrichmentError: A plugin failed; stage names the plugin
    """
    registry = registry or PluginRegistry()
    for spec in registry.specs.values():
        try:
            soup = soup_parse(markup)
            spec.handler(soup, options)
            markup = soup.decode(formatter="minimal")
        except Exception as e:
            raise EnrichmentError(spec.name, e) from e
        LOG(f"Plugin '{spec.name}' applied", level=3)
    return markup
