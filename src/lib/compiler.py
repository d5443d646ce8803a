"""
Compiler for template markup to renderer code

Transforms template markup into the render code of a view runtime
(Vue 2 render-function dialect): one main render routine plus hoisted
static render routines.

The compiler operates in three phases:
1. Parsing: build the element tree (lib.markup) and collect structural errors
2. Processing: classify attributes into bindings, events and directives,
   attach v-else(-if) branches, mark static subtrees
3. Generation: emit _c()/_v()/_s()/_l()/_m() code

Errors never raise. They are collected on the CompiledRenderer, and
template_compile() swaps in a fallback renderer that throws at runtime.

Example:
    >>> renderer = TemplateCompiler('<div id="app">{{ msg }}</div>').compile()
    >>> renderer.render
    'with(this){return _c(\\'div\\',{attrs:{"id":"app"}},[_v(_s(msg))])}'
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from ..config import appsettings
from ..models.renderer import CompiledRenderer
from .log import LOG
from .markup import ElementNode, TextNode, markup_parse, reservedTag_is


INTERPOLATION_RE = re.compile(r'\{\{((?:.|\r?\n)+?)\}\}')
FOR_ALIAS_RE = re.compile(r'^([\s\S]*?)\s+(?:in|of)\s+([\s\S]*)$')
FOR_ITERATOR_RE = re.compile(r',([^,\}\]]*)(?:,([^,\}\]]*))?$')
STRIP_PARENS_RE = re.compile(r'^\(|\)$')
IDENTIFIER_RE = re.compile(r'^[A-Za-z_$][\w$]*$')
DIR_RE = re.compile(r'^v-|^@|^:|^#')
BIND_RE = re.compile(r'^:|^v-bind:')
ON_RE = re.compile(r'^@|^v-on:')
MODIFIER_RE = re.compile(r'\.[^.\]]+(?=[^\]]*$)')

SIMPLE_PATH_RE = re.compile(
    r'''^[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*|\['[^']*?']|\["[^"]*?"]|\[\d+]|\[[A-Za-z_$][\w$]*])*$'''
)
FN_EXP_RE = re.compile(r'^([\w$_]+|\([^)]*?\))\s*=>|^function(?:\s+[\w$]+)?\s*\(')
FN_INVOKE_RE = re.compile(r'\([^)]*?\);*$')

KEY_CODES: Dict[str, Any] = {
    'esc': 27, 'tab': 9, 'enter': 13, 'space': 32, 'up': 38,
    'left': 37, 'right': 39, 'down': 40, 'delete': [8, 46],
}
KEY_NAMES: Dict[str, Any] = {
    'esc': ['Esc', 'Escape'], 'tab': 'Tab', 'enter': 'Enter',
    'space': [' ', 'Spacebar'], 'up': ['Up', 'ArrowUp'],
    'left': ['Left', 'ArrowLeft'], 'right': ['Right', 'ArrowRight'],
    'down': ['Down', 'ArrowDown'], 'delete': ['Backspace', 'Delete', 'Del'],
}
MODIFIER_GUARDS: Dict[str, str] = {
    'stop': '$event.stopPropagation();',
    'prevent': '$event.preventDefault();',
    'self': 'if($event.target !== $event.currentTarget)return null;',
    'ctrl': 'if(!$event.ctrlKey)return null;',
    'shift': 'if(!$event.shiftKey)return null;',
    'alt': 'if(!$event.altKey)return null;',
    'meta': 'if(!$event.metaKey)return null;',
    'left': "if('button' in $event && $event.button !== 0)return null;",
    'middle': "if('button' in $event && $event.button !== 1)return null;",
    'right': "if('button' in $event && $event.button !== 2)return null;",
}
# Handled through the event name or data key rather than a guard
EVENT_NAME_MODIFIERS = frozenset({'capture', 'once', 'passive', 'native', 'exact'})

VALUE_DIRECTIVES = frozenset({'if', 'else-if', 'for', 'show', 'html', 'text', 'model'})

BRACKET_PAIRS = {')': '(', ']': '[', '}': '{'}


def js_string(value: str) -> str:
    """JSON-quote value the way JSON.stringify does, line separators escaped"""
    quoted = json.dumps(value, ensure_ascii=False)
    return quoted.replace('\u2028', '\\u2028').replace('\u2029', '\\u2029')


def js_object(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(',', ':'))


def expression_check(expression: str) -> Optional[str]:
    """
    Check that an expression has balanced quotes and brackets.

    Args:
        expression: JavaScript expression text

    Returns:
        Description of the first problem found, or None
    """
    stack: List[str] = []
    quote: Optional[str] = None
    escaped = False
    for char in expression:
        if quote:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in '\'"`':
            quote = char
        elif char in '([{':
            stack.append(char)
        elif char in ')]}':
            if not stack or stack[-1] != BRACKET_PAIRS[char]:
                return f"unexpected token '{char}'"
            stack.pop()
    if quote:
        return "unterminated string"
    if stack:
        return f"unclosed '{stack[-1]}'"
    return None


@dataclass
class ForSpec:
    """Parsed v-for: list expression and its aliases"""
    source: str
    alias: str
    iterator1: Optional[str] = None
    iterator2: Optional[str] = None


@dataclass
class Handler:
    """One v-on handler"""
    value: str
    modifiers: Dict[str, bool]


@dataclass
class Directive:
    """One runtime directive (v-show, v-model, custom)"""
    name: str
    rawName: str
    value: Optional[str]
    arg: Optional[str]
    modifiers: Dict[str, bool]


@dataclass
class CompileText:
    """Text node ready for generation"""
    text: str
    expression: Optional[str]

    @property
    def static(self) -> bool:
        return self.expression is None


@dataclass
class CompileElement:
    """
    Element annotated with everything code generation needs

    Built from an ElementNode by TemplateCompiler.element_process().
    """
    tag: str
    line_number: int
    children: List[Union['CompileElement', CompileText]] = field(default_factory=list)

    staticAttrs: List[Tuple[str, str]] = field(default_factory=list)
    boundAttrs: List[Tuple[str, str]] = field(default_factory=list)
    domProps: List[Tuple[str, str]] = field(default_factory=list)
    staticClass: Optional[str] = None
    classBinding: Optional[str] = None
    staticStyle: Optional[Dict[str, str]] = None
    styleBinding: Optional[str] = None
    key: Optional[str] = None
    ref: Optional[str] = None
    slotTarget: Optional[str] = None
    slotName: Optional[str] = None
    events: Dict[str, List[Handler]] = field(default_factory=dict)
    nativeEvents: Dict[str, List[Handler]] = field(default_factory=dict)
    directives: List[Directive] = field(default_factory=list)
    model: Optional[str] = None

    forSpec: Optional[ForSpec] = None
    ifExp: Optional[str] = None
    elseIfExp: Optional[str] = None
    isElse: bool = False
    ifConditions: List[Tuple[Optional[str], 'CompileElement']] = field(default_factory=list)
    once: bool = False
    pre: bool = False
    inFor: bool = False
    forKey: Optional[str] = None

    static: bool = False
    staticRoot: bool = False
    staticProcessed: bool = False
    onceProcessed: bool = False
    forProcessed: bool = False
    ifProcessed: bool = False

    @property
    def plain(self) -> bool:
        return not any((
            self.staticAttrs, self.boundAttrs, self.domProps, self.staticClass,
            self.classBinding, self.staticStyle, self.styleBinding,
            self.key is not None, self.ref, self.slotTarget, self.events,
            self.nativeEvents, self.directives, self.model, self.pre,
        ))


class TemplateCompiler:
    """
    Compiles template markup into a CompiledRenderer

    Responsibilities:
    - Enforce a single root element
    - Translate bindings, events and directives into render code
    - Hoist static subtrees into static render routines
    - Collect compile errors instead of raising
    """

    def __init__(self, markup: str) -> None:
        """
        Initialize compiler

        Args:
            markup: Trimmed, enriched and inlined template markup
        """
        self.markup = markup
        self.errors: List[str] = []
        self.staticRenderFns: List[str] = []
        self.onceId = 0

    def compile(self) -> CompiledRenderer:
        """
        Compile the markup.

        Returns:
            CompiledRenderer; its errors list is non-empty when the template
            is unusable
        """
        tree = markup_parse(self.markup)
        self.errors.extend(tree.errors)

        root = self.root_find(tree.roots)
        if root is None:
            return CompiledRenderer(render="with(this){return _c('div')}", errors=self.errors)

        self.static_mark(root)
        self.staticRoots_mark(root)
        code = self.element_gen(root)
        LOG(f"Generated render code with {len(self.staticRenderFns)} static routine(s)", level=3)
        return CompiledRenderer(
            render=f"with(this){{return {code}}}",
            staticRenderFns=list(self.staticRenderFns),
            errors=self.errors,
        )

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def root_find(self, nodes: List[Union[ElementNode, TextNode]]) -> Optional[CompileElement]:
        """
        Pick the single root element and attach v-else(-if) root branches.

        Args:
            nodes: Top-level nodes of the markup tree

        Returns:
            The processed root element, or None when there is none
        """
        root: Optional[CompileElement] = None
        for node in nodes:
            if isinstance(node, TextNode):
                text = node.text.strip()
                if not text:
                    continue
                if root is None:
                    self.errors.append("Component template requires a root element, rather than just text.")
                else:
                    self.errors.append(f'text "{text}" outside root element will be ignored.')
                continue

            element = self.element_process(node, inPre=False, inFor=False)
            if root is None:
                self.rootConstraints_check(element)
                root = element
            elif root.ifExp is not None and (element.elseIfExp is not None or element.isElse):
                self.rootConstraints_check(element)
                root.ifConditions.append((element.elseIfExp, element))
            else:
                self.errors.append(
                    "Component template should contain exactly one root element. "
                    "If you are using v-if on multiple elements, use v-else-if to chain them instead."
                )

        if root is None and not self.errors:
            self.errors.append("Template is empty: a component template requires exactly one root element.")
        return root

    def rootConstraints_check(self, element: CompileElement) -> None:
        if element.tag in ('slot', 'template'):
            self.errors.append(
                f"Cannot use <{element.tag}> as component root element because it may contain multiple nodes."
            )
        if element.forSpec is not None:
            self.errors.append(
                "Cannot use v-for on stateful component root element because it renders multiple elements."
            )

    def expression_validate(self, expression: str, rawName: str, line_number: int) -> None:
        problem = expression_check(expression)
        if problem:
            self.errors.append(
                f"invalid expression: {problem} in\n\n    {expression}\n\n"
                f"  Raw expression: {rawName}=\"{expression}\" (line {line_number})"
            )

    def for_parse(self, expression: str, line_number: int) -> Optional[ForSpec]:
        """
        Parse a v-for expression.

        Supports "item in list", "(item, index) in list" and
        "(value, key, index) in object" ("of" works like "in").
        """
        match = FOR_ALIAS_RE.match(expression)
        if not match:
            self.errors.append(f"Invalid v-for expression: {expression} (line {line_number})")
            return None
        alias = STRIP_PARENS_RE.sub('', match.group(1).strip()).strip()
        spec = ForSpec(source=match.group(2).strip(), alias=alias)
        iterators = FOR_ITERATOR_RE.search(alias)
        if iterators:
            spec.alias = FOR_ITERATOR_RE.sub('', alias).strip()
            spec.iterator1 = iterators.group(1).strip()
            if iterators.group(2):
                spec.iterator2 = iterators.group(2).strip()
        for name in (spec.alias, spec.iterator1, spec.iterator2):
            if name is not None and not (IDENTIFIER_RE.match(name) or name.startswith(('{', '['))):
                self.errors.append(f"Invalid v-for expression: {expression} (line {line_number})")
                return None
        if not spec.source:
            self.errors.append(f"Invalid v-for expression: {expression} (line {line_number})")
            return None
        self.expression_validate(spec.source, 'v-for', line_number)
        return spec

    def element_process(self, node: ElementNode, inPre: bool, inFor: bool,
                        forKey: Optional[str] = None) -> CompileElement:
        """
        Turn an ElementNode into a CompileElement, children included.

        Args:
            node: Parsed element
            inPre: True inside a v-pre subtree (attributes stay raw)
            inFor: True inside a v-for subtree
            forKey: Key expression of the nearest enclosing v-for element
        """
        element = CompileElement(tag=node.tag, line_number=node.line_number,
                                 inFor=inFor, forKey=forKey)
        attrs = node.attrsMap

        if not inPre and 'v-pre' in attrs:
            element.pre = True
        pre = inPre or element.pre

        if pre:
            for name, value in node.attrs:
                if name != 'v-pre':
                    element.staticAttrs.append((name, value if value is not None else ''))
        else:
            self.attrs_process(element, node)

        if element.forSpec is not None:
            inFor, forKey = True, element.key
        element.children = self.children_process(node, pre, inFor, forKey)
        return element

    def attrs_process(self, element: CompileElement, node: ElementNode) -> None:
        line = node.line_number
        for name, raw_value in node.attrs:
            value = raw_value if raw_value is not None else ''

            if not DIR_RE.match(name):
                self.staticAttr_process(element, name, raw_value)
                continue

            if name in ('v-if', 'v-else-if', 'v-else', 'v-for', 'v-once', 'v-pre', 'v-cloak'):
                self.structural_process(element, name, value, line)
                continue

            modifiers = {m[1:]: True for m in MODIFIER_RE.findall(name)}
            bare = MODIFIER_RE.sub('', name)

            if bare.startswith('#'):
                element.slotTarget = bare[1:] or 'default'
            elif BIND_RE.match(bare):
                target = BIND_RE.sub('', bare)
                if not value.strip():
                    self.errors.append(f"The value for a v-bind expression cannot be empty. Found in \"{name}\" (line {line})")
                    continue
                self.expression_validate(value, name, line)
                self.binding_process(element, target, value.strip(), modifiers)
            elif ON_RE.match(bare):
                event = ON_RE.sub('', bare)
                if value.strip():
                    self.expression_validate(value, name, line)
                self.event_add(element, event, value.strip(), modifiers)
            else:
                self.directive_process(element, name, bare, value.strip(), modifiers, line)

    def staticAttr_process(self, element: CompileElement, name: str, raw_value: Optional[str]) -> None:
        value = raw_value if raw_value is not None else ''
        if INTERPOLATION_RE.search(value):
            self.errors.append(
                f'{name}="{value}": Interpolation inside attributes has been removed. '
                f'Use v-bind or the colon shorthand instead. For example, '
                f'instead of <div id="{{{{ val }}}}">, use <div :id="val">.'
            )
        if name == 'class':
            element.staticClass = ' '.join(value.split())
        elif name == 'style':
            element.staticStyle = self.styleText_parse(value)
        elif name == 'key':
            element.key = js_string(value)
        elif name == 'ref':
            element.ref = value
        elif name == 'slot' and element.tag != 'slot':
            element.slotTarget = value or 'default'
            if element.tag != 'template':
                element.staticAttrs.append((name, value))
        elif name == 'name' and element.tag == 'slot':
            element.slotName = value
        else:
            element.staticAttrs.append((name, value))

    def styleText_parse(self, text: str) -> Dict[str, str]:
        """Parse a style attribute into a property dict"""
        result: Dict[str, str] = {}
        for item in re.split(r';(?![^(]*\))', text):
            if ':' in item:
                prop, _, value = item.partition(':')
                if prop.strip():
                    result[prop.strip()] = value.strip()
        return result

    def structural_process(self, element: CompileElement, name: str, value: str, line: int) -> None:
        if name in ('v-if', 'v-else-if', 'v-for') and not value.strip():
            self.errors.append(f"directive {name} requires a value (line {line})")
            return
        if name == 'v-if':
            self.expression_validate(value, name, line)
            element.ifExp = value.strip()
        elif name == 'v-else-if':
            self.expression_validate(value, name, line)
            element.elseIfExp = value.strip()
        elif name == 'v-else':
            element.isElse = True
        elif name == 'v-for':
            element.forSpec = self.for_parse(value.strip(), line)
        elif name == 'v-once':
            element.once = True
        # v-pre is handled in element_process, v-cloak is left to CSS

    def binding_process(self, element: CompileElement, target: str, value: str, modifiers: Dict[str, bool]) -> None:
        if modifiers.get('camel'):
            target = re.sub(r'-(\w)', lambda m: m.group(1).upper(), target)
        if target == 'class':
            element.classBinding = value
        elif target == 'style':
            element.styleBinding = value
        elif target == 'key':
            element.key = value
        elif target == 'name' and element.tag == 'slot':
            element.slotName = None
            element.boundAttrs.append((target, value))
        elif modifiers.get('prop'):
            element.domProps.append((target, value))
        else:
            element.boundAttrs.append((target, value))
        if modifiers.get('sync'):
            self.event_add(element, f'update:{target}', f'{value}=$event', {})

    def event_add(self, element: CompileElement, event: str, value: str, modifiers: Dict[str, bool]) -> None:
        if event == 'click':
            if modifiers.get('right'):
                event = 'contextmenu'
                modifiers = {k: v for k, v in modifiers.items() if k != 'right'}
            elif modifiers.get('middle'):
                event = 'mouseup'
        if modifiers.get('capture'):
            event = '!' + event
        if modifiers.get('once'):
            event = '~' + event
        if modifiers.get('passive'):
            event = '&' + event
        events = element.nativeEvents if modifiers.get('native') else element.events
        events.setdefault(event, []).append(Handler(value=value, modifiers=modifiers))

    def directive_process(self, element: CompileElement, rawName: str, bare: str,
                          value: str, modifiers: Dict[str, bool], line: int) -> None:
        name = bare[2:]
        arg: Optional[str] = None
        if ':' in name:
            name, arg = name.split(':', 1)

        if name in VALUE_DIRECTIVES and not value:
            self.errors.append(f"directive v-{name} requires a value (line {line})")
            return
        if value:
            self.expression_validate(value, rawName, line)

        if name == 'html':
            element.domProps.append(('innerHTML', f'_s({value})'))
        elif name == 'text':
            element.domProps.append(('textContent', f'_s({value})'))
        elif name == 'model':
            self.model_process(element, rawName, value, modifiers)
        elif name == 'slot':
            element.slotTarget = arg or 'default'
        else:
            element.directives.append(Directive(name=name, rawName=rawName, value=value or None,
                                                arg=arg, modifiers=modifiers))

    def model_process(self, element: CompileElement, rawName: str, value: str, modifiers: Dict[str, bool]) -> None:
        """Expand v-model into a directive plus the value binding and change listener"""
        tag = element.tag
        if not reservedTag_is(tag):
            element.model = value
            return

        element.directives.append(Directive(name='model', rawName=rawName, value=value,
                                            arg=None, modifiers=modifiers))
        input_type = dict(element.staticAttrs).get('type', '')
        valueExp = '$event.target.value'
        if modifiers.get('trim'):
            valueExp = '$event.target.value.trim()'
        if modifiers.get('number'):
            valueExp = f'_n({valueExp})'

        if tag == 'select':
            self.event_add(element, 'change', (
                f'var $$selectedVal = Array.prototype.filter.call($event.target.options,'
                f'function(o){{return o.selected}}).map(function(o){{var val = "_value" in o ? o._value : o.value;'
                f'return {"_n(val)" if modifiers.get("number") else "val"}}}); '
                f'{value}=$event.target.multiple ? $$selectedVal : $$selectedVal[0]'
            ), {})
        elif tag == 'input' and input_type == 'checkbox':
            element.domProps.append(('checked', f'Array.isArray({value})?_i({value},null)>-1:({value})'))
            self.event_add(element, 'change', f'{value}=$event.target.checked', {})
        elif tag == 'input' and input_type == 'radio':
            radio_value = js_string(dict(element.staticAttrs).get('value', ''))
            element.domProps.append(('checked', f'_q({value},{radio_value})'))
            self.event_add(element, 'change', f'{value}={radio_value}', {})
        else:
            event = 'change' if modifiers.get('lazy') else 'input'
            element.domProps.append(('value', f'({value})'))
            guard = '' if modifiers.get('lazy') else 'if($event.target.composing)return;'
            self.event_add(element, event, f'{guard}{value}={valueExp}', {})

    def text_process(self, text: str, pre: bool) -> CompileText:
        if pre:
            return CompileText(text=text, expression=None)
        tokens: List[str] = []
        last = 0
        for match in INTERPOLATION_RE.finditer(text):
            if match.start() > last:
                tokens.append(js_string(text[last:match.start()]))
            expression = match.group(1).strip()
            problem = expression_check(expression)
            if problem:
                self.errors.append(f"invalid expression: {problem} in\n\n    {expression}\n\n  Raw expression: {match.group(0)}")
            tokens.append(f'_s({expression})')
            last = match.end()
        if not tokens:
            return CompileText(text=text, expression=None)
        if last < len(text):
            tokens.append(js_string(text[last:]))
        return CompileText(text=text, expression='+'.join(tokens))

    def children_process(self, node: ElementNode, pre: bool, inFor: bool,
                         forKey: Optional[str]) -> List[Union[CompileElement, CompileText]]:
        """
        Process children: whitespace handling, v-else attachment.

        Whitespace-only text condenses to one space between siblings and
        is dropped at both ends; <pre>/<textarea> and v-pre keep text as is.
        """
        keepWhitespace = pre or node.tag in ('pre', 'textarea')
        children: List[Union[CompileElement, CompileText]] = []

        for index, child in enumerate(node.children):
            if isinstance(child, TextNode):
                text = child.text
                if index == 0 and node.tag in ('pre', 'textarea') and text.startswith('\n'):
                    text = text[1:]
                if not keepWhitespace and not text.strip():
                    if not children:
                        continue
                    text = ' '
                if text:
                    children.append(self.text_process(text, pre))
                continue

            element = self.element_process(child, inPre=pre, inFor=inFor, forKey=forKey)
            if element.elseIfExp is not None or element.isElse:
                self.else_attach(element, children)
                continue
            children.append(element)

        if not keepWhitespace:
            while children and isinstance(children[-1], CompileText) and children[-1].text == ' ':
                children.pop()
        return children

    def else_attach(self, element: CompileElement, siblings: List[Union[CompileElement, CompileText]]) -> None:
        while siblings and isinstance(siblings[-1], CompileText):
            dropped = siblings.pop()
            if dropped.text.strip():
                self.errors.append(
                    f'text "{dropped.text.strip()}" between v-if and v-else(-if) will be ignored.'
                )
        previous = siblings[-1] if siblings else None
        if isinstance(previous, CompileElement) and previous.ifExp is not None:
            previous.ifConditions.append((element.elseIfExp, element))
            return
        if element.elseIfExp is not None:
            self.errors.append(
                f'v-else-if="{element.elseIfExp}" used on element <{element.tag}> without corresponding v-if.'
            )
        else:
            self.errors.append(f"v-else used on element <{element.tag}> without corresponding v-if.")

    # ------------------------------------------------------------------
    # Optimization
    # ------------------------------------------------------------------

    def node_isStatic(self, element: CompileElement) -> bool:
        if element.pre:
            return True
        return (
            not element.boundAttrs and not element.domProps and element.classBinding is None
            and element.styleBinding is None and element.key is None and element.ref is None
            and not element.events and not element.nativeEvents and not element.directives
            and element.model is None and element.forSpec is None and element.ifExp is None
            and element.elseIfExp is None and not element.isElse and element.slotTarget is None
            and element.tag not in ('slot', 'component', 'template') and reservedTag_is(element.tag)
        )

    def static_mark(self, element: CompileElement) -> None:
        """Mark every element whose whole subtree is free of bindings"""
        element.static = self.node_isStatic(element)
        for child in element.children:
            if isinstance(child, CompileElement):
                self.static_mark(child)
                if not child.static:
                    element.static = False
            elif not child.static:
                element.static = False
        for _, branch in element.ifConditions:
            self.static_mark(branch)

    def staticRoots_mark(self, element: CompileElement) -> None:
        """Mark the outermost static subtrees worth hoisting"""
        if element.static and element.children and not (
            len(element.children) == 1 and isinstance(element.children[0], CompileText)
        ):
            element.staticRoot = True
            return
        for child in element.children:
            if isinstance(child, CompileElement):
                self.staticRoots_mark(child)
        for _, branch in element.ifConditions:
            self.staticRoots_mark(branch)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def element_gen(self, element: CompileElement) -> str:
        """Generate the code of one element, honoring for/if/once/static"""
        if element.staticRoot and not element.staticProcessed:
            return self.static_gen(element)
        if element.once and not element.onceProcessed:
            return self.once_gen(element)
        if element.forSpec is not None and not element.forProcessed:
            return self.for_gen(element)
        if element.ifExp is not None and not element.ifProcessed:
            return self.if_gen(element)
        if element.tag == 'template' and element.slotTarget is None and not element.pre:
            return self.children_gen(element) or 'void 0'
        if element.tag == 'slot':
            return self.slot_gen(element)

        data = '' if element.plain else self.data_gen(element)
        children = self.children_gen(element)
        code = f"_c('{element.tag}'"
        if data:
            code += f",{data}"
        if children:
            code += f",{children}"
        return code + ")"

    def static_gen(self, element: CompileElement) -> str:
        element.staticProcessed = True
        self.staticRenderFns.append(f"with(this){{return {self.element_gen(element)}}}")
        index = len(self.staticRenderFns) - 1
        return f"_m({index}{',true' if element.inFor else ''})"

    def once_gen(self, element: CompileElement) -> str:
        element.onceProcessed = True
        if element.ifExp is not None and not element.ifProcessed:
            return self.if_gen(element)
        if element.inFor:
            key = element.forKey
            if key is None:
                self.errors.append("v-once can only be used inside v-for that is keyed.")
                return self.element_gen(element)
            code = f"_o({self.element_gen(element)},{self.onceId},{key})"
            self.onceId += 1
            return code
        return self.static_gen(element)

    def for_gen(self, element: CompileElement) -> str:
        element.forProcessed = True
        spec = element.forSpec
        assert spec is not None
        params = ','.join(p for p in (spec.alias, spec.iterator1, spec.iterator2) if p)
        return f"_l(({spec.source}),function({params}){{return {self.element_gen(element)}}})"

    def if_gen(self, element: CompileElement) -> str:
        element.ifProcessed = True
        conditions: List[Tuple[Optional[str], CompileElement]] = [(element.ifExp, element)]
        conditions.extend(element.ifConditions)
        return self.ifConditions_gen(conditions)

    def ifConditions_gen(self, conditions: List[Tuple[Optional[str], CompileElement]]) -> str:
        if not conditions:
            return '_e()'
        expression, block = conditions[0]
        block_code = self.element_gen(block)
        if expression is None:
            return block_code
        return f"({expression})?{block_code}:{self.ifConditions_gen(conditions[1:])}"

    def slot_gen(self, element: CompileElement) -> str:
        name = js_string(element.slotName or 'default')
        bound = dict(element.boundAttrs)
        if 'name' in bound:
            name = bound.pop('name')
        children = self.children_gen(element)
        code = f"_t({name}"
        if children:
            code += f",{children}"
        attrs = [f"{js_string(k)}:{js_string(v)}" for k, v in element.staticAttrs]
        attrs += [f"{js_string(k)}:{v}" for k, v in bound.items()]
        if attrs:
            code += f"{'' if children else ',null'},{{{','.join(attrs)}}}"
        return code + ")"

    def children_gen(self, element: CompileElement) -> str:
        children = element.children
        if not children:
            return ''
        if len(children) == 1 and isinstance(children[0], CompileElement):
            only = children[0]
            if only.forSpec is not None and only.tag not in ('template', 'slot'):
                return f"{self.element_gen(only)},0"
        codes = [self.node_gen(child) for child in children]
        normalize = any(self.needsNormalization(child) for child in children
                        if isinstance(child, CompileElement))
        return f"[{','.join(codes)}]" + (',2' if normalize else '')

    def needsNormalization(self, element: CompileElement) -> bool:
        branches = [element] + [branch for _, branch in element.ifConditions]
        return any(b.forSpec is not None or b.tag in ('template', 'slot') for b in branches)

    def node_gen(self, node: Union[CompileElement, CompileText]) -> str:
        if isinstance(node, CompileElement):
            return self.element_gen(node)
        if node.expression is not None:
            return f"_v({node.expression})"
        return f"_v({js_string(node.text)})"

    def data_gen(self, element: CompileElement) -> str:
        """Generate the data object of an element, in runtime key order"""
        parts: List[str] = []
        if element.directives:
            parts.append(f"directives:[{','.join(self.directive_gen(d) for d in element.directives)}]")
        if element.key is not None:
            parts.append(f"key:{element.key}")
        if element.ref:
            parts.append(f"ref:{js_string(element.ref)}")
            if element.inFor or element.forSpec is not None:
                parts.append("refInFor:true")
        if element.pre:
            parts.append("pre:true")
        if element.staticClass is not None:
            parts.append(f"staticClass:{js_string(element.staticClass)}")
        if element.classBinding is not None:
            parts.append(f"class:{element.classBinding}")
        if element.staticStyle is not None:
            parts.append(f"staticStyle:{js_object(element.staticStyle)}")
        if element.styleBinding is not None:
            parts.append(f"style:{element.styleBinding}")
        if element.staticAttrs or element.boundAttrs:
            attrs = [f"{js_string(k)}:{js_string(v)}" for k, v in element.staticAttrs]
            attrs += [f"{js_string(k)}:{v}" for k, v in element.boundAttrs]
            parts.append(f"attrs:{{{','.join(attrs)}}}")
        if element.domProps:
            props = [f"{js_string(k)}:{v}" for k, v in element.domProps]
            parts.append(f"domProps:{{{','.join(props)}}}")
        if element.events:
            parts.append(f"on:{self.handlers_gen(element.events)}")
        if element.nativeEvents:
            parts.append(f"nativeOn:{self.handlers_gen(element.nativeEvents)}")
        if element.slotTarget is not None:
            parts.append(f"slot:{js_string(element.slotTarget)}")
        if element.model is not None:
            parts.append(
                f"model:{{value:({element.model}),callback:function ($$v) {{{element.model}=$$v}},"
                f"expression:{js_string(element.model)}}}"
            )
        return '{' + ','.join(parts) + '}'

    def directive_gen(self, directive: Directive) -> str:
        code = f'{{name:{js_string(directive.name)},rawName:{js_string(directive.rawName)}'
        if directive.value:
            code += f',value:({directive.value}),expression:{js_string(directive.value)}'
        if directive.arg:
            code += f',arg:{js_string(directive.arg)}'
        if directive.modifiers:
            code += f',modifiers:{js_object(directive.modifiers)}'
        return code + '}'

    def handlers_gen(self, events: Dict[str, List[Handler]]) -> str:
        entries = []
        for name, handlers in events.items():
            if len(handlers) == 1:
                code = self.handler_gen(handlers[0])
            else:
                code = '[' + ','.join(self.handler_gen(h) for h in handlers) + ']'
            entries.append(f"{js_string(name)}:{code}")
        return '{' + ','.join(entries) + '}'

    def handler_gen(self, handler: Handler) -> str:
        """Generate one event handler, wrapping statements and modifier guards"""
        value = handler.value
        if not value:
            return 'function(){}'
        isMethodPath = bool(SIMPLE_PATH_RE.match(value))
        isFunctionExpression = bool(FN_EXP_RE.match(value))
        isFunctionInvocation = bool(SIMPLE_PATH_RE.match(FN_INVOKE_RE.sub('', value)))

        guards: List[str] = []
        keys: List[str] = []
        for modifier in handler.modifiers:
            if modifier in MODIFIER_GUARDS:
                guards.append(MODIFIER_GUARDS[modifier])
                if modifier in KEY_CODES:
                    keys.append(modifier)
            elif modifier == 'exact':
                others = [m for m in ('ctrl', 'shift', 'alt', 'meta') if m not in handler.modifiers]
                if others:
                    guards.append('if(' + '||'.join(f'$event.{m}Key' for m in others) + ')return null;')
            elif modifier not in EVENT_NAME_MODIFIERS:
                keys.append(modifier)
        if keys:
            checks = '&&'.join(self.keyFilter_gen(key) for key in keys)
            guards.insert(0, f"if(!$event.type.indexOf('key')&&{checks})return null;")

        if not guards:
            if isMethodPath or isFunctionExpression:
                return value
            if isFunctionInvocation:
                return f"function($event){{return {value}}}"
            return f"function($event){{{value}}}"

        if isMethodPath:
            body = f"return {value}.apply(null, arguments)"
        elif isFunctionExpression:
            body = f"return ({value}).apply(null, arguments)"
        elif isFunctionInvocation:
            body = f"return {value}"
        else:
            body = value
        return f"function($event){{{''.join(guards)}{body}}}"

    def keyFilter_gen(self, key: str) -> str:
        if key.isdigit():
            return f"$event.keyCode!=={key}"
        code = js_object(KEY_CODES[key]) if key in KEY_CODES else 'undefined'
        name = js_object(KEY_NAMES[key]) if key in KEY_NAMES else 'undefined'
        return f"_k($event.keyCode,{js_string(key)},{code},$event.key,{name})"


def renderer_fallback(message: Optional[str] = None) -> CompiledRenderer:
    """
    Renderer substituted for a template that failed to compile.

    Its render routine throws at runtime; it has no static routines.
    """
    message = message or appsettings.fallback_message
    return CompiledRenderer(render=f"throw new Error({js_string(message)})", staticRenderFns=[])


def template_compile(markup: str, host: Any) -> CompiledRenderer:
    """
    Compile markup, absorbing compile errors into a fallback renderer.

    Compile errors are reported once on the host error channel and the
    returned renderer throws when used, so the build itself continues.

    Args:
        markup: Template markup
        host: Host receiving the error report (see lib.host)

    Returns:
        The compiled renderer, or renderer_fallback() on compile errors
    """
    renderer = TemplateCompiler(markup).compile()
    if renderer.errors:
        host.emitError(appsettings.message_make(
            "template-compiler", "ERROR", "\n".join(renderer.errors)
        ))
        return renderer_fallback()
    return renderer
