"""
Markup enrichment plugin tests

Tests each built-in plugin (block, scope, markdown, lorem), the plugin
run order and failure wrapping.
"""

import pytest

from htmlpack.config import appsettings
from htmlpack.lib.enrich import PluginRegistry, css_scope, lorem_text, markup_enrich
from htmlpack.models import EnrichmentError, PipelineOptions, PluginSpec


def enrich(markup: str, **options) -> str:
    return markup_enrich(markup, PipelineOptions(**options))


class TestRegistry:
    """Plugin registration and order"""

    def test_builtin_order(self):
        """Built-in plugins run block, scope, markdown, lorem"""
        assert PluginRegistry().names() == ["block", "scope", "markdown", "lorem"]

    def test_get(self):
        """Plugins are retrievable by name"""
        registry = PluginRegistry()
        assert registry.get("markdown").name == "markdown"
        assert registry.get("missing") is None

    def test_plain_markup_unchanged(self):
        """Markup using no plugin features passes through"""
        assert enrich("<div>{{x}}</div>") == "<div>{{x}}</div>"

    def test_failure_wrapped(self):
        """A failing plugin aborts with its stage name"""

        def broken(soup, options):
            raise RuntimeError("bad plugin")

        registry = PluginRegistry()
        registry.register(PluginSpec(name="broken", description="fails", handler=broken))
        with pytest.raises(EnrichmentError) as info:
            markup_enrich("<div></div>", PipelineOptions(), registry)
        assert info.value.stage == "broken"
        assert str(info.value) == "[enrich:broken] bad plugin"
        assert isinstance(info.value.__cause__, RuntimeError)


class TestBlockPlugin:
    """<block>/<inline> shorthands"""

    def test_block_with_name(self):
        """<block name> becomes a classed <div>"""
        assert enrich('<block name="card">x</block>') == '<div class="card">x</div>'

    def test_inline(self):
        """<inline> becomes <span>"""
        assert enrich('<p><inline>y</inline></p>') == '<p><span>y</span></p>'

    def test_name_joins_existing_class(self):
        """name is appended to existing classes"""
        assert enrich('<block class="a" name="b"></block>') == '<div class="a b"></div>'


class TestScopePlugin:
    """Root scope, local scope attributes and scoped styles"""

    def test_root_scope(self):
        """Top-level elements get the root scope class"""
        assert enrich('<div><p>x</p></div>', scope="app") == '<div class="app"><p>x</p></div>'

    def test_scope_none(self):
        """scope 'none' disables root scoping"""
        assert enrich('<div><p>x</p></div>', scope="none") == '<div><p>x</p></div>'

    def test_local_scope_attribute(self):
        """scope="x" on an element becomes a class"""
        assert enrich('<div class="a" scope="side">x</div>') == '<div class="a side">x</div>'

    def test_table_scope_kept(self):
        """scope on table cells is a real attribute and stays"""
        output = enrich('<table><tr><th scope="col">h</th></tr></table>')
        assert 'scope="col"' in output

    def test_scoped_style(self):
        """Selectors in <style scoped> are prefixed with the root scope"""
        output = enrich('<div><style scoped>p, a { color: red }</style></div>', scope="app")
        assert ".app p, .app a { color: red }" in output
        assert "scoped" not in output

    def test_scoped_style_without_scope(self):
        """Without a root scope, scoped styles are left alone"""
        output = enrich('<div><style scoped>p { color: red }</style></div>')
        assert "p { color: red }" in output


class TestCssScope:
    """Selector prefixing"""

    def test_selector_list(self):
        """Every selector of a rule is prefixed"""
        assert css_scope("p, a:hover { color: red }", "app") == ".app p, .app a:hover { color: red }"

    def test_media_rules(self):
        """Rules inside @media are prefixed"""
        assert css_scope("@media print { p { x: y } }", "s") == "@media print { .s p { x: y } }"

    def test_keyframes_untouched(self):
        """Keyframe selectors are not style rules"""
        css = "@keyframes spin { from { a: b } }"
        assert css_scope(css, "s") == css

    def test_import_statement(self):
        """Statement at-rules pass through"""
        assert css_scope("@import 'x.css'; p{a:b}", "s") == "@import 'x.css'; .s p{a:b}"


class TestMarkdownPlugin:
    """Markdown regions"""

    def test_md_attribute(self):
        """Indented markdown inside an md element is rendered"""
        output = enrich('<div md>\n  # Title\n\n  Some *text*\n</div>')
        assert "<h1>Title</h1>" in output
        assert "<em>text</em>" in output
        assert "md=" not in output

    def test_markdown_element(self):
        """<markdown> is replaced by its rendering"""
        output = enrich('<section><markdown>\n**bold**\n</markdown></section>')
        assert output == "<section><p><strong>bold</strong></p></section>"

    def test_blockquote_not_escaped(self):
        """'>' in markdown source reaches the renderer unescaped"""
        output = enrich('<div md>\n> quoted\n</div>')
        assert "<blockquote>" in output

    def test_md_and_markdown_attributes(self, monkeypatch):
        """An element with both md and markdown is rendered once"""
        import markdown

        calls = []
        render = markdown.markdown

        def counting(source, **kwargs):
            calls.append(source)
            return render(source, **kwargs)

        monkeypatch.setattr(markdown, "markdown", counting)
        output = enrich('<div md markdown>\n# Title\n</div>')
        assert output == "<div><h1>Title</h1></div>"
        assert calls == ["# Title"]


class TestSourceCase:
    """Tag and attribute names keep the case they are written in"""

    def test_component_and_bindings(self):
        """PascalCase components and camelCase bindings survive enrichment"""
        markup = '<div><MyButton :isActive="on" @myEvent="go"></MyButton></div>'
        assert enrich(markup) == markup

    def test_self_closing_component(self):
        """A self-closing component inside a shorthand keeps its name"""
        assert enrich('<block name="x"><MyCard/></block>') == '<div class="x"><MyCard></MyCard></div>'

    def test_svg_attribute(self):
        """SVG attributes such as viewBox keep their spelling"""
        assert enrich('<svg viewBox="0 0 1 1"></svg>') == '<svg viewBox="0 0 1 1"></svg>'


class TestLoremPlugin:
    """Placeholder text"""

    def test_words(self):
        """words="N" gives N words"""
        assert enrich('<p><lorem words="3"></lorem></p>') == "<p>Lorem ipsum dolor</p>"

    def test_default_words(self):
        """A bare <lorem> gives the configured number of words"""
        assert len(lorem_text({}).split()) == appsettings.lorem_words

    def test_sentences(self):
        """sentences="N" gives N sentences"""
        assert lorem_text({"sentences": "3"}).count(".") == 3

    def test_paragraphs(self):
        """paragraphs="N" gives N <p> elements"""
        output = enrich('<div><lorem paragraphs="2"></lorem></div>')
        assert output.count("<p>") == 2

    def test_deterministic(self):
        """The same attributes always give the same text"""
        markup = '<div><lorem sentences="4"></lorem></div>'
        assert enrich(markup) == enrich(markup)

    def test_invalid_count(self):
        """A non-numeric count fails the lorem stage"""
        with pytest.raises(EnrichmentError) as info:
            enrich('<div><lorem words="many"></lorem></div>')
        assert info.value.stage == "lorem"
        assert str(info.value).startswith("[enrich:lorem] ")

    def test_negative_count(self):
        """A negative count fails the lorem stage"""
        with pytest.raises(EnrichmentError):
            enrich('<div><lorem words="-1"></lorem></div>')
