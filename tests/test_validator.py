"""
Template validator tests

Each warning category in isolation, plus the never-raises contract.
"""

from htmlpack.lib.validator import template_validate


class TestCleanMarkup:
    """Sound markup produces no warnings"""

    def test_simple(self):
        """A plain element tree is clean"""
        assert template_validate("<div><p>x</p></div>") == []

    def test_lists_and_tables(self):
        """Well-formed lists and tables are clean"""
        markup = (
            "<div><ul><li>a</li><template v-if='b'><li>b</li></template></ul>"
            "<table><tbody><tr><td>1</td></tr></tbody></table></div>"
        )
        assert template_validate(markup) == []

    def test_builtin_directives(self):
        """Built-in directives and shorthands are recognized"""
        markup = '<div v-if="a" v-on:click="b" v-bind:id="c" v-model.trim="d" :x="e" @y="f"></div>'
        assert template_validate(markup) == []


class TestNesting:
    """Content models the browser would repair"""

    def test_block_in_paragraph(self):
        """<div> inside <p> is reported"""
        warnings = template_validate("<p><div>x</div></p>")
        assert len(warnings) == 1
        assert "<div> cannot be a child of <p>" in warnings[0]

    def test_orphan_list_item(self):
        """<li> without a list ancestor is reported"""
        warnings = template_validate("<div><li>x</li></div>")
        assert len(warnings) == 1
        assert "<li> outside of <ul>, <ol> or <menu>" in warnings[0]

    def test_list_child(self):
        """Non-<li> children of a list are reported"""
        warnings = template_validate("<ul><span>x</span></ul>")
        assert len(warnings) == 1
        assert "<span> cannot be a direct child of <ul>" in warnings[0]

    def test_row_in_table(self):
        """<tr> directly inside <table> is reported"""
        warnings = template_validate("<table><tr><td>1</td></tr></table>")
        assert len(warnings) == 1
        assert "<tr> cannot be a direct child of <table>" in warnings[0]

    def test_cell_outside_row(self):
        """<td> outside <tr> is reported"""
        warnings = template_validate("<div><td>1</td></div>")
        assert warnings == ["<td> must be a direct child of <tr> (line 1)"]

    def test_interactive_in_link(self):
        """Interactive content inside <a> is reported"""
        warnings = template_validate('<a href="#"><button>x</button></a>')
        assert warnings == ["interactive <button> nested inside <a> (line 1)"]


class TestAttributes:
    """Attribute checks"""

    def test_duplicate_attribute(self):
        """Repeated attributes are reported"""
        warnings = template_validate('<div id="a" id="b"></div>')
        assert warnings == ["duplicate attribute 'id' on <div> (line 1)"]

    def test_unknown_directive(self):
        """v- directives that are not built in are reported"""
        warnings = template_validate('<div v-focus.lazy="x"></div>')
        assert warnings == [
            "'v-focus.lazy' on <div> (line 1) is not a built-in directive: "
            "make sure v-focus is registered"
        ]

    def test_known_custom_directive(self):
        """Custom directives named by the caller are accepted"""
        markup = '<div v-focus.lazy="x" v-tooltip:top="t"></div>'
        assert template_validate(markup, directives=["focus", "tooltip"]) == []
        assert len(template_validate(markup, directives=["focus"])) == 1


class TestSourceCase:
    """Mixed-case names"""

    def test_components_not_flagged(self):
        """PascalCase components and camelCase bindings are clean"""
        assert template_validate('<ul><li><MyItem :isActive="a" @myEvent="b"/></li></ul>') == []

    def test_upper_case_html_tags(self):
        """Content-model checks apply whatever the tag case"""
        warnings = template_validate("<DIV><LI>x</LI></DIV>")
        assert warnings == ["<li> outside of <ul>, <ol> or <menu> (line 1)"]


class TestObsoleteAndLines:
    """Obsolete elements and line reporting"""

    def test_obsolete_element(self):
        """<center> is reported as obsolete"""
        warnings = template_validate("<div><center>x</center></div>")
        assert warnings == ["<center> is obsolete (line 1): use CSS instead"]

    def test_line_numbers(self):
        """Warnings name the source line"""
        warnings = template_validate("<div>\n\n<li>x</li>\n</div>")
        assert "(line 3)" in warnings[0]

    def test_warning_order(self):
        """Warnings follow document order"""
        warnings = template_validate("<div><font>a</font>\n<li>b</li></div>")
        assert warnings[0].startswith("<font> is obsolete")
        assert warnings[1].startswith("<li> outside")


class TestNeverRaises:
    """Broken markup still yields a list"""

    def test_unbalanced(self):
        """Unbalanced markup does not raise"""
        assert isinstance(template_validate("<div><<</span><p"), list)

    def test_empty(self):
        """Empty markup is clean"""
        assert template_validate("") == []
