"""
Markup tree tests

Source spelling of tag and attribute names, and end-tag matching
across case.
"""

from htmlpack.lib.markup import markup_parse, reservedTag_is, sourceNames_collect


class TestSourceNames:
    """Names keep the case they are written in"""

    def test_component_tree(self):
        """Tags and attributes of a mixed-case start tag are restored"""
        tree = markup_parse('<div><MyButton :isActive="on" @myEvent="go" class="b"></MyButton></div>')
        button = tree.roots[0].children[0]
        assert tree.errors == []
        assert button.tag == "MyButton"
        assert button.attrs == [(":isActive", "on"), ("@myEvent", "go"), ("class", "b")]

    def test_self_closing(self):
        """Self-closing start tags are restored too"""
        tree = markup_parse('<MyIcon iconName="x"/>')
        assert tree.roots[0].tag == "MyIcon"
        assert tree.roots[0].attrsMap == {"iconName": "x"}

    def test_names_inside_values_ignored(self):
        """Attribute values that look like attributes do not confuse restoration"""
        tree = markup_parse('<a title="fooBar=1" fooBar="2"></a>')
        assert tree.roots[0].attrs == [("title", "fooBar=1"), ("fooBar", "2")]

    def test_end_tag_any_case(self):
        """A lower-case end tag closes a mixed-case start tag"""
        tree = markup_parse("<MyCard><p>x</p></mycard>")
        assert tree.errors == []
        assert tree.roots[0].tag == "MyCard"

    def test_collect(self):
        """Only names that differ from their lower-cased form are collected"""
        names = sourceNames_collect('<div><MyButton :isActive="on" class="x"></MyButton></div>')
        assert names == {"mybutton": "MyButton", ":isactive": ":isActive"}

    def test_collect_skips_comments(self):
        """Tags inside comments and script text are not collected"""
        assert sourceNames_collect("<!-- <MyButton> --><script>a = '<FooBar>'</script>") == {}


class TestReservedTags:
    """HTML tags match exactly, SVG tags in any case"""

    def test_reserved(self):
        """Plain HTML and SVG tags are reserved"""
        assert reservedTag_is("div")
        assert reservedTag_is("linearGradient")
        assert reservedTag_is("foreignObject")

    def test_components(self):
        """Unknown and capitalized HTML names are components"""
        assert not reservedTag_is("MyButton")
        assert not reservedTag_is("Button")
