"""
Resource query parsing and option merging tests
"""

import pytest

from htmlpack.lib.host import BuildHost
from htmlpack.lib.query import options_merge, query_parse


class TestQueryParse:
    """Query string forms"""

    def test_empty(self):
        """No query gives no options"""
        assert query_parse("") == {}
        assert query_parse("?") == {}

    def test_pairs_and_flags(self):
        """key=value pairs and bare flags"""
        assert query_parse("?scope=app&minimize") == {"scope": "app", "minimize": True}

    def test_signed_flags(self):
        """+flag and -flag set booleans"""
        assert query_parse("?-minimize,+esModule") == {"minimize": False, "esModule": True}

    def test_boolean_strings(self):
        """'true' and 'false' values become booleans"""
        assert query_parse("a=true&b=false&c=yes") == {"a": True, "b": False, "c": "yes"}

    def test_lists(self):
        """Repeated [] keys collect into a list"""
        assert query_parse("?tag[]=a&tag[]=b") == {"tag": ["a", "b"]}

    def test_percent_decoding(self):
        """Keys and values are percent-decoded"""
        assert query_parse("?scope=my%20app") == {"scope": "my app"}

    def test_json(self):
        """A JSON object query is parsed as JSON"""
        assert query_parse('?{"scope": "x", "minimize": true}') == {"scope": "x", "minimize": True}

    def test_malformed_json(self):
        """Malformed JSON raises ValueError"""
        with pytest.raises(ValueError):
            query_parse('?{"scope":')


class TestOptionsMerge:
    """Settings, host options and query, later ones winning"""

    def test_defaults(self):
        """Without host options the settings defaults apply"""
        options = options_merge(BuildHost())
        assert options.scope == "none"
        assert options.minimize is False
        assert options.esModule is None

    def test_host_minimize(self):
        """The host-wide minimize flag is picked up"""
        assert options_merge(BuildHost(minimize=True)).minimize is True

    def test_query_wins(self):
        """The resource query overrides host options"""
        host = BuildHost(options={"scope": "a"}, resourceQuery="?scope=b")
        assert options_merge(host).scope == "b"

    def test_extra_options_kept(self):
        """Unknown options survive as extra fields"""
        options = options_merge(BuildHost(options={"flavor": "x"}))
        assert options.flavor == "x"

    def test_options_frozen(self):
        """Merged options are immutable"""
        options = options_merge(BuildHost())
        with pytest.raises(Exception):
            options.scope = "other"
