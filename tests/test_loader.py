"""
End-to-end transform tests

Tests the full pipeline: raw template -> strip -> trim -> enrich ->
inline -> validate -> compile -> module text, and the reporting
contract with the host (cacheable, one warning report, at most one
error).
"""

import asyncio

import pytest

from htmlpack.lib.host import BuildHost, TransformHost
from htmlpack.lib.loader import pipeline_run, transform
from htmlpack.models import AssetError, EnrichmentError, Phase, TransformError, TransformState


FALLBACK = 'throw new Error("Template compilation already failed under build-time")'


def run(source: str, host: BuildHost) -> str:
    return asyncio.run(transform(source, host, verbosity=0))


class TestGoodTemplate:
    """A sound template compiles without reports"""

    def test_comment_stripped_and_compiled(self):
        """Leading comment dropped, interpolation compiled"""
        host = BuildHost()
        output = run("<!-- c -->\n<div>{{x}}</div>", host)

        assert host.isCacheable is True
        assert host.warnings == []
        assert host.errors == []
        assert output.startswith("module.exports = {\n    render: function () {")
        assert "_s(x)" in output
        assert "staticRenderFns: []" in output
        assert output.endswith("\n};\n")

    def test_static_routines_exported(self):
        """Hoisted subtrees appear in staticRenderFns"""
        host = BuildHost()
        output = run("<div><p>a <b>b</b></p><i>{{ c }}</i></div>\n", host)
        assert "_m(0)" in output
        assert "staticRenderFns: [\n" in output

    def test_host_satisfies_protocol(self):
        """BuildHost implements the host protocol"""
        assert isinstance(BuildHost(), TransformHost)

    def test_deterministic(self):
        """Transforming the same input twice gives identical text"""
        source = "<!-- c -->\n<div class='a'><p>{{ x }}</p><lorem words='4'></lorem></div>"
        assert run(source, BuildHost()) == run(source, BuildHost())


class TestOptions:
    """Options reach the stages"""

    def test_scope_from_query(self):
        """?scope=app adds the root scope class"""
        host = BuildHost(resourceQuery="?scope=app")
        output = run("<div>{{x}}</div>", host)
        assert '"app"' in output

    def test_es_module_option(self):
        """esModule switches the export style"""
        host = BuildHost(options={"esModule": True})
        assert run("<div></div>", host).startswith("export default {")

    def test_enrichment_applied(self):
        """Block shorthands are expanded before compiling"""
        output = run('<block name="card">{{ x }}</block>', BuildHost())
        assert "_c('div'" in output
        assert '"card"' in output


class TestCompileFailure:
    """Compile errors degrade to the fallback module"""

    def test_fallback_module(self):
        """Two roots: one error report, fallback renderer, no exception"""
        host = BuildHost()
        output = run("<div></div><p></p>", host)

        assert len(host.errors) == 1
        assert host.errors[0].startswith("htmlpack: [template-compiler]: ERROR: ")
        assert FALLBACK in output
        assert "staticRenderFns: []" in output

    def test_comment_only_source(self):
        """A comment-only source compiles to the fallback"""
        host = BuildHost()
        output = run("<!-- only a comment -->\n", host)
        assert len(host.errors) == 1
        assert "Template is empty" in host.errors[0]
        assert FALLBACK in output


class TestWarnings:
    """Validator warnings are reported once and never fail"""

    def test_single_warning_report(self):
        """All warnings arrive in one message"""
        host = BuildHost()
        output = run("<div><li>x</li><center>y</center></div>", host)

        assert len(host.warnings) == 1
        assert host.warnings[0].startswith("htmlpack: [template-validator]: WARNING:\n")
        assert "<li> outside" in host.warnings[0]
        assert "<center> is obsolete" in host.warnings[0]
        assert host.errors == []
        assert "module.exports" in output


class TestFatalFailure:
    """Stage exceptions are reported once and raised"""

    def test_enrichment_failure(self):
        """A failing plugin aborts with one error report"""
        host = BuildHost()
        with pytest.raises(TransformError) as info:
            run('<div><lorem words="x"></lorem></div>', host)

        assert isinstance(info.value.__cause__, EnrichmentError)
        assert info.value.stage == "lorem"
        assert len(host.errors) == 1
        assert host.errors[0].startswith("htmlpack: ERROR: [enrich:lorem] ")
        assert host.warnings == []
        assert host.isCacheable is True

    def test_missing_asset(self, tmp_path):
        """A missing asset aborts the transform"""
        host = BuildHost(resourcePath=tmp_path / "t.html")
        with pytest.raises(TransformError) as info:
            run("<div><img src='nope.png'></div>", host)

        assert isinstance(info.value.__cause__, AssetError)
        assert len(host.errors) == 1
        assert host.errors[0].startswith("htmlpack: ERROR: asset not found: ")

    def test_bad_query(self):
        """A malformed resource query is reported like any failure"""
        host = BuildHost(resourceQuery='?{"scope":')
        with pytest.raises(TransformError):
            run("<div></div>", host)
        assert len(host.errors) == 1


class TestSourceCase:
    """Names written in mixed case survive every stage"""

    def test_component_and_bindings(self):
        """Components and camelCase props and events compile as written"""
        host = BuildHost()
        output = run('<div><MyButton :isActive="on" @myEvent="go"/></div>', host)

        assert "_c('MyButton'" in output
        assert '"isActive": on' in output or '"isActive":on' in output
        assert "mybutton" not in output
        assert "isactive" not in output
        assert "myevent" not in output
        assert host.warnings == []

    def test_known_directives_option(self):
        """Custom directives named in options are not reported"""
        host = BuildHost(resourceQuery="?directives=focus")
        run('<input v-focus>', host)
        assert host.warnings == []

        host = BuildHost()
        run('<input v-focus>', host)
        assert "is not a built-in directive" in host.warnings[0]


class TestPipeline:
    """Stage composition and concurrency"""

    def test_phases(self):
        """A successful run ends in DONE with every product set"""
        state = TransformState(source="<div>{{ a }}</div>", host=BuildHost(), verbosity=0)
        final = asyncio.run(pipeline_run(state))

        assert final.phase == Phase.DONE
        assert final.markup == "<div>{{ a }}</div>"
        assert final.tokens[-1].value == "<div>{{ a }}</div>"
        assert final.renderer.render == "with(this){return _c('div',[_v(_s(a))])}"
        assert final.output.startswith("module.exports")
        assert state.phase == Phase.IDLE

    def test_concurrent_invocations(self):
        """Invocations gathered together keep their own reports"""
        sources = ["<div>{{ n%d }}</div>" % index for index in range(5)] + ["<a></a><b></b>"]
        hosts = [BuildHost() for _ in sources]

        async def gather():
            return await asyncio.gather(*(transform(s, h, verbosity=0) for s, h in zip(sources, hosts)))

        outputs = asyncio.run(gather())
        for index in range(5):
            assert f"_s(n{index})" in outputs[index]
            assert hosts[index].errors == []
        assert len(hosts[5].errors) == 1
        assert FALLBACK in outputs[5]
