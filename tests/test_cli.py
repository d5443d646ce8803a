"""
CLI pipeline tests

Drives the CLI stages directly with a RunState, the way main() chains
them, without going through argument parsing.
"""

import asyncio
from argparse import Namespace
from pathlib import Path

import pytest

from htmlpack.__main__ import env_check, results_report, templates_find, templates_transform
from htmlpack.models import RunState


@pytest.fixture
def project(tmp_path):
    """Input tree with two templates in nested directories"""
    inputdir = tmp_path / "in"
    (inputdir / "cards").mkdir(parents=True)
    (inputdir / "cards" / "card.html").write_text("<!-- card -->\n<div class='card'>{{ title }}</div>\n")
    (inputdir / "page.html").write_text("<section><p>static</p><p>{{ body }}</p></section>")
    (inputdir / "notes.txt").write_text("not a template")
    return inputdir, tmp_path / "out"


class TestRunState:
    """Construction from CLI options"""

    def test_from_namespace(self, tmp_path):
        """Known options are copied, unknown ones ignored"""
        options = Namespace(pattern="*.htm", scope="app", minimize=True, esm=False, verbosity=2, other=1)
        state = RunState.state_createFromNamespace(options, tmp_path, tmp_path / "out")
        assert state.pattern == "*.htm"
        assert state.scope == "app"
        assert state.minimize is True
        assert state.inputdir == tmp_path
        assert not hasattr(state, "other")


class TestStages:
    """env_check, templates_find, templates_transform, results_report"""

    def test_env_check_creates_output(self, project):
        """The output directory is created"""
        inputdir, outputdir = project
        state = env_check(RunState(inputdir=inputdir, outputdir=outputdir, verbosity=0))
        assert state.envOK is True
        assert outputdir.is_dir()

    def test_env_check_missing_input(self, tmp_path):
        """A missing input directory exits with status 1"""
        with pytest.raises(SystemExit) as info:
            env_check(RunState(inputdir=tmp_path / "absent", outputdir=tmp_path / "out", verbosity=0))
        assert info.value.code == 1

    def test_templates_find(self, project):
        """Only files matching the pattern are collected, sorted"""
        inputdir, outputdir = project
        state = templates_find(RunState(inputdir=inputdir, outputdir=outputdir, verbosity=0))
        assert state.templates == [Path("cards/card.html"), Path("page.html")]

    def test_transform_writes_modules(self, project):
        """Each template becomes a .js module at the mirrored path"""
        inputdir, outputdir = project
        state = RunState(inputdir=inputdir, outputdir=outputdir, verbosity=0)
        state = asyncio.run(templates_transform(templates_find(env_check(state))))

        card = outputdir / "cards" / "card.js"
        assert state.failures == {}
        assert state.outputs[Path("cards/card.html")] == card
        assert card.read_text().startswith("module.exports = {")
        assert "_s(title)" in card.read_text()
        assert (outputdir / "page.js").exists()
        results_report(state)

    def test_esm_and_scope(self, project):
        """--esm and --scope reach every transform"""
        inputdir, outputdir = project
        state = RunState(inputdir=inputdir, outputdir=outputdir, verbosity=0, esm=True, scope="app")
        state = asyncio.run(templates_transform(templates_find(env_check(state))))

        text = (outputdir / "page.js").read_text()
        assert text.startswith("export default {")
        assert '"app"' in text

    def test_failures_exit(self, project):
        """A template that fails to compile makes the run exit 1"""
        inputdir, outputdir = project
        (inputdir / "broken.html").write_text("<div></div><p></p>")
        state = RunState(inputdir=inputdir, outputdir=outputdir, verbosity=0)
        state = asyncio.run(templates_transform(templates_find(env_check(state))))

        assert list(state.failures) == [Path("broken.html")]
        assert (outputdir / "broken.js").exists()
        with pytest.raises(SystemExit) as info:
            results_report(state)
        assert info.value.code == 1

    def test_configured_module_format(self, project, monkeypatch):
        """Without --esm the configured module format decides"""
        from htmlpack.config import appsettings

        monkeypatch.setattr(appsettings, "module_format", "esm")
        inputdir, outputdir = project
        state = RunState(inputdir=inputdir, outputdir=outputdir, verbosity=0)
        asyncio.run(templates_transform(templates_find(env_check(state))))

        assert (outputdir / "page.js").read_text().startswith("export default {")
