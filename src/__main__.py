#!/usr/bin/env python3
"""
htmlpack - Build-time HTML template transform

Compiles HTML template files into modules exporting the render
functions of a view runtime, so templates ship precompiled.

The command line runs as a ChRIS "DS" plugin, so the same entry point
serves both interactive builds and ChRIS pipelines.

For every template found under inputdir:
    - leading comments and preamble text are stripped
    - trailing content after the last tag is trimmed
    - the markup is enriched (block shorthands, scopes, markdown, lorem)
    - local assets are inlined
    - the template is validated (warnings only) and compiled
    - a module is written to the mirrored path under outputdir

Usage:
    htmlpack inputdir/ outputdir/

Examples:
    # Compile every .html template under components/
    htmlpack components/ build/

    # Scoped, minimized, ES module output
    htmlpack components/ build/ --scope app --minimize --esm

    # Only card templates, verbose
    htmlpack components/ build/ --pattern "**/card*.html" -vv
"""

import asyncio
import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter
from typing import Any, Dict, Optional, Tuple

from chris_plugin import chris_plugin
from .lib import BuildHost, transform, __version__, LOG, state_connectToLogger
from .models import pipeline
from .models.run import RunState


# Define CLI arguments
parser = ArgumentParser(
    description="htmlpack - Compile HTML templates into renderer modules",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--pattern", default="**/*.html", type=str, help="Glob pattern selecting templates under inputdir"
)

parser.add_argument(
    "--scope",
    default=None,
    type=str,
    help="Root style scope applied to every template ('none' disables root scoping)",
)

parser.add_argument(
    "--minimize", action="store_true", default=False, help="Minify inlined stylesheets and HTML fragments"
)

parser.add_argument(
    "--esm", action="store_true", default=False, help="Emit ES modules (export default); otherwise HTMLPACK_MODULE_FORMAT decides"
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: RunState) -> RunState:
    """
    Validate the input directory and create the output directory.

    Returns:
        RunState with envOK set

    Exits:
        1 if inputdir does not exist
    """
    state = inputstate.copy()
    LOG("Checking environment...", level=2)

    if not state.inputdir.is_dir():
        print(f"Error: Input directory not found: {state.inputdir}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.outputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Input directory: {state.inputdir}", level=2)
    LOG(f"Output directory: {state.outputdir}", level=2)

    state.envOK = True
    return state


def templates_find(inputstate: RunState) -> RunState:
    """
    Collect the templates matching the pattern, relative to inputdir.

    Returns:
        RunState with templates set (sorted)
    """
    state = inputstate.copy()
    state.templates = sorted(
        path.relative_to(state.inputdir)
        for path in state.inputdir.glob(state.pattern)
        if path.is_file()
    )
    LOG(f"Found {len(state.templates)} template(s) matching '{state.pattern}'", level=1)
    return state


async def template_build(state: RunState, template: Path) -> Tuple[Path, Optional[Path], Optional[str]]:
    """
    Transform one template and write its module.

    Returns:
        (template, written module path or None, error message or None)
    """
    options: Dict[str, Any] = {}
    if state.esm:
        options["esModule"] = True
    if state.scope is not None:
        options["scope"] = state.scope
    host = BuildHost(
        resourcePath=state.inputdir / template,
        minimize=state.minimize,
        options=options,
    )
    try:
        source = host.resourcePath.read_text(encoding="utf-8")
        output = await transform(source, host, verbosity=state.verbosity)
    except Exception as e:
        return template, None, str(e)

    target = state.outputdir / template.with_suffix(".js")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(output, encoding="utf-8")
    if host.errors:
        # Compile errors leave a fallback module behind
        return template, target, host.errors[0]
    return template, target, None


async def templates_transform(inputstate: RunState) -> RunState:
    """
    Transform every template concurrently, one task per template.

    Returns:
        RunState with outputs and failures set
    """
    state = inputstate.copy()
    LOG("Transforming templates...", level=1)

    results = await asyncio.gather(*(template_build(state, template) for template in state.templates))
    state.outputs = {template: target for template, target, _ in results if target is not None}
    state.failures = {template: error for template, _, error in results if error is not None}
    return state


def results_report(inputstate: RunState) -> RunState:
    """
    Summarize the run.

    Exits:
        1 if any template failed to transform or compile
    """
    state = inputstate.copy()
    for template, target in state.outputs.items():
        LOG(f"  {template} -> {target}", level=2)

    if state.failures:
        for template, error in state.failures.items():
            print(f"Error: {template}: {error}", file=sys.stderr)
        print(f"{len(state.failures)} of {len(state.templates)} template(s) failed", file=sys.stderr)
        sys.exit(1)

    LOG(f"\n✓ Compiled {len(state.outputs)} template(s) into {state.outputdir}", level=1)
    return state


@chris_plugin(
    parser=parser,
    title="htmlpack - HTML template compiler",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - compile HTML templates into renderer modules.

    Orchestrates the CLI pipeline:
        1. env_check: Validate paths
        2. templates_find: Glob templates under inputdir
        3. templates_transform: Transform templates concurrently
        4. results_report: Report results, exit 1 on failures

    Args:
        options: CLI arguments from argparse
            - pattern: str - Template glob pattern
            - scope: Optional[str] - Root style scope
            - minimize: bool - Minify inlined assets
            - esm: bool - Emit ES modules
            - verbosity: int - Logging verbosity level (1-3)
        inputdir: Directory containing templates
        outputdir: Directory where modules will be written

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: RunState = RunState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    asyncio.run(pipeline(state, env_check, templates_find, templates_transform, results_report))


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
