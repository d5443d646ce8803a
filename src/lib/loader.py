"""
Pipeline orchestrator

Turns one HTML template into renderer module source text. Each stage
is a function TransformState -> TransformState (coroutine functions
for the stages that run in worker threads), composed with pipeline():

    source_strip -> markup_trim -> markup_enrich -> assets_inline
        -> template_validate -> template_compile -> module_serialize

transform() is the entry point used by build hosts. It reports into
the host: cacheable(True) before anything else, validator warnings at
most once, and at most one error. Compile errors do not fail the
transform (a fallback renderer is emitted); any other failure is
reported once and raised as TransformError.
"""

import asyncio
from pathlib import Path
from typing import Any

from ..config import appsettings
from ..models import TransformState, Phase, pipeline
from ..models.errors import TransformError
from . import assets, compiler, enrich, lexer, serializer, validator
from .log import LOG, state_connectToLogger
from .query import options_merge


def source_strip(inputstate: TransformState) -> TransformState:
    """
    Remove leading comments and preamble text from the raw source.

    Returns:
        TransformState with tokens and markup set
    """
    state = inputstate.copy()
    state.phase = Phase.STRIPPING
    LOG("Stripping leading comments...", level=2)

    state.tokens = list(lexer.tokens_scan(state.source))
    state.markup = "".join(token.value for token in state.tokens if token.emitted)
    LOG(f"Scanned {len(state.tokens)} tokens, kept {len(state.markup)} characters", level=3)
    return state


def markup_trim(inputstate: TransformState) -> TransformState:
    """Drop trailing content after the last '>'"""
    state = inputstate.copy()
    state.phase = Phase.TRIMMING
    LOG("Trimming trailing content...", level=2)

    state.markup = lexer.trailing_trim(state.markup)
    return state


def markup_enrich(inputstate: TransformState) -> TransformState:
    """
    Run the enrichment plugins (block, scope, markdown, lorem).

    Raises:
        EnrichmentError: A plugin failed
    """
    state = inputstate.copy()
    state.phase = Phase.ENRICHING
    LOG(f"Enriching markup (scope={state.options.scope})...", level=2)

    state.markup = enrich.markup_enrich(state.markup, state.options)
    return state


async def assets_inline(inputstate: TransformState) -> TransformState:
    """
    Inline local assets in a worker thread.

    Raises:
        AssetError: A referenced asset is missing
    """
    state = inputstate.copy()
    state.phase = Phase.INLINING
    LOG("Inlining assets...", level=2)

    state.markup = await asyncio.to_thread(
        assets.assets_inline, state.resourcePath, state.markup, state.options.minimize
    )
    return state


async def template_validate(inputstate: TransformState) -> TransformState:
    """
    Validate the markup and report all warnings in one message.

    Validation never fails the transform.
    """
    state = inputstate.copy()
    state.phase = Phase.VALIDATING
    LOG("Validating template...", level=2)

    warnings = await asyncio.to_thread(validator.template_validate, state.markup, state.options.directives)
    state.diagnostics.warnings = list(warnings)
    if warnings:
        LOG(f"Validator reported {len(warnings)} warning(s)", level=2)
        state.host.emitWarning(
            appsettings.message_make("template-validator", "WARNING", "\n" + "\n".join(warnings))
        )
    return state


async def template_compile(inputstate: TransformState) -> TransformState:
    """
    Compile the markup into a renderer in a worker thread.

    Compile errors are reported by the compiler stage itself and replaced
    by the fallback renderer.
    """
    state = inputstate.copy()
    state.phase = Phase.COMPILING
    LOG("Compiling template...", level=2)

    state.renderer = await asyncio.to_thread(compiler.template_compile, state.markup, state.host)
    LOG(f"Generated {len(state.renderer.staticRenderFns)} static render function(s)", level=3)
    return state


def module_serialize(inputstate: TransformState) -> TransformState:
    """Serialize the renderer as module source text"""
    state = inputstate.copy()
    state.phase = Phase.SERIALIZING
    LOG("Serializing module...", level=2)

    esModule = state.options.esModule
    if esModule is None:
        esModule = appsettings.module_format == "esm"
    state.output = serializer.module_serialize(state.renderer, esModule=esModule)
    state.phase = Phase.DONE
    return state


async def pipeline_run(state: TransformState) -> TransformState:
    """Run every stage, in order, over an initial state"""
    return await pipeline(
        state,
        source_strip,
        markup_trim,
        markup_enrich,
        assets_inline,
        template_validate,
        template_compile,
        module_serialize,
    )


async def transform(source: str, host: Any, verbosity: int | None = None) -> str:
    """
    Transform one template into renderer module source text.

    Args:
        source: Raw template text
        host: Build host (see lib.host.TransformHost)
        verbosity: Logging verbosity; defaults to the configured one

    Returns:
        Module source text exporting {render, staticRenderFns}

    Raises:
        TransformError: A stage failed. The failure has already been
                        reported on the host error channel; the original
                        exception is the __cause__.

    Example:
        host = BuildHost(resourcePath=Path("card.html"))
        output = asyncio.run(transform("<div>{{ title }}</div>", host))
    """
    host.cacheable(True)

    state = TransformState(
        source=source,
        resourcePath=Path(host.resourcePath),
        host=host,
        verbosity=appsettings.verbosity if verbosity is None else verbosity,
    )
    state_connectToLogger(state)
    LOG(f"Transforming {state.resourcePath}", level=1)

    try:
        state.options = options_merge(host)
        final = await pipeline_run(state)
    except Exception as e:
        state.phase = Phase.FAILED
        state.diagnostics.fatalError = str(e)
        host.emitError(appsettings.message_make("", "ERROR", str(e)))
        raise TransformError(str(e), stage=getattr(e, "stage", None)) from e

    LOG(f"Transformed {final.resourcePath} ({len(final.output or '')} characters)", level=1)
    return final.output or ""
