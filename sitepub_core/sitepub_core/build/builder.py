"""Build entry point: turns the source tree into a publishable directory."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

from sitepub_core.build.errors import BuildError
from sitepub_core.build.scripts import compile_scripts
from sitepub_core.build.sources import copy_regular_files, enumerate_sources
from sitepub_core.build.stylesheets import compile_stylesheets
from sitepub_core.build.templates import render_templates
from sitepub_core.config import DeployContext
from sitepub_core.models.build import BuildResult

logger = logging.getLogger(__name__)


def build_site(
    context: DeployContext,
    dest_dir: Path | None = None,
    template_context: dict[str, Any] | None = None,
    compress: bool | None = None,
) -> BuildResult:
    """Build the site from ``context.src_dir`` into *dest_dir*.

    Steps run in order: regular files, stylesheets, scripts, templates.
    Templates come last so they can reference compiled output.

    Parameters
    ----------
    context:
        Resolved project paths and settings.
    dest_dir:
        Output directory; defaults to ``context.build_dir``.
    template_context:
        Extra variables available to every template.
    compress:
        Overrides ``settings.css_compress`` when not ``None``.

    Raises
    ------
    BuildError
        On any compile or copy failure.
    """
    dest_dir = dest_dir or context.build_dir
    if compress is None:
        compress = context.settings.css_compress
    start = time.perf_counter()

    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise BuildError(f"Cannot create build directory {dest_dir}: {exc}") from exc

    sources = enumerate_sources(context.src_dir)
    result = BuildResult(dest_dir=dest_dir)
    result.copied = copy_regular_files(sources.regular, context.src_dir, dest_dir)
    result.stylesheets = compile_stylesheets(sources.stylesheets, context.src_dir, dest_dir, compress=compress)
    if sources.has_scripts:
        compile_scripts(
            context.settings.script_compiler,
            context.root,
            dest_dir,
            override_out_dir=dest_dir != context.build_dir,
        )
        result.scripts_compiled = True
    result.templates = render_templates(sources.templates, context.src_dir, dest_dir, template_context)

    result.duration_ms = round((time.perf_counter() - start) * 1000, 2)
    logger.info("Built %d files into %s in %.0fms", result.total, context.relative(dest_dir), result.duration_ms)
    return result
