"""Site build pipeline: compiles a source tree into a publishable directory."""

from __future__ import annotations

from sitepub_core.build.builder import build_site
from sitepub_core.build.errors import BuildError
from sitepub_core.build.sources import copy_regular_files, enumerate_sources
from sitepub_core.build.stylesheets import compile_stylesheets
from sitepub_core.build.templates import render_templates

__all__ = [
    "BuildError",
    "build_site",
    "compile_stylesheets",
    "copy_regular_files",
    "enumerate_sources",
    "render_templates",
]
