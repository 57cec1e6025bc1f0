"""Template rendering with Jinja2.

Templates are loaded relative to the source root, so a page can include a
partial anywhere in the tree by its path, e.g.
``{% include "layout/_header.j2" %}``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, select_autoescape

from sitepub_core.build.errors import BuildError
from sitepub_core.build.sources import destination_for

logger = logging.getLogger(__name__)


def make_environment(src_dir: Path) -> Environment:
    """Return the Jinja2 environment used to render pages under *src_dir*."""
    return Environment(
        loader=FileSystemLoader(str(src_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def template_output_path(path: Path, src_dir: Path, dest_dir: Path) -> Path:
    """Drop the template suffix; bare names such as ``index.j2`` become ``.html``.

    ``feed.xml.j2`` renders to ``feed.xml``.
    """
    target = destination_for(path, src_dir, dest_dir).with_suffix("")
    if not target.suffix:
        target = target.with_suffix(".html")
    return target


def render_templates(
    files: list[Path],
    src_dir: Path,
    dest_dir: Path,
    context: dict[str, Any] | None = None,
) -> int:
    """Render every template into *dest_dir* (see :func:`template_output_path`).

    Raises
    ------
    BuildError
        On syntax errors, undefined variables or missing includes.
    """
    env = make_environment(src_dir)
    context = context or {}
    for path in files:
        name = path.relative_to(src_dir).as_posix()
        target = template_output_path(path, src_dir, dest_dir)
        try:
            html = env.get_template(name).render(**context)
        except TemplateError as exc:
            raise BuildError(f"Failed to render template {name}: {exc}") from exc
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(html, encoding="utf-8")
        except OSError as exc:
            raise BuildError(f"Failed to write {target}: {exc}") from exc
        logger.debug("Rendered %s", target)
    return len(files)
