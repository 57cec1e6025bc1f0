"""Stylesheet compilation."""

from __future__ import annotations

import logging
from pathlib import Path

import csscompressor

from sitepub_core.build.errors import BuildError
from sitepub_core.build.sources import destination_for

logger = logging.getLogger(__name__)


def compile_stylesheets(files: list[Path], src_dir: Path, dest_dir: Path, compress: bool = True) -> int:
    """Write every stylesheet to *dest_dir*, minified when *compress* is set."""
    for path in files:
        target = destination_for(path, src_dir, dest_dir)
        try:
            css = path.read_text(encoding="utf-8")
            if compress:
                css = csscompressor.compress(css)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(css, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise BuildError(f"Failed to compile stylesheet {path}: {exc}") from exc
        logger.debug("Compiled %s", target)
    return len(files)
