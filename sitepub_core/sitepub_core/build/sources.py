"""Source tree enumeration and verbatim asset copying."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from sitepub_core.build.errors import BuildError
from sitepub_core.models.build import SourceFiles

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".j2"
STYLESHEET_SUFFIX = ".css"
SCRIPT_SUFFIX = ".ts"
PARTIAL_PREFIX = "_"


def enumerate_sources(src_dir: Path) -> SourceFiles:
    """Walk *src_dir* and classify every file by how it gets compiled.

    Files starting with ``_`` are partials: templates include them, the
    build never emits them.

    Raises
    ------
    BuildError
        If *src_dir* does not exist.
    """
    if not src_dir.is_dir():
        raise BuildError(f"Source directory does not exist: {src_dir}")

    sources = SourceFiles()
    for dirpath, dirnames, filenames in os.walk(src_dir):
        dirnames.sort()
        for name in sorted(filenames):
            if name.startswith(PARTIAL_PREFIX):
                continue
            path = Path(dirpath) / name
            if name.endswith(STYLESHEET_SUFFIX):
                sources.stylesheets.append(path)
            elif name.endswith(SCRIPT_SUFFIX):
                sources.has_scripts = True
            elif name.endswith(TEMPLATE_SUFFIX):
                sources.templates.append(path)
            else:
                sources.regular.append(path)

    logger.debug(
        "Found %d regular files, %d stylesheets, %d templates in %s",
        len(sources.regular),
        len(sources.stylesheets),
        len(sources.templates),
        src_dir,
    )
    return sources


def destination_for(path: Path, src_dir: Path, dest_dir: Path) -> Path:
    """Map a source path to its place under *dest_dir*."""
    return dest_dir / path.relative_to(src_dir)


def copy_regular_files(files: list[Path], src_dir: Path, dest_dir: Path) -> int:
    """Copy *files* into *dest_dir*, preserving their relative layout."""
    for path in files:
        target = destination_for(path, src_dir, dest_dir)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, target)
        except OSError as exc:
            raise BuildError(f"Failed to copy {path} to {target}: {exc}") from exc
    return len(files)
