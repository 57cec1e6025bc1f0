"""Models for the site build pipeline."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class SourceFiles(BaseModel):
    """Source files of a site grouped by how they are compiled.

    All paths are absolute.  Partials (names starting with ``_``) never
    appear here; they are only reachable through template includes.
    """

    regular: list[Path] = Field(default_factory=list)
    stylesheets: list[Path] = Field(default_factory=list)
    templates: list[Path] = Field(default_factory=list)
    has_scripts: bool = False


class BuildResult(BaseModel):
    """Files emitted by a build into its destination directory."""

    dest_dir: Path
    copied: int = Field(default=0, ge=0)
    stylesheets: int = Field(default=0, ge=0)
    templates: int = Field(default=0, ge=0)
    scripts_compiled: bool = False
    duration_ms: float = Field(default=0.0, ge=0.0)

    @property
    def total(self) -> int:
        return self.copied + self.stylesheets + self.templates
