"""Exceptions raised by the site build pipeline."""

from __future__ import annotations


class BuildError(Exception):
    """Raised when a source file cannot be compiled or an external compiler fails."""
