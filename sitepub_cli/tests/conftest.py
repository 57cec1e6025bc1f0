"""Shared fixtures for sitepub CLI tests.

Commands are invoked through ``typer.testing.CliRunner`` against a project
rooted in ``tmp_path``; git is patched out where a revision is needed.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Keep host configuration out and undo the handlers each command installs."""
    for key in list(os.environ):
        if key.startswith("SITEPUB_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project root with a minimal source tree."""
    root = tmp_path / "site"
    (root / "src" / "css").mkdir(parents=True)
    (root / "src" / "index.html").write_text("<p>home</p>")
    (root / "src" / "css" / "site.css").write_text("a { color: blue; }")
    return root
