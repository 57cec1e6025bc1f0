"""Shared fixtures for sitepub core tests.

Every fixture builds its project under ``tmp_path`` with an explicit root
so that no test depends on the cwd, a real git checkout, or ``SITEPUB_*``
variables set in the developer's shell.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from sitepub_core.config import DeployContext, Settings


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep host configuration out of the tests."""
    import os

    for key in list(os.environ):
        if key.startswith("SITEPUB_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_context(tmp_path: Path) -> Callable[..., DeployContext]:
    """Factory returning a :class:`DeployContext` rooted at ``tmp_path/site``."""

    def _make(**overrides: object) -> DeployContext:
        root = tmp_path / "site"
        root.mkdir(exist_ok=True)
        values: dict[str, object] = {
            "lock_wait_max_attempts": 2,
            "lock_wait_delay": 0.0,
            "removal_retries": 0,
            "script_compiler": "tsc",
        }
        values.update(overrides)
        settings = Settings(_env_file=None, **values)  # type: ignore[arg-type]
        return DeployContext.from_settings(settings, root=root)

    return _make


@pytest.fixture
def context(make_context: Callable[..., DeployContext]) -> DeployContext:
    return make_context()


def write_tree(base: Path, files: dict[str, str]) -> None:
    """Create *files* (relative path -> content) under *base*."""
    for rel, content in files.items():
        path = base / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture
def tree() -> Callable[[Path, dict[str, str]], None]:
    return write_tree
