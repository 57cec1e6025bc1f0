"""Git integration for revision detection and project root discovery."""

from __future__ import annotations

from sitepub_core.git.git_client import (
    GitClientError,
    find_project_root,
    get_current_sha,
    validate_repo,
)

__all__ = [
    "GitClientError",
    "find_project_root",
    "get_current_sha",
    "validate_repo",
]
