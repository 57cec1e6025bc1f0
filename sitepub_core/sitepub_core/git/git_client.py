"""Git queries needed by a deploy: the HEAD revision and the project root.

Every call shells out to the ``git`` binary with a timeout.  Anything that
goes wrong, from a missing binary to a repository without commits, surfaces
as :class:`GitClientError` carrying git's own stderr.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

_GIT_TIMEOUT = 30  # seconds


class GitClientError(Exception):
    """A git query failed or the path is not a usable working tree."""


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _run_git(args: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    """Run ``git`` with *args* (``args[0]`` is ``"git"``) inside *cwd*.

    Raises
    ------
    GitClientError
        If git exits non-zero, hangs past the timeout, is not installed, or
        *cwd* is not a directory.
    """
    command = " ".join(args)
    try:
        return subprocess.run(
            args,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
            timeout=_GIT_TIMEOUT,
        )
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip()
        raise GitClientError(f"git command failed: {command} (exit {exc.returncode}): {detail}") from exc
    except subprocess.TimeoutExpired as exc:
        raise GitClientError(f"git command timed out after {_GIT_TIMEOUT}s: {command}") from exc
    except FileNotFoundError as exc:
        raise GitClientError("git executable not found on PATH.") from exc
    except NotADirectoryError as exc:
        raise GitClientError(f"Not a directory: {cwd}") from exc


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_repo(path: Path) -> None:
    """Raise :class:`GitClientError` unless *path* lies inside a git working tree."""
    if not path.is_dir():
        raise GitClientError(f"Repository path does not exist: {path}")
    inside = _run_git(["git", "rev-parse", "--is-inside-work-tree"], path).stdout.strip()
    if inside != "true":
        raise GitClientError(f"Not inside a git working tree: {path}")


def find_project_root(start: Path) -> Path:
    """Return the directory a site project is rooted at.

    When *start* is inside a submodule the superproject's working tree wins,
    so a site checked out as a submodule of a larger repository still keeps
    its build state next to the outer checkout.

    Raises
    ------
    GitClientError
        If *start* is not inside a git working tree.
    """
    validate_repo(start)
    superproject = _run_git(["git", "rev-parse", "--show-superproject-working-tree"], start).stdout.strip()
    if superproject:
        logger.debug("Using superproject working tree %s", superproject)
        return Path(superproject)
    return Path(_run_git(["git", "rev-parse", "--show-toplevel"], start).stdout.strip())


def get_current_sha(path: Path) -> str:
    """Full 40-character SHA of ``HEAD`` in the repository at *path*."""
    return _run_git(["git", "rev-parse", "HEAD"], path).stdout.strip()
