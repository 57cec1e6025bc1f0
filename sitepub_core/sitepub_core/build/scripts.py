"""Script compilation through an external compiler (``tsc`` by default)."""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path

from sitepub_core.build.errors import BuildError

logger = logging.getLogger(__name__)

_SUBPROCESS_TIMEOUT = 300  # seconds

SCRIPTS_OUT_DIR = "js"


def compile_scripts(command: str, project_root: Path, dest_dir: Path, override_out_dir: bool = True) -> None:
    """Run *command* in *project_root*, writing compiled scripts to ``<dest_dir>/js``.

    The compiler reads its own project configuration (``tsconfig.json``).
    With *override_out_dir* false no ``--outDir`` is passed and the
    configured output directory applies.

    Raises
    ------
    BuildError
        If the compiler is missing, times out or exits non-zero.
    """
    cmd = shlex.split(command)
    if override_out_dir:
        cmd += ["--outDir", str(dest_dir / SCRIPTS_OUT_DIR)]
    logger.info("Compiling scripts: %s", " ".join(cmd))
    try:
        subprocess.run(
            cmd,
            cwd=project_root,
            capture_output=True,
            text=True,
            check=True,
            timeout=_SUBPROCESS_TIMEOUT,
        )
    except subprocess.CalledProcessError as exc:
        output = ((exc.stdout or "") + (exc.stderr or "")).strip()
        raise BuildError(f"Script compiler failed with exit code {exc.returncode}: {output}") from exc
    except subprocess.TimeoutExpired as exc:
        raise BuildError(f"Script compiler timed out after {_SUBPROCESS_TIMEOUT}s: {' '.join(cmd)}") from exc
    except FileNotFoundError as exc:
        raise BuildError(f"Script compiler not found: {cmd[0]}") from exc
