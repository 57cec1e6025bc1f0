"""sitepub CLI application -- Typer-based build and deploy interface.

Provides commands to build the site, deploy it with snapshot-based
promotion, inspect deploy state, and clear an abandoned deploy lock.
Human-readable output goes to *stderr* via Rich; ``--json`` puts
machine-readable results on *stdout* so CI pipelines can compose cleanly.

Exit codes: ``0`` success or nothing to do, ``1`` deploy lock timeout or a
live lock that was not removed, ``3`` any other failure.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from pydantic import ValidationError
from rich.console import Console

from sitepub_cli.display import (
    display_deploy_result,
    display_snapshot_list,
    display_status,
)

if TYPE_CHECKING:
    from sitepub_core.config import DeployContext

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="sitepub",
    help="sitepub - static site build and snapshot-based deploy",
    no_args_is_help=True,
)
console = Console(stderr=True)

EXIT_LOCK_TIMEOUT = 1
EXIT_FAILURE = 3

# Register the build and watch commands.
from sitepub_cli.commands.build import build_command  # noqa: E402
from sitepub_cli.commands.watch import watch_command  # noqa: E402

app.command(name="build")(build_command)
app.command(name="watch")(watch_command)

# Mutable global options populated by the Typer callback.
_json_output: bool = False
_metrics_file: Path | None = None
_root: Path | None = None
_verbose: bool = False


# ---------------------------------------------------------------------------
# Callback -- global options
# ---------------------------------------------------------------------------


@app.callback()
def _global_options(
    json_mode: bool = typer.Option(
        False,
        "--json/--no-json",
        help="Emit structured JSON to stdout instead of human-readable output.",
    ),
    metrics_file: Path | None = typer.Option(
        None,
        "--metrics-file",
        help="Append metrics events to this file (JSONL).",
        envvar="SITEPUB_METRICS_FILE",
    ),
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Project root. Defaults to the enclosing git working tree.",
        file_okay=False,
        resolve_path=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
) -> None:
    """Global options applied to every command."""
    global _json_output, _metrics_file, _root, _verbose  # noqa: PLW0603
    _json_output = json_mode
    _metrics_file = metrics_file
    _root = root
    _verbose = verbose


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def load_context() -> DeployContext:
    """Load settings, configure logging and resolve the project layout.

    Exits with code 3 when configuration is invalid or the project root
    cannot be found.
    """
    from sitepub_core.config import DeployContext, load_settings
    from sitepub_core.git import GitClientError
    from sitepub_core.logging_config import configure_logging

    overrides: dict[str, object] = {}
    if _metrics_file is not None:
        overrides["metrics_file"] = _metrics_file
    try:
        settings = load_settings(**overrides)
    except ValidationError as exc:
        console.print(f"[red]Invalid configuration:[/red]\n{exc}")
        raise typer.Exit(code=EXIT_FAILURE) from exc

    configure_logging(debug=settings.debug or _verbose, structured=settings.structured_logging)

    try:
        return DeployContext.from_settings(settings, root=_root)
    except GitClientError as exc:
        console.print(f"[red]Cannot determine the project root: {exc}[/red]")
        console.print("[dim]Run inside a git checkout or pass --root.[/dim]")
        raise typer.Exit(code=EXIT_FAILURE) from exc


# ---------------------------------------------------------------------------
# deploy
# ---------------------------------------------------------------------------


@app.command()
def deploy() -> None:
    """Build the current revision into a snapshot and promote it to the deploy directory."""
    from sitepub_core.build.errors import BuildError
    from sitepub_core.config import Settings
    from sitepub_core.deploy import DeployError, DeployOrchestrator, LockTimeoutError
    from sitepub_core.git import GitClientError

    context = load_context()
    for source in Settings.config_sources():
        logger.info("Deploying with config: %s", source)

    try:
        result = DeployOrchestrator(context).run()
    except LockTimeoutError as exc:
        console.print(f"[red]{exc}[/red]")
        console.print("[dim]If no deploy is running, clear the lock with [bold]sitepub unlock[/bold].[/dim]")
        raise typer.Exit(code=EXIT_LOCK_TIMEOUT) from exc
    except (BuildError, DeployError, GitClientError, OSError, ValueError) as exc:
        console.print(f"[red]Deploy failed: {exc}[/red]")
        raise typer.Exit(code=EXIT_FAILURE) from exc

    if _json_output:
        typer.echo(result.model_dump_json(indent=2))
    else:
        display_deploy_result(console, result)


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------


@app.command()
def status() -> None:
    """Show the deployed revision, the latest snapshot and the deploy lock."""
    from sitepub_core.deploy import RevisionTracker, SnapshotStore, is_stale, read_lock_record
    from sitepub_core.git import GitClientError, get_current_sha

    context = load_context()

    try:
        current: str | None = get_current_sha(context.root)
    except GitClientError as exc:
        logger.debug("Cannot read HEAD: %s", exc)
        current = None

    deployed = RevisionTracker(context.marker_path, lambda: current or "").read_marker()
    retained = SnapshotStore(context.snapshots_dir).list_snapshots()
    latest = retained[-1] if retained else None
    lock_present = context.lock_path.exists()
    record = read_lock_record(context.lock_path)
    stale = lock_present and is_stale(context.lock_path, context.settings.lock_stale_seconds)

    if _json_output:
        payload = {
            "current_revision": current,
            "deployed_revision": deployed,
            "up_to_date": current is not None and current == deployed,
            "latest_snapshot": latest.name if latest else None,
            "lock": {
                "present": lock_present,
                "stale": stale,
                "holder": record.model_dump(mode="json") if record else None,
            },
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    display_status(console, current, deployed, latest, lock_present, record, stale)


# ---------------------------------------------------------------------------
# snapshots
# ---------------------------------------------------------------------------


@app.command()
def snapshots() -> None:
    """List retained snapshots, oldest first."""
    from sitepub_core.deploy import RevisionTracker, SnapshotStore

    context = load_context()
    infos = SnapshotStore(context.snapshots_dir).list_snapshots()
    deployed = RevisionTracker(context.marker_path, lambda: "").read_marker()

    if _json_output:
        typer.echo(json.dumps([info.model_dump(mode="json") for info in infos], indent=2))
        return

    display_snapshot_list(console, infos, deployed)


# ---------------------------------------------------------------------------
# unlock
# ---------------------------------------------------------------------------


@app.command()
def unlock(
    force: bool = typer.Option(
        False,
        "--force",
        help="Remove the lock even if its holder still appears to be running.",
    ),
) -> None:
    """Remove a deploy lock left behind by a killed deploy."""
    from sitepub_core.deploy import read_lock_record, remove_lock
    from sitepub_core.deploy.lock import holder_is_alive

    context = load_context()
    if not context.lock_path.exists():
        console.print("[green]No deploy lock present.[/green]")
        return

    record = read_lock_record(context.lock_path)
    if record is not None and holder_is_alive(record) and not force:
        console.print(
            f"[red]Deploy lock is held by running process {record.pid} on {record.hostname}.[/red]\n"
            "[dim]Pass --force to remove it anyway.[/dim]"
        )
        raise typer.Exit(code=EXIT_LOCK_TIMEOUT)

    remove_lock(context.lock_path)
    holder = f" (pid {record.pid} on {record.hostname})" if record else ""
    logger.warning("Deploy lock %s removed manually%s", context.lock_path, holder)
    console.print(f"[green]✓[/green] Removed deploy lock{holder}.")
