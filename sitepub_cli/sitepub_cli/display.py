"""Rich output formatting for the sitepub CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that machine-readable output on *stdout* is never
polluted with human-readable decoration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sitepub_core.models.deploy import DeployStatus, short_revision

if TYPE_CHECKING:
    from sitepub_core.models.build import BuildResult
    from sitepub_core.models.deploy import DeployResult, LockRecord, SnapshotInfo


# ---------------------------------------------------------------------------
# Deploy result
# ---------------------------------------------------------------------------


def display_deploy_result(console: Console, result: DeployResult) -> None:
    """Render the outcome of a deploy run.

    Parameters
    ----------
    console:
        Rich console to write to (typically stderr).
    result:
        The orchestrator's result.
    """
    if result.status == DeployStatus.SKIPPED:
        console.print(
            f"[dim]Previous version matches current version "
            f"({short_revision(result.new_revision)}). Doing nothing.[/dim]"
        )
        return

    lines = [
        f"[bold]Revision:[/bold]  {result.transition()}",
        f"[bold]Snapshot:[/bold]  {result.snapshot.name if result.snapshot else '(none)'}",
    ]
    promotion = result.promotion
    if promotion is not None:
        lines.append(f"[bold]Copied:[/bold]    {promotion.copied_count} entries")
        lines.append(f"[bold]Cleaned:[/bold]   {promotion.cleaned_count} entries")
        if promotion.failed:
            lines.append(f"[bold]Failed:[/bold]    [red]{len(promotion.failed)} entries[/red]")
    lines.append(f"[bold]Duration:[/bold]  {result.duration_ms:.0f}ms")

    console.print(Panel("\n".join(lines), title="Deploy complete", border_style="green"))

    if promotion is not None and promotion.failed:
        console.print("[yellow]Could not remove from the deploy directory:[/yellow]")
        for path in promotion.failed:
            console.print(f"  [red]{path}[/red]")


# ---------------------------------------------------------------------------
# Build result
# ---------------------------------------------------------------------------


def display_build_result(console: Console, result: BuildResult) -> None:
    """Render a one-line summary of a build."""
    parts = [
        f"{result.copied} copied",
        f"{result.stylesheets} stylesheets",
        f"{result.templates} templates",
    ]
    if result.scripts_compiled:
        parts.append("scripts compiled")
    console.print(
        f"[green]✓[/green] Built into [bold]{result.dest_dir}[/bold] "
        f"({', '.join(parts)}) in {result.duration_ms:.0f}ms"
    )


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


def display_snapshot_list(console: Console, snapshots: list[SnapshotInfo], deployed_revision: str | None) -> None:
    """Render retained snapshots as a table, newest last.

    The snapshot matching *deployed_revision* is highlighted.
    """
    if not snapshots:
        console.print("[dim]No snapshots found.[/dim]")
        return

    table = Table(title="Snapshots", show_lines=False)
    table.add_column("Created (UTC)", style="cyan")
    table.add_column("Revision")
    table.add_column("Directory", style="dim")
    table.add_column("Live", justify="center")

    for snap in snapshots:
        created = snap.created_at.strftime("%Y-%m-%d %H:%M:%S") if snap.created_at else "?"
        live = "[green]●[/green]" if deployed_revision and snap.revision == deployed_revision else ""
        table.add_row(created, short_revision(snap.revision), snap.name, live)

    console.print(table)


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


def _describe_lock(present: bool, record: LockRecord | None, stale: bool) -> str:
    if not present:
        return "[green]free[/green]"
    if record is None:
        return "[yellow]held (unknown holder)[/yellow]"
    holder = f"pid {record.pid} on {record.hostname} since {record.acquired_at:%Y-%m-%d %H:%M:%S}"
    if stale:
        return f"[red]stale[/red] ({holder})"
    return f"[yellow]held[/yellow] ({holder})"


def display_status(
    console: Console,
    current_revision: str | None,
    deployed_revision: str | None,
    latest_snapshot: SnapshotInfo | None,
    lock_present: bool,
    lock_record: LockRecord | None,
    lock_stale: bool,
) -> None:
    """Render the deploy state of a project."""
    if current_revision is None:
        up_to_date = "[dim]unknown[/dim]"
    elif current_revision == deployed_revision:
        up_to_date = "[green]yes[/green]"
    else:
        up_to_date = "[yellow]no[/yellow]"

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("Current revision", short_revision(current_revision))
    table.add_row("Deployed revision", short_revision(deployed_revision))
    table.add_row("Up to date", up_to_date)
    table.add_row("Latest snapshot", latest_snapshot.name if latest_snapshot else "(none)")
    table.add_row("Deploy lock", _describe_lock(lock_present, lock_record, lock_stale))

    console.print(Panel(table, title="sitepub status", border_style="blue"))
