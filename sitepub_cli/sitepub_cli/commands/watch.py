"""``sitepub watch`` -- rebuild on change and serve the build locally.

Runs an initial build, serves the build directory over HTTP and rebuilds
whenever a file under the source directory changes.  Stylesheets are left
uncompressed so browser dev tools show readable CSS.
"""

from __future__ import annotations

import logging
import signal
import threading

import typer
from rich.console import Console

logger = logging.getLogger(__name__)

console = Console(stderr=True)


def watch_command(
    port: int = typer.Option(
        8080,
        "--port",
        "-p",
        help="HTTP server port.",
    ),
    host: str = typer.Option(
        "127.0.0.1",
        "--host",
        help="Host to bind the HTTP server to.",
    ),
    no_serve: bool = typer.Option(
        False,
        "--no-serve",
        help="Only rebuild on change; do not start the HTTP server.",
    ),
    interval: float = typer.Option(
        1.0,
        "--interval",
        min=0.1,
        help="Seconds between source tree scans.",
    ),
) -> None:
    """Rebuild the site whenever its sources change."""
    from sitepub_cli.app import EXIT_FAILURE, load_context
    from sitepub_core.build import BuildError, build_site
    from sitepub_core.build.watcher import SourceWatcher, serve_directory

    context = load_context()

    def _rebuild() -> None:
        build_site(context, compress=False)
        console.print("[green]✓[/green] Rebuild complete.")

    try:
        build_site(context, compress=False)
    except BuildError as exc:
        console.print(f"[red]Initial build failed: {exc}[/red]")
        raise typer.Exit(code=EXIT_FAILURE) from exc
    console.print("[green]✓[/green] Finished initial build.")

    server = None
    if not no_serve:
        try:
            server = serve_directory(context.build_dir, host=host, port=port)
        except OSError as exc:
            console.print(f"[red]Cannot start HTTP server on {host}:{port}: {exc}[/red]")
            raise typer.Exit(code=EXIT_FAILURE) from exc
        console.print(f"[green]✓[/green] Serving {context.relative(context.build_dir)} at http://{host}:{port}")

    stop = threading.Event()

    def _handle_sigint(signum: int, frame: object) -> None:
        console.print("\n[yellow]Shutting down...[/yellow]")
        stop.set()

    signal.signal(signal.SIGINT, _handle_sigint)

    console.print(f"Watching {context.relative(context.src_dir)}. [dim]Press Ctrl+C to stop.[/dim]")
    try:
        SourceWatcher(context.src_dir, _rebuild, interval=interval).run(stop)
    finally:
        if server is not None:
            server.shutdown()
            server.server_close()

    console.print("[green]Watcher stopped cleanly.[/green]")
