"""``sitepub build`` -- compile the site without deploying it."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console

logger = logging.getLogger(__name__)

console = Console(stderr=True)


def build_command(
    dest: Path | None = typer.Option(
        None,
        "--dest",
        "-d",
        help="Output directory. Defaults to the configured build directory.",
        file_okay=False,
        resolve_path=True,
    ),
    compress: bool | None = typer.Option(
        None,
        "--compress/--no-compress",
        help="Minify stylesheets. Defaults to the configured value.",
    ),
) -> None:
    """Build the site from the source directory."""
    from sitepub_cli.app import EXIT_FAILURE, load_context
    from sitepub_cli.display import display_build_result
    from sitepub_core.build import BuildError, build_site

    context = load_context()
    try:
        result = build_site(context, dest_dir=dest, compress=compress)
    except BuildError as exc:
        console.print(f"[red]Build failed: {exc}[/red]")
        raise typer.Exit(code=EXIT_FAILURE) from exc

    display_build_result(console, result)
