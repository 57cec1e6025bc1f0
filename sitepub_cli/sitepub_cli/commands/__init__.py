"""Sub-commands registered on the sitepub Typer app."""
