"""Entry point for `python -m sitepub_cli` and `sitepub` console script."""

from __future__ import annotations

from sitepub_cli.app import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
