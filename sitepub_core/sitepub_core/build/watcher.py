"""Rebuild-on-change loop and a static file server for local development.

Changes are detected by polling modification times, which works the same
on every platform and filesystem (including network mounts and
containers where inotify events never arrive).
"""

from __future__ import annotations

import functools
import logging
import os
import threading
from collections.abc import Callable
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

logger = logging.getLogger(__name__)


def scan_mtimes(src_dir: Path) -> dict[str, float]:
    """Return a mapping of file path -> mtime for every file under *src_dir*."""
    mtimes: dict[str, float] = {}
    for root, _dirs, files in os.walk(src_dir):
        for name in files:
            path = os.path.join(root, name)
            try:
                mtimes[path] = os.path.getmtime(path)
            except FileNotFoundError:
                # Vanished between walk and stat.
                continue
    return mtimes


class SourceWatcher:
    """Poll *src_dir* and invoke *on_change* whenever its files change.

    ``on_change`` exceptions are logged and the loop keeps running, so a
    broken template does not end the development session.
    """

    def __init__(self, src_dir: Path, on_change: Callable[[], object], interval: float = 1.0) -> None:
        self.src_dir = src_dir
        self.on_change = on_change
        self.interval = interval
        self._previous = scan_mtimes(src_dir)

    def poll_once(self) -> bool:
        """Check for changes once; returns ``True`` if a rebuild ran."""
        current = scan_mtimes(self.src_dir)
        if current == self._previous:
            return False
        changed = sorted(p for p in current.keys() | self._previous.keys() if current.get(p) != self._previous.get(p))
        self._previous = current
        logger.info("Detected %d changed paths (%s)", len(changed), ", ".join(changed[:3]))
        try:
            self.on_change()
        except Exception:
            logger.exception("Rebuild failed")
        return True

    def run(self, stop: threading.Event) -> None:
        """Poll until *stop* is set."""
        logger.info("Watching %s", self.src_dir)
        while not stop.wait(self.interval):
            self.poll_once()


def serve_directory(directory: Path, host: str = "127.0.0.1", port: int = 8080) -> ThreadingHTTPServer:
    """Serve *directory* over HTTP from a daemon thread.

    The caller owns the returned server and should call ``shutdown()``.
    """
    handler = functools.partial(SimpleHTTPRequestHandler, directory=str(directory))
    server = ThreadingHTTPServer((host, port), handler)
    thread = threading.Thread(target=server.serve_forever, name="sitepub-http", daemon=True)
    thread.start()
    logger.info("Serving %s on http://%s:%d", directory, host, server.server_address[1])
    return server
