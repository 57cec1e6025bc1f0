"""Unit tests for sitepub_core.build.watcher."""

from __future__ import annotations

import os
import threading
import urllib.request
from pathlib import Path
from unittest.mock import MagicMock

from sitepub_core.build.watcher import SourceWatcher, scan_mtimes, serve_directory


def _touch(path: Path, mtime: float) -> None:
    os.utime(path, (mtime, mtime))


class TestScanMtimes:
    def test_lists_nested_files(self, tmp_path: Path, tree):
        tree(tmp_path, {"a.txt": "", "sub/b.txt": ""})
        assert set(scan_mtimes(tmp_path)) == {str(tmp_path / "a.txt"), str(tmp_path / "sub" / "b.txt")}

    def test_missing_directory(self, tmp_path: Path):
        assert scan_mtimes(tmp_path / "nope") == {}


class TestSourceWatcher:
    def test_no_change_no_rebuild(self, tmp_path: Path, tree):
        tree(tmp_path, {"index.html": ""})
        on_change = MagicMock()
        watcher = SourceWatcher(tmp_path, on_change)
        assert watcher.poll_once() is False
        on_change.assert_not_called()

    def test_modified_file_triggers_rebuild(self, tmp_path: Path, tree):
        tree(tmp_path, {"index.html": ""})
        _touch(tmp_path / "index.html", 1_000_000)
        on_change = MagicMock()
        watcher = SourceWatcher(tmp_path, on_change)

        _touch(tmp_path / "index.html", 2_000_000)

        assert watcher.poll_once() is True
        on_change.assert_called_once()
        assert watcher.poll_once() is False

    def test_added_and_deleted_files_trigger_rebuild(self, tmp_path: Path, tree):
        tree(tmp_path, {"old.html": ""})
        on_change = MagicMock()
        watcher = SourceWatcher(tmp_path, on_change)

        (tmp_path / "new.html").write_text("")
        assert watcher.poll_once() is True
        (tmp_path / "old.html").unlink()
        assert watcher.poll_once() is True
        assert on_change.call_count == 2

    def test_rebuild_error_does_not_stop_watching(self, tmp_path: Path, tree):
        tree(tmp_path, {"index.html": ""})
        on_change = MagicMock(side_effect=RuntimeError("broken template"))
        watcher = SourceWatcher(tmp_path, on_change)

        (tmp_path / "other.html").write_text("")

        assert watcher.poll_once() is True
        (tmp_path / "third.html").write_text("")
        assert watcher.poll_once() is True

    def test_run_stops_on_event(self, tmp_path: Path):
        stop = threading.Event()
        stop.set()
        SourceWatcher(tmp_path, MagicMock(), interval=0.01).run(stop)


class TestServeDirectory:
    def test_serves_files(self, tmp_path: Path, tree):
        tree(tmp_path, {"index.html": "<p>live</p>"})
        server = serve_directory(tmp_path, port=0)
        try:
            port = server.server_address[1]
            with urllib.request.urlopen(f"http://127.0.0.1:{port}/index.html", timeout=5) as resp:
                assert resp.read() == b"<p>live</p>"
        finally:
            server.shutdown()
            server.server_close()
