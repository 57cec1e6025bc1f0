"""Unit tests for sitepub_core.telemetry.emitter."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from sitepub_core.telemetry import MetricsEmitter


class TestMetricsEmitter:
    def test_disabled_by_default(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]):
        emitter = MetricsEmitter()
        assert emitter.enabled is False
        emitter.emit("deploy.skipped", {"revision": "abc"})
        assert capsys.readouterr().out == ""

    def test_writes_json_lines(self, tmp_path: Path):
        path = tmp_path / "nested" / "metrics.jsonl"
        emitter = MetricsEmitter(path)

        emitter.deploy_skipped("abc")
        emitter.lock_acquired(tmp_path / "deploy.lock", waited_attempts=3, reclaimed=False)

        lines = [json.loads(line) for line in path.read_text().splitlines()]
        assert [line["event"] for line in lines] == ["deploy.skipped", "lock.acquired"]
        assert lines[0]["data"] == {"revision": "abc"}
        assert lines[1]["data"]["waited_attempts"] == 3
        assert "timestamp" in lines[0]

    def test_structured_writes_stdout(self, capsys: pytest.CaptureFixture[str]):
        MetricsEmitter(structured=True).deploy_failed("abc", RuntimeError("boom"))
        event = json.loads(capsys.readouterr().out)
        assert event["event"] == "deploy.failed"
        assert event["data"] == {"new_revision": "abc", "error_type": "RuntimeError", "error": "boom"}

    def test_deploy_completed_payload(self, tmp_path: Path):
        path = tmp_path / "m.jsonl"
        MetricsEmitter(path).deploy_completed(
            old_revision=None,
            new_revision="def",
            snapshot=tmp_path / "20260101T000000Z-def",
            cleaned_count=2,
            failed_count=0,
            duration_ms=12.5,
        )
        data = json.loads(path.read_text())["data"]
        assert data["snapshot"] == "20260101T000000Z-def"
        assert data["old_revision"] is None
        assert data["cleaned_count"] == 2

    def test_write_failure_is_logged_not_raised(self, tmp_path: Path, caplog: pytest.LogCaptureFixture):
        emitter = MetricsEmitter(tmp_path / "m.jsonl")
        with patch.object(Path, "open", side_effect=PermissionError("read-only")):
            emitter.build_completed(tmp_path, files=4, duration_ms=1.0)
        assert "Could not write metrics event build.completed" in caplog.text
