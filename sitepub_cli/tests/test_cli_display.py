"""Tests for sitepub_cli.display rendering helpers."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from rich.console import Console

from sitepub_cli.display import (
    display_build_result,
    display_deploy_result,
    display_snapshot_list,
    display_status,
)
from sitepub_core.models.build import BuildResult
from sitepub_core.models.deploy import (
    DeployResult,
    DeployStatus,
    LockRecord,
    PromotionResult,
    SnapshotInfo,
)

OLD = "1111111aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
NEW = "2222222bbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"


def _console() -> Console:
    return Console(record=True, width=120)


def _snapshot(name: str, revision: str | None) -> SnapshotInfo:
    return SnapshotInfo(
        path=Path("/srv/out/snapshots") / name,
        name=name,
        created_at=datetime(2026, 10, 19, 8, 0, tzinfo=UTC) if revision else None,
        revision=revision,
    )


# ---------------------------------------------------------------------------
# display_deploy_result
# ---------------------------------------------------------------------------


class TestDisplayDeployResult:
    def test_skipped(self):
        console = _console()
        display_deploy_result(console, DeployResult(status=DeployStatus.SKIPPED, old_revision=NEW, new_revision=NEW))
        assert "Doing nothing" in console.export_text()
        assert "2222222" in console.export_text()

    def test_deployed_with_failures(self):
        console = _console()
        snapshot = Path("/srv/out/snapshots/20261019T080000Z-" + NEW)
        result = DeployResult(
            status=DeployStatus.DEPLOYED,
            old_revision=OLD,
            new_revision=NEW,
            snapshot=snapshot,
            promotion=PromotionResult(snapshot=snapshot, copied_count=4, removed=["b.css"], failed=["locked.html"]),
            duration_ms=42.0,
        )

        display_deploy_result(console, result)

        text = console.export_text()
        assert "Deploy complete" in text
        assert "(old:1111111) (new:2222222)" in text
        assert "Cleaned:   1 entries" in text
        assert "locked.html" in text


# ---------------------------------------------------------------------------
# display_build_result
# ---------------------------------------------------------------------------


class TestDisplayBuildResult:
    def test_summary(self):
        console = _console()
        display_build_result(
            console,
            BuildResult(dest_dir=Path("/srv/build"), copied=3, stylesheets=1, templates=2, scripts_compiled=True),
        )
        text = console.export_text()
        assert "3 copied" in text
        assert "2 templates" in text
        assert "scripts compiled" in text


# ---------------------------------------------------------------------------
# display_snapshot_list
# ---------------------------------------------------------------------------


class TestDisplaySnapshotList:
    def test_empty(self):
        console = _console()
        display_snapshot_list(console, [], None)
        assert "No snapshots found" in console.export_text()

    def test_live_snapshot_marked(self):
        console = _console()
        snaps = [_snapshot("20261019T080000Z-" + OLD, OLD), _snapshot("20261019T090000Z-" + NEW, NEW)]
        display_snapshot_list(console, snaps, NEW)
        lines = console.export_text().splitlines()
        live_line = next(line for line in lines if "2222222" in line and "●" in line)
        assert "1111111" not in live_line

    def test_unparseable_name(self):
        console = _console()
        display_snapshot_list(console, [_snapshot("manual-copy", None)], None)
        assert "manual-copy" in console.export_text()


# ---------------------------------------------------------------------------
# display_status
# ---------------------------------------------------------------------------


class TestDisplayStatus:
    def _record(self) -> LockRecord:
        return LockRecord(pid=4321, hostname="builder", token="t", acquired_at=datetime(2026, 10, 19, tzinfo=UTC))

    def test_up_to_date_and_free(self):
        console = _console()
        display_status(console, NEW, NEW, _snapshot("20261019T080000Z-" + NEW, NEW), False, None, False)
        text = console.export_text()
        assert "yes" in text
        assert "free" in text

    def test_stale_lock(self):
        console = _console()
        display_status(console, NEW, OLD, None, True, self._record(), True)
        text = console.export_text()
        assert "stale" in text
        assert "pid 4321 on builder" in text
        assert "no" in text

    def test_unknown_revision_and_foreign_lock(self):
        console = _console()
        display_status(console, None, OLD, None, True, None, False)
        text = console.export_text()
        assert "unknown" in text
        assert "held (unknown holder)" in text
