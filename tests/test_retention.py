"""Tests for the retention consolidator."""

from __future__ import annotations

from datetime import date

import pytest

from conftest import FlakyFileSystem, write_file
from savekeeper.core.filesystem import LocalFileSystem
from savekeeper.core.naming import encode_filename
from savekeeper.core.retention import consolidate, plan_cleanup, select_representatives
from savekeeper.models.backup_entry import BackupEntry, BackupKind, BackupLayout

TODAY = date(2026, 10, 17)

# Past days with 1, 2 and 5 incremental backups
PAST_TIMESTAMPS = [
    "2026-10-14T12:00:00",
    "2026-10-15T08:00:00",
    "2026-10-15T20:00:00",
    "2026-10-16T01:00:00",
    "2026-10-16T05:00:00",
    "2026-10-16T09:00:00",
    "2026-10-16T13:00:00",
    "2026-10-16T23:00:00",
]


def _entry(timestamp: str, name: str = "World") -> BackupEntry:
    return BackupEntry(name=name, path=f"/backup/{name}${timestamp}.savegame", timestamp=timestamp)


@pytest.fixture
def past_backups(layout: BackupLayout) -> None:
    for i, ts in enumerate(PAST_TIMESTAMPS):
        write_file(layout.backup_root, encode_filename(f"World{i}", ts))


class TestSelectRepresentatives:
    def test_single_entry_selected_once(self) -> None:
        entry = _entry("2026-10-14T12:00:00")
        assert select_representatives([entry]) == [entry]

    def test_even_count_uses_lower_median(self) -> None:
        entries = [_entry(f"2026-10-15T0{h}:00:00") for h in (1, 2, 3, 4)]
        assert select_representatives(entries) == [entries[1], entries[3]]

    def test_orders_by_timestamp(self) -> None:
        late, early, mid = _entry("2026-10-15T22:00:00"), _entry("2026-10-15T01:00:00"), _entry("2026-10-15T12:00:00")
        assert select_representatives([late, early, mid]) == [mid, late]


class TestPlanCleanup:
    def test_counts_per_group(self) -> None:
        plan = plan_cleanup([_entry(ts) for ts in PAST_TIMESTAMPS], TODAY)
        assert len(plan.promote) == 5
        assert len(plan.purge) == 8

    def test_today_and_daily_excluded(self) -> None:
        today_entry = _entry("2026-10-17T07:00:00")
        daily = BackupEntry(name="x", path="/backup/daily/x", timestamp="2026-10-10T00:00:00", kind=BackupKind.DAILY)
        plan = plan_cleanup([today_entry, daily], TODAY)
        assert plan.promote == []
        assert plan.purge == []

    def test_unparseable_timestamp_unclassified(self) -> None:
        entry = _entry("")
        plan = plan_cleanup([entry], TODAY)
        assert plan.unclassified == [entry]
        assert plan.purge == []


class TestConsolidate:
    def test_promotes_and_purges_past_days(self, layout: BackupLayout, fs: LocalFileSystem, past_backups: None) -> None:
        result = consolidate(layout, fs, today=TODAY)

        assert len(result.promoted) == 5
        assert len(result.purged) == 8
        assert result.skipped == 0
        assert sorted(p.name for p in layout.daily_dir.iterdir()) == [
            "2026-10-14T12:00:00",
            "2026-10-15T08:00:00",
            "2026-10-15T20:00:00",
            "2026-10-16T09:00:00",
            "2026-10-16T23:00:00",
        ]
        assert not any(p.is_file() for p in layout.backup_root.iterdir())

    def test_promoted_copy_keeps_content(self, layout: BackupLayout, fs: LocalFileSystem) -> None:
        write_file(layout.backup_root, "World$2026-10-14T12:00:00.savegame", b"payload")
        consolidate(layout, fs, today=TODAY)
        assert (layout.daily_dir / "2026-10-14T12:00:00").read_bytes() == b"payload"

    def test_current_day_untouched(self, layout: BackupLayout, fs: LocalFileSystem, past_backups: None) -> None:
        kept = [
            write_file(layout.backup_root, "World$2026-10-17T01:00:00.savegame"),
            write_file(layout.backup_root, "World$2026-10-17T02:00:00.savegame"),
        ]
        result = consolidate(layout, fs, today=TODAY)
        assert all(path.exists() for path in kept)
        assert [e.path for e in result.catalog if e.kind == BackupKind.INCREMENTAL] == [str(p) for p in kept]

    def test_second_run_is_noop(self, layout: BackupLayout, fs: LocalFileSystem, past_backups: None) -> None:
        consolidate(layout, fs, today=TODAY)
        result = consolidate(layout, fs, today=TODAY)
        assert result.promoted == []
        assert result.purged == []

    def test_catalog_reloaded_after_cleanup(self, layout: BackupLayout, fs: LocalFileSystem, past_backups: None) -> None:
        result = consolidate(layout, fs, today=TODAY)
        assert len(result.catalog) == 5
        assert all(e.kind == BackupKind.DAILY for e in result.catalog)

    def test_failed_promotion_still_purges_source(self, layout: BackupLayout, past_backups: None) -> None:
        failing = "World0$2026-10-14T12:00:00.savegame"
        fs = FlakyFileSystem(fail_copy={failing})

        result = consolidate(layout, fs, today=TODAY)

        assert not (layout.backup_root / failing).exists()
        assert not (layout.daily_dir / "2026-10-14T12:00:00").exists()
        assert len(result.promoted) == 4
        assert len(result.purged) == 8
        assert result.skipped == 1

    def test_single_failed_promotion_purged(self, layout: BackupLayout) -> None:
        source = write_file(layout.backup_root, "W$2026-10-14T12:00:00.savegame")
        fs = FlakyFileSystem(fail_copy={source.name})

        result = consolidate(layout, fs, today=TODAY)

        assert not source.exists()
        assert result.promoted == []
        assert len(result.purged) == 1

    def test_failed_remove_continues(self, layout: BackupLayout, past_backups: None) -> None:
        failing = "World1$2026-10-15T08:00:00.savegame"
        fs = FlakyFileSystem(fail_remove={failing})

        result = consolidate(layout, fs, today=TODAY)

        assert len(result.promoted) == 5
        assert len(result.purged) == 7
        assert result.skipped == 1
        assert (layout.backup_root / failing).exists()

    def test_unparseable_entry_left_in_place(self, layout: BackupLayout, fs: LocalFileSystem) -> None:
        path = write_file(layout.backup_root, "World.savegame")
        result = consolidate(layout, fs, today=TODAY)
        assert path.exists()
        assert result.skipped == 0
        assert list(layout.daily_dir.iterdir()) == []

    def test_unparseable_entry_not_counted_each_run(self, layout: BackupLayout, fs: LocalFileSystem) -> None:
        write_file(layout.backup_root, "World.savegame")
        consolidate(layout, fs, today=TODAY)
        result = consolidate(layout, fs, today=TODAY)
        assert result.skipped == 0
        assert [e.name for e in result.catalog] == ["World.savegame"]
