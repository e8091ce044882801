"""Tests for BackupManager."""

import asyncio
import json
import pytest
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, patch

from dev_tool._storage.table_memory import MemoryTableStorage
from dev_tool.backup.exporters import MultiFileExporter, SingleFileExporter
from dev_tool.backup.manager import BackupManager
from dev_tool.config import BackupConfig


def _config(backup_dir, **kwargs):
    return BackupConfig(dir=str(backup_dir), **kwargs)


class FixedClock:
    """Stands in for datetime in the utils module; hands out preset moments."""

    def __init__(self, *moments):
        self.moments = list(moments)

    def now(self):
        return self.moments.pop(0)


@pytest.mark.asyncio
async def test_backup_manager_initialization(memory_storage, temp_backup_dir):
    """Test BackupManager initialization."""
    backup_dir = temp_backup_dir / "nested" / "backups"
    manager = BackupManager(memory_storage, _config(backup_dir))

    assert manager.storage is memory_storage
    assert manager.backup_dir == backup_dir
    assert backup_dir.is_dir()
    assert isinstance(manager.exporter, MultiFileExporter)

    manager = BackupManager(memory_storage, _config(temp_backup_dir, single_file=True))
    assert isinstance(manager.exporter, SingleFileExporter)


@pytest.mark.asyncio
async def test_no_tables_to_back_up(memory_storage, temp_backup_dir):
    """An empty datastore produces a message and no files."""
    manager = BackupManager(memory_storage, _config(temp_backup_dir))

    assert await manager.create_backup() is None
    assert await manager.perform_backup() == "No tables to back up"
    assert list(temp_backup_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_single_file_backup_message(seeded_storage, temp_backup_dir):
    """Single-file runs name the written file."""
    manager = BackupManager(seeded_storage, _config(temp_backup_dir, single_file=True))

    message = await manager.perform_backup()

    files = [p.name for p in temp_backup_dir.iterdir()]
    assert len(files) == 1
    assert message == f"Backup complete: {files[0]} (3/3 tables)"


@pytest.mark.asyncio
async def test_multi_file_backup_message(seeded_storage, temp_backup_dir):
    """Multi-file runs report the timestamp."""
    manager = BackupManager(seeded_storage, _config(temp_backup_dir))

    result = await manager.create_backup()
    assert sorted(result.files) == sorted(
        f"backup_{result.timestamp}_{t}.json" for t in ("user", "channel", "message")
    )

    message = await manager.perform_backup()
    assert message.startswith("Backup complete: timestamp ")
    assert message.endswith(", 3/3 tables")


@pytest.mark.asyncio
async def test_backup_reports_failed_tables(seeded_storage, temp_backup_dir):
    """Tables that fail to export are listed after the summary."""
    manager = BackupManager(seeded_storage, _config(temp_backup_dir, single_file=True))
    real_get = seeded_storage.get

    async def flaky_get(table, query=None):
        if table == "channel":
            raise RuntimeError("boom")
        return await real_get(table, query)

    with patch.object(seeded_storage, "get", new=flaky_get):
        message = await manager.perform_backup()

    assert "(2/3 tables)" in message
    assert message.endswith("\nFailed tables: channel")


@pytest.mark.asyncio
async def test_special_tables_are_included(seeded_storage, temp_backup_dir):
    """Configured tables missing from the statistics are still attempted."""
    manager = BackupManager(seeded_storage, _config(temp_backup_dir, tables=["GuildConfig", "USER"]))

    result = await manager.create_backup()

    assert result.tables == ["user", "channel", "message", "GuildConfig"]
    assert result.failed == ["GuildConfig"]


@pytest.mark.asyncio
async def test_backup_subset(seeded_storage, temp_backup_dir):
    """An explicit subset limits the run; unknown names are skipped."""
    manager = BackupManager(seeded_storage, _config(temp_backup_dir))

    result = await manager.create_backup(["USER", "ghost"])

    assert result.tables == ["user"]
    assert await manager.perform_backup(["ghost"]) == "No tables to back up"


@pytest.mark.asyncio
async def test_backup_failure_is_reported(seeded_storage, temp_backup_dir):
    """A whole-run failure becomes a message."""
    manager = BackupManager(seeded_storage, _config(temp_backup_dir))
    seeded_storage.stats = AsyncMock(side_effect=RuntimeError("connection lost"))

    assert await manager.perform_backup() == "Backup failed: connection lost"


@pytest.mark.asyncio
async def test_restore_without_backups(memory_storage, temp_backup_dir):
    manager = BackupManager(memory_storage, _config(temp_backup_dir))
    assert await manager.perform_restore() == "No backups available"
    assert await manager.perform_restore(1) == "No backups available"


@pytest.mark.asyncio
async def test_restore_catalog_and_invalid_index(seeded_storage, temp_backup_dir):
    """Without an index the catalog is listed; bad indexes are rejected."""
    (temp_backup_dir / "backup_20240101_120000_user.json").write_text("[]")
    (temp_backup_dir / "backup_20240101_120000_channel.json").write_text("[]")
    (temp_backup_dir / "backup_20240202_080000_user.json").write_text("[]")
    manager = BackupManager(seeded_storage, _config(temp_backup_dir))

    catalog = await manager.perform_restore()
    assert catalog == (
        "Available backups:\n\n"
        "1. 2024-02-02 08:00:00 (1 tables)\n"
        "2. 2024-01-01 12:00:00 (2 tables)\n\n"
        "Restore one with: restore <index>"
    )

    for index in (0, 3, "abc", "-1"):
        assert await manager.perform_restore(index) == "Invalid index, expected a number between 1 and 2"


@pytest.mark.asyncio
async def test_restore_by_index(seeded_storage, temp_backup_dir):
    """Restoring the newest backup brings deleted rows back."""
    manager = BackupManager(seeded_storage, _config(temp_backup_dir, single_file=True))
    await manager.create_backup()

    await seeded_storage.remove("message", {"id": 100})
    await seeded_storage.drop("channel")

    message = await manager.perform_restore("1")

    assert message == "Restored backup #1: 3 tables"
    assert len(await seeded_storage.get("message")) == 2
    assert len(await seeded_storage.get("channel")) == 1


@pytest.mark.asyncio
async def test_restore_table_subset(seeded_storage, temp_backup_dir):
    """Only the requested tables are restored."""
    manager = BackupManager(seeded_storage, _config(temp_backup_dir))
    await manager.create_backup()

    await seeded_storage.remove("user")
    await seeded_storage.remove("message")

    assert await manager.perform_restore(1, ["User"]) == "Restored tables: user"
    assert len(await seeded_storage.get("user")) == 2
    assert await seeded_storage.get("message") == []

    message = await manager.perform_restore(1, ["ghost"])
    assert message == "No valid backup data found for tables: ghost"


@pytest.mark.asyncio
async def test_restore_invalid_files(memory_storage, temp_backup_dir):
    """An artifact with nothing usable yields a hint."""
    (temp_backup_dir / "backup_20240101_120000.json").write_text("not json")
    manager = BackupManager(memory_storage, _config(temp_backup_dir, single_file=True))

    message = await manager.perform_restore(1)

    assert message == "Nothing was restored, check that the backup files are valid"


@pytest.mark.asyncio
async def test_restore_failure_is_reported(memory_storage, temp_backup_dir):
    (temp_backup_dir / "backup_20240101_120000.json").write_text("{}")
    manager = BackupManager(memory_storage, _config(temp_backup_dir, single_file=True))
    manager.exporter.restore = AsyncMock(side_effect=RuntimeError("storage down"))

    assert await manager.perform_restore(1) == "Restore failed: storage down"


@pytest.mark.asyncio
async def test_list_all_backups(memory_storage, temp_backup_dir):
    manager = BackupManager(memory_storage, _config(temp_backup_dir, single_file=True))
    assert await manager.list_all_backups() == "No backups found"

    (temp_backup_dir / "backup_20240101_120000.json").write_text("{}")
    (temp_backup_dir / "backup_20240301_000000.json").write_text("{}")

    assert await manager.list_all_backups() == (
        "Available backups:\n"
        "- 2024-03-01 00:00:00 [20240301_000000] (single-file backup)\n"
        "- 2024-01-01 12:00:00 [20240101_120000] (single-file backup)"
    )


@pytest.mark.asyncio
async def test_list_backups_failure_returns_empty(memory_storage, temp_backup_dir):
    """A listing error is logged and treated as no backups."""
    manager = BackupManager(memory_storage, _config(temp_backup_dir))
    manager.exporter.list_backups = AsyncMock(side_effect=PermissionError("denied"))

    with patch("dev_tool.backup.manager.logger") as mock_logger:
        assert await manager.list_backups() == []

    mock_logger.error.assert_called_once()


@pytest.mark.asyncio
async def test_delete_backup(memory_storage, temp_backup_dir):
    """All files of one artifact are removed."""
    for name in (
        "backup_20240101_120000_user.json",
        "backup_20240101_120000_channel.json",
        "backup_20240102_120000_user.json",
    ):
        (temp_backup_dir / name).write_text("[]")
    manager = BackupManager(memory_storage, _config(temp_backup_dir))

    assert await manager.delete_backup("20240101_120000") is True
    assert [p.name for p in temp_backup_dir.iterdir()] == ["backup_20240102_120000_user.json"]

    assert await manager.delete_backup("20240101_120000") is False
    assert await manager.delete_backup("../etc") is False


@pytest.mark.asyncio
async def test_scheduled_runs_with_retention(seeded_storage, temp_backup_dir):
    """Three multi-file runs with keep=2 leave the two newest artifacts."""
    manager = BackupManager(seeded_storage, _config(temp_backup_dir, keep_backups=2))
    clock = FixedClock(
        datetime(2024, 1, 1, 0, 0, 0),
        datetime(2024, 1, 1, 1, 0, 0),
        datetime(2024, 1, 1, 2, 0, 0),
    )

    with patch("dev_tool.backup.utils.datetime", clock):
        for _ in range(3):
            await manager.perform_backup()

    names = sorted(p.name for p in temp_backup_dir.iterdir())
    assert names == sorted(
        f"backup_{ts}_{table}.json"
        for ts in ("20240101_010000", "20240101_020000")
        for table in ("user", "channel", "message")
    )

    backups = await manager.list_backups()
    assert [b.timestamp for b in backups] == ["20240101_020000", "20240101_010000"]

    content = json.loads((temp_backup_dir / "backup_20240101_020000_user.json").read_text())
    assert content[0]["createdAt"] == "2024-01-02T03:04:05.678Z"


@dataclass
class SlowStorage(MemoryTableStorage):
    """Memory storage whose reads yield to the event loop."""

    async def get(self, table, query=None):
        await asyncio.sleep(0.01)
        return await super().get(table, query)


@pytest.mark.asyncio
async def test_concurrent_runs_get_distinct_timestamps(temp_backup_dir):
    """Two runs started in the same second write separate artifacts."""
    storage = SlowStorage(namespace="test")
    await storage.upsert("a", [{"id": 1}])
    await storage.upsert("b", [{"id": 2}])
    manager = BackupManager(storage, _config(temp_backup_dir, single_file=True, keep_backups=0))
    clock = FixedClock(datetime(2024, 1, 1, 12, 0, 0), datetime(2024, 1, 1, 12, 0, 0))

    with patch("dev_tool.backup.utils.datetime", clock):
        first, second = await asyncio.gather(manager.create_backup(["a"]), manager.create_backup(["b"]))

    assert first.timestamp == "20240101_120000"
    assert second.timestamp == "20240101_120001"
    assert json.loads((temp_backup_dir / first.files[0]).read_text()) == {"a": [{"id": 1}]}
    assert json.loads((temp_backup_dir / second.files[0]).read_text()) == {"b": [{"id": 2}]}
    assert manager._in_flight == set()


@pytest.mark.asyncio
async def test_delete_backup_continues_after_unlink_failure(memory_storage, temp_backup_dir):
    """A file that cannot be removed is logged; the other files are still deleted."""
    for name in ("backup_20240101_120000_user.json", "backup_20240101_120000_channel.json"):
        (temp_backup_dir / name).write_text("[]")
    manager = BackupManager(memory_storage, _config(temp_backup_dir))
    real_unlink = Path.unlink

    def flaky_unlink(path, *args, **kwargs):
        if path.name.endswith("_channel.json"):
            raise PermissionError("read-only")
        return real_unlink(path, *args, **kwargs)

    with patch.object(Path, "unlink", flaky_unlink), patch("dev_tool.backup.manager.logger") as mock_logger:
        assert await manager.delete_backup("20240101_120000") is True

    assert [p.name for p in temp_backup_dir.iterdir()] == ["backup_20240101_120000_channel.json"]
    mock_logger.error.assert_called_once()
