"""Backup and restore orchestration for table storage."""

from pathlib import Path
from typing import List, Optional, Set, Union

from ..base import BaseTableStorage
from ..config import BackupConfig
from .._utils import logger
from .exporters import MultiFileExporter, SingleFileExporter
from .models import BackupEntry, BackupResult
from .resolver import resolve_tables
from .retention import cleanup_old_backups
from .utils import (
    TIMESTAMP_PATTERN,
    ensure_dir,
    format_timestamp,
    match_backup_file,
    reserve_timestamp,
)


class BackupManager:
    """Orchestrate backup, retention and restore of all storage tables.

    Two layers: ``create_backup`` / ``restore_backup`` / ``list_backups``
    return structured results and raise on whole-run failures, while the
    ``perform_*`` commands wrap them and always return a message.
    """

    def __init__(self, storage: BaseTableStorage, config: Optional[BackupConfig] = None):
        """Initialize backup manager.

        Args:
            storage: Table storage to back up and restore into
            config: Backup configuration (directory, layout, retention, special tables)
        """
        self.storage = storage
        self.config = config or BackupConfig()
        self.backup_dir = Path(self.config.dir)
        ensure_dir(self.backup_dir)

        exporter_cls = SingleFileExporter if self.config.single_file else MultiFileExporter
        self.exporter = exporter_cls(storage, self.backup_dir)
        self._in_flight: Set[str] = set()

    async def create_backup(self, tables: Optional[List[str]] = None) -> Optional[BackupResult]:
        """Back up tables and prune old artifacts.

        Args:
            tables: Optional explicit subset; defaults to every live table plus
                the configured special tables

        Returns:
            BackupResult, or None when there is nothing to back up
        """
        ensure_dir(self.backup_dir)
        live_tables = list((await self.storage.stats()).keys())
        known = resolve_tables(live_tables, self.config.tables)
        selected = resolve_tables(known, requested=tables) if tables is not None else known

        if not selected:
            logger.info("No tables to back up")
            return None

        # Reserved synchronously; no await between choosing and claiming
        timestamp = reserve_timestamp(self.backup_dir, in_flight=self._in_flight)
        self._in_flight.add(timestamp)
        try:
            logger.info(f"Starting backup: {timestamp} ({len(selected)} tables)")
            result = await self.exporter.export(selected, timestamp)
        finally:
            self._in_flight.discard(timestamp)

        if self.config.keep_backups > 0:
            await cleanup_old_backups(self.backup_dir, self.config.keep_backups)
        return result

    async def restore_backup(self, timestamp: str, tables: Optional[List[str]] = None) -> List[str]:
        """Restore one artifact; returns the tables that received rows."""
        logger.info(f"Starting restore: {timestamp}")
        restored = await self.exporter.restore(timestamp, tables)
        logger.info(f"Restore complete: {timestamp} ({len(restored)} tables)")
        return restored

    async def list_backups(self) -> List[BackupEntry]:
        """List artifacts newest first; listing failures yield an empty list."""
        try:
            ensure_dir(self.backup_dir)
            return await self.exporter.list_backups()
        except OSError as e:
            logger.error(f"Failed to list backups: {e}")
            return []

    async def delete_backup(self, timestamp: str) -> bool:
        """Delete every file of one artifact.

        Files that cannot be removed are logged and skipped.

        Returns:
            True if the backup existed, False if not found
        """
        if not TIMESTAMP_PATTERN.match(timestamp):
            return False

        members = [
            path for path in self.backup_dir.iterdir()
            if (match_backup_file(path.name) or (None,))[0] == timestamp
        ]
        if not members:
            return False

        deleted = 0
        for path in members:
            try:
                path.unlink()
            except OSError as e:
                logger.error(f"Failed to delete backup file {path.name}: {e}")
                continue
            deleted += 1
        logger.info(f"Deleted backup: {timestamp} ({deleted}/{len(members)} files)")
        return True

    async def perform_backup(self, tables: Optional[List[str]] = None) -> str:
        """Run a backup and describe the outcome."""
        try:
            result = await self.create_backup(tables)
            if result is None:
                return "No tables to back up"

            if self.config.single_file:
                message = (
                    f"Backup complete: {result.files[0]} "
                    f"({result.success_count}/{result.attempted_count} tables)"
                )
            else:
                message = (
                    f"Backup complete: timestamp {result.timestamp}, "
                    f"{result.success_count}/{result.attempted_count} tables"
                )
            if result.failed:
                message += f"\nFailed tables: {', '.join(result.failed)}"
            logger.info(message)
            return message
        except Exception as e:
            message = f"Backup failed: {e}"
            logger.error(message)
            return message

    async def perform_restore(
        self,
        index: Union[int, str, None] = None,
        tables: Optional[List[str]] = None
    ) -> str:
        """List backups, or restore the one at a 1-based catalog index."""
        try:
            backups = await self.list_backups()
            if not backups:
                return "No backups available"

            if index is None or index == "":
                return (
                    "Available backups:\n\n"
                    + self._format_catalog(backups, numbered=True)
                    + "\n\nRestore one with: restore <index>"
                )

            try:
                position = int(index)
            except (TypeError, ValueError):
                position = 0
            if not 1 <= position <= len(backups):
                return f"Invalid index, expected a number between 1 and {len(backups)}"

            target = backups[position - 1]
            restored = await self.restore_backup(target.timestamp, tables)

            if not restored:
                return (
                    f"No valid backup data found for tables: {', '.join(tables)}"
                    if tables else "Nothing was restored, check that the backup files are valid"
                )

            message = (
                f"Restored tables: {', '.join(restored)}"
                if tables else f"Restored backup #{position}: {len(restored)} tables"
            )
            logger.info(message)
            return message
        except Exception as e:
            message = f"Restore failed: {e}"
            logger.error(message)
            return message

    async def list_all_backups(self) -> str:
        """Describe every available backup with its timestamp."""
        backups = await self.list_backups()
        if not backups:
            return "No backups found"
        return "Available backups:\n" + self._format_catalog(backups, numbered=False)

    def _format_catalog(self, backups: List[BackupEntry], numbered: bool) -> str:
        lines = []
        for position, backup in enumerate(backups, start=1):
            date, time = format_timestamp(backup.timestamp)
            if backup.tables is None:
                detail = "single-file backup"
            else:
                detail = f"{len(backup.tables)} tables"
            if numbered:
                lines.append(f"{position}. {date} {time} ({detail})")
            else:
                lines.append(f"- {date} {time} [{backup.timestamp}] ({detail})")
        return "\n".join(lines)
