"""Multi-file backup layout: one ``backup_<timestamp>_<table>.json`` per table."""

from typing import Dict, List, Optional

from ..._utils import logger
from ..models import BackupEntry, BackupMode, BackupResult
from ..resolver import resolve_tables
from ..utils import MULTI_FILE_PATTERN, load_backup_file, multi_file_name, save_backup_file
from .base import BaseExporter


class MultiFileExporter(BaseExporter):
    """Export each table into its own JSON array file."""

    mode = BackupMode.MULTI_FILE

    async def export(self, tables: List[str], timestamp: str) -> BackupResult:
        fetched, failed = await self._fetch_tables(tables)
        succeeded, files = [], []

        for table, rows in fetched:
            file_name = multi_file_name(timestamp, table)
            try:
                self._ensure_dir()
                await save_backup_file(rows, self.backup_dir / file_name)
            except Exception as e:
                logger.warning(f"Failed to write backup of table {table}: {e}")
                failed.append(table)
                continue
            succeeded.append(table)
            files.append(file_name)

        logger.info(f"Multi-file backup written: timestamp {timestamp} ({len(succeeded)}/{len(tables)} tables)")
        return BackupResult(
            timestamp=timestamp,
            mode=self.mode,
            tables=list(tables),
            succeeded=succeeded,
            failed=[t for t in tables if t in failed],
            files=files,
        )

    def _artifact_tables(self, timestamp: str) -> List[str]:
        tables = []
        for path in sorted(self.backup_dir.iterdir()):
            match = MULTI_FILE_PATTERN.match(path.name)
            if match and match.group(1) == timestamp:
                tables.append(match.group(2))
        return tables

    async def restore(self, timestamp: str, tables: Optional[List[str]] = None) -> List[str]:
        available = self._artifact_tables(timestamp)
        if tables is not None:
            targets = resolve_tables(available, requested=tables)
        else:
            targets = available

        restored = []
        for table in targets:
            file_path = self.backup_dir / multi_file_name(timestamp, table)
            try:
                data = await load_backup_file(file_path)
                if await self._apply_rows(table, data):
                    restored.append(table)
            except Exception as e:
                logger.warning(f"Failed to restore backup file {file_path.name}: {e}")
        return restored

    async def list_backups(self) -> List[BackupEntry]:
        grouped: Dict[str, List[str]] = {}
        for path in self.backup_dir.iterdir():
            match = MULTI_FILE_PATTERN.match(path.name)
            if match:
                grouped.setdefault(match.group(1), []).append(match.group(2))

        entries = [
            BackupEntry(timestamp=timestamp, tables=sorted(tables))
            for timestamp, tables in grouped.items()
        ]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries
