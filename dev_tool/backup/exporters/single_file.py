"""Single-file backup layout: one ``backup_<timestamp>.json`` per artifact."""

from typing import Dict, List, Optional

from ..._utils import logger
from ..models import BackupEntry, BackupMode, BackupResult
from ..resolver import resolve_tables
from ..utils import SINGLE_FILE_PATTERN, load_backup_file, save_backup_file, single_file_name
from .base import BaseExporter


class SingleFileExporter(BaseExporter):
    """Export all tables into one JSON object keyed by table name."""

    mode = BackupMode.SINGLE_FILE

    async def export(self, tables: List[str], timestamp: str) -> BackupResult:
        fetched, failed = await self._fetch_tables(tables)
        all_data: Dict[str, list] = {table: rows for table, rows in fetched}

        file_name = single_file_name(timestamp)
        self._ensure_dir()
        await save_backup_file(all_data, self.backup_dir / file_name)

        logger.info(f"Single-file backup written: {file_name} ({len(all_data)}/{len(tables)} tables)")
        return BackupResult(
            timestamp=timestamp,
            mode=self.mode,
            tables=list(tables),
            succeeded=list(all_data),
            failed=failed,
            files=[file_name],
        )

    async def restore(self, timestamp: str, tables: Optional[List[str]] = None) -> List[str]:
        file_path = self.backup_dir / single_file_name(timestamp)
        try:
            all_data = await load_backup_file(file_path)
        except Exception as e:
            logger.error(f"Failed to read backup file {file_path.name}: {e}")
            return []

        if not isinstance(all_data, dict):
            logger.error(f"Backup file {file_path.name} does not hold a table mapping")
            return []

        if tables is not None:
            targets = resolve_tables(all_data.keys(), requested=tables)
        else:
            targets = list(all_data)

        restored = []
        for table in targets:
            try:
                if await self._apply_rows(table, all_data[table]):
                    restored.append(table)
            except Exception as e:
                logger.warning(f"Failed to restore table {table} from {file_path.name}: {e}")
        return restored

    async def list_backups(self) -> List[BackupEntry]:
        entries = []
        for path in self.backup_dir.iterdir():
            match = SINGLE_FILE_PATTERN.match(path.name)
            if match:
                entries.append(BackupEntry(timestamp=match.group(1)))
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries
