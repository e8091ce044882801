"""Shared behaviour of the backup layouts."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional, Tuple

from ...base import BaseTableStorage, Row
from ..._utils import logger
from ..models import BackupEntry, BackupMode, BackupResult
from ..utils import ensure_dir


class BaseExporter(ABC):
    """Write, list and restore backup artifacts of one on-disk layout."""

    mode: BackupMode

    def __init__(self, storage: BaseTableStorage, backup_dir: Path):
        """Initialize exporter.

        Args:
            storage: Table storage to read rows from and upsert rows into
            backup_dir: Directory holding backup files
        """
        self.storage = storage
        self.backup_dir = Path(backup_dir)

    @abstractmethod
    async def export(self, tables: List[str], timestamp: str) -> BackupResult:
        """Snapshot tables into a new artifact named by timestamp."""

    @abstractmethod
    async def restore(self, timestamp: str, tables: Optional[List[str]] = None) -> List[str]:
        """Upsert an artifact's rows back into storage; returns restored tables."""

    @abstractmethod
    async def list_backups(self) -> List[BackupEntry]:
        """List artifacts of this layout, newest first."""

    def _ensure_dir(self) -> None:
        ensure_dir(self.backup_dir)

    async def _fetch_tables(self, tables: List[str]) -> Tuple[List[Tuple[str, List[Row]]], List[str]]:
        """Fetch all rows of each table; tables that fail are reported, not raised."""
        fetched, failed = [], []
        for table in tables:
            try:
                fetched.append((table, await self.storage.get(table, {})))
            except Exception as e:
                logger.warning(f"Failed to fetch table {table}: {e}")
                failed.append(table)
        return fetched, failed

    async def _apply_rows(self, table: str, data: Any) -> bool:
        """Upsert one table's rows; empty or non-list data is skipped."""
        if not isinstance(data, list) or not data:
            logger.debug(f"No rows to restore for table {table}")
            return False
        await self.storage.upsert(table, data)
        logger.debug(f"Restored table {table} ({len(data)} rows)")
        return True
