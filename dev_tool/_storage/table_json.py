"""JSON-file persisted table storage."""

import os
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..base import Query, Row
from .._utils import load_json, logger, write_json
from .table_memory import MemoryTableStorage


@dataclass
class JsonTableStorage(MemoryTableStorage):
    """Memory table storage that rewrites ``tables_<namespace>.json`` after every mutation."""

    def __post_init__(self):
        working_dir = self.global_config.get("working_dir", "./data")
        os.makedirs(working_dir, exist_ok=True)
        self._file_name = os.path.join(working_dir, f"tables_{self.namespace}.json")
        if os.path.exists(self._file_name):
            self._tables = load_json(self._file_name) or {}
            logger.info(f"Loaded table storage {self.namespace} with {len(self._tables)} tables")

    async def index_done_callback(self):
        write_json(self._tables, self._file_name)

    async def set(self, table: str, query: Optional[Query], data: Row) -> int:
        modified = await super().set(table, query, data)
        await self.index_done_callback()
        return modified

    async def create(self, table: str, data: Row) -> Row:
        row = await super().create(table, data)
        await self.index_done_callback()
        return row

    async def upsert(self, table: str, rows: List[Row], keys: Optional[List[str]] = None) -> Dict[str, int]:
        result = await super().upsert(table, rows, keys)
        await self.index_done_callback()
        return result

    async def remove(self, table: str, query: Optional[Query] = None) -> int:
        removed = await super().remove(table, query)
        await self.index_done_callback()
        return removed

    async def drop(self, table: str) -> None:
        await super().drop(table)
        await self.index_done_callback()

    async def drop_all(self) -> None:
        await super().drop_all()
        await self.index_done_callback()
