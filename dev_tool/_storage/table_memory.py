"""In-process table storage."""

import copy
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..base import BaseTableStorage, Query, Row, TableNotFoundError, match_query
from .._utils import logger


@dataclass
class MemoryTableStorage(BaseTableStorage):
    """Table storage kept in a dict of row lists; used standalone and as the JSON backend's core."""

    _tables: Dict[str, List[Row]] = field(init=False, default_factory=dict)

    def _require(self, table: str) -> List[Row]:
        if table not in self._tables:
            raise TableNotFoundError(table)
        return self._tables[table]

    def _next_id(self, rows: List[Row]) -> int:
        ids = [r["id"] for r in rows if isinstance(r.get("id"), int)]
        return max(ids, default=0) + 1

    async def stats(self) -> Dict[str, int]:
        return {name: len(rows) for name, rows in self._tables.items()}

    async def get(self, table: str, query: Optional[Query] = None) -> List[Row]:
        rows = self._require(table)
        return [copy.deepcopy(r) for r in rows if match_query(r, query)]

    async def set(self, table: str, query: Optional[Query], data: Row) -> int:
        rows = self._require(table)
        modified = 0
        for index, row in enumerate(rows):
            if not match_query(row, query):
                continue
            updated = {**row, **copy.deepcopy(data)}
            if updated != row:
                rows[index] = updated
                modified += 1
        return modified

    async def create(self, table: str, data: Row) -> Row:
        rows = self._tables.setdefault(table, [])
        row = copy.deepcopy(data)
        keys = self.primary_key(table)
        if keys == ["id"] and row.get("id") is None:
            row["id"] = self._next_id(rows)
        key = self.row_key(row, keys)
        if any(self.row_key(r, keys) == key for r in rows):
            raise ValueError(f"Duplicate primary key {keys} in table {table}")
        rows.append(row)
        return copy.deepcopy(row)

    async def upsert(self, table: str, rows: List[Row], keys: Optional[List[str]] = None) -> Dict[str, int]:
        existing = self._tables.setdefault(table, [])
        keys = keys or self.primary_key(table)
        result = {"inserted": 0, "matched": 0, "modified": 0}

        for incoming in rows:
            missing = [k for k in keys if k not in incoming]
            if missing:
                raise ValueError(f"Row for table {table} is missing key fields: {missing}")
            key = self.row_key(incoming, keys)
            for index, row in enumerate(existing):
                if self.row_key(row, keys) == key:
                    result["matched"] += 1
                    merged = {**row, **copy.deepcopy(incoming)}
                    if merged != row:
                        existing[index] = merged
                        result["modified"] += 1
                    break
            else:
                existing.append(copy.deepcopy(incoming))
                result["inserted"] += 1

        logger.debug(f"Upserted {len(rows)} rows into {table}: {result}")
        return result

    async def remove(self, table: str, query: Optional[Query] = None) -> int:
        rows = self._require(table)
        kept = [r for r in rows if not match_query(r, query)]
        self._tables[table] = kept
        return len(rows) - len(kept)

    async def drop(self, table: str) -> None:
        self._require(table)
        del self._tables[table]

    async def drop_all(self) -> None:
        self._tables.clear()
