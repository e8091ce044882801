"""Inspection and maintenance operations over table storage."""

import json
import math
from typing import Any, Dict, List, Optional, Union

from .base import BaseTableStorage, Query
from ._utils import dumps_json, format_as_table, logger

OVERVIEW_PAGE_SIZE = 15
QUERY_PAGE_SIZE = 5
QUERY_MAX_PAGE = 10


class DbService:
    """Database tool commands. Every public method returns a message and never raises."""

    def __init__(self, storage: BaseTableStorage):
        self.storage = storage

    async def validate_table(self, table: str) -> Optional[str]:
        """Resolve a table name to its canonical casing, or None if it does not exist."""
        try:
            existing = list((await self.storage.stats()).keys())
        except Exception as e:
            logger.warning(f"Failed to validate table name: {e}")
            return None
        if table in existing:
            return table
        return next((t for t in existing if t.lower() == table.lower()), None)

    async def list_tables(self, page: Union[int, str, None] = None) -> str:
        try:
            stats = await self.storage.stats()
            if not stats:
                return "The database has no tables"

            tables = sorted(stats.items(), key=lambda item: item[1], reverse=True)
            total_rows = sum(stats.values())
            show_all = page == "all"

            header = f"Database overview ({len(tables)} tables / {total_rows} rows)"
            if not show_all:
                total_pages = math.ceil(len(tables) / OVERVIEW_PAGE_SIZE)
                current = min(max(1, int(page or 1)), total_pages)
                start = (current - 1) * OVERVIEW_PAGE_SIZE
                tables = tables[start:start + OVERVIEW_PAGE_SIZE]
                header += f" - page {current}/{total_pages}"

            width = min(30, max(len(name) for name, _ in tables))
            lines = [header] + [f"{name.ljust(width)} {count} rows" for name, count in tables]
            return "\n".join(lines)
        except Exception as e:
            return f"Failed to get database overview: {e}"

    async def query(self, table: str, filter: Optional[Query] = None, page: int = 1) -> str:
        try:
            filter = filter or {}
            valid = await self.validate_table(table)
            if not valid:
                return f'Query failed: table "{table}" does not exist'

            rows = await self.storage.get(valid, filter)
            if not rows:
                return f"No matching rows in table {valid}"

            page = max(1, min(QUERY_MAX_PAGE, page or 1))
            total_pages = math.ceil(len(rows) / QUERY_PAGE_SIZE)
            start = (page - 1) * QUERY_PAGE_SIZE
            filter_desc = f"\nFilter: {json.dumps(filter)}" if filter else ""

            return (
                f"Table {valid} ({len(rows)} rows) - page {page}/{total_pages or 1}{filter_desc}\n"
                + format_as_table(rows[start:start + QUERY_PAGE_SIZE])
            )
        except Exception as e:
            return f"Query failed: {e}"

    async def count(self, table: str, filter: Optional[Query] = None) -> str:
        try:
            filter = filter or {}
            valid = await self.validate_table(table)
            if not valid:
                return f'Count failed: table "{table}" does not exist'

            rows = await self.storage.get(valid, filter)
            filter_desc = f" (filter: {json.dumps(filter)})" if filter else ""
            return f"Table {valid} has {len(rows)} rows{filter_desc}"
        except Exception as e:
            return f"Count failed: {e}"

    async def update(
        self,
        table: str,
        data: Union[Dict[str, Any], List[Dict[str, Any]]],
        mode: str = "set",
        query: Optional[Query] = None,
        keys: Optional[List[str]] = None,
    ) -> str:
        try:
            valid = await self.validate_table(table)
            if not valid:
                return f'Update failed: table "{table}" does not exist'

            if mode == "set":
                query = query or {}
                before = await self.storage.get(valid, query)
                if not before:
                    return f"Update failed: no matching rows in table {valid}"
                modified = await self.storage.set(valid, query, data)
                after = await self.storage.get(valid, query)
                return (
                    f"Updated {modified} rows\n"
                    f"Before:\n{dumps_json(before[0])}\n"
                    f"After:\n{dumps_json(after[0])}"
                )
            if mode == "create":
                row = await self.storage.create(valid, data)
                return f"Inserted 1 row\n{dumps_json(row)}"
            if mode == "upsert":
                if not isinstance(data, list):
                    return "Update failed: upsert data must be a list of rows"
                result = await self.storage.upsert(valid, data, keys or None)
                return (
                    f"Processed {len(data)} rows\n"
                    f"- inserted: {result['inserted']}\n"
                    f"- matched: {result['matched']}\n"
                    f"- modified: {result['modified']}"
                )
            return f'Update failed: unsupported mode "{mode}"'
        except Exception as e:
            return f"Update failed: {e}"

    async def delete(self, table: str, filter: Optional[Query] = None) -> str:
        try:
            filter = filter or {}
            valid = await self.validate_table(table)
            if not valid:
                return f'Delete failed: table "{table}" does not exist'

            rows = await self.storage.get(valid, filter)
            if not rows:
                return f"No matching rows in table {valid}"

            await self.storage.remove(valid, filter)
            if not filter:
                return f"Cleared table {valid} ({len(rows)} rows)"
            return f"Deleted {len(rows)} matching rows from table {valid}"
        except Exception as e:
            return f"Delete failed: {e}"

    async def drop(self, table: Optional[str] = None, drop_all: bool = False) -> str:
        try:
            if drop_all:
                stats = await self.storage.stats()
                await self.storage.drop_all()
                logger.warning(f"Dropped all tables ({len(stats)} tables)")
                return f"Dropped all tables ({len(stats)} tables / {sum(stats.values())} rows)"

            if not table:
                return "Drop failed: no table given"
            valid = await self.validate_table(table)
            if not valid:
                return f'Drop failed: table "{table}" does not exist'

            count = len(await self.storage.get(valid, {}))
            await self.storage.drop(valid)
            logger.warning(f"Dropped table {valid}")
            return f"Dropped table {valid} ({count} rows)"
        except Exception as e:
            return f"Drop failed: {e}"
