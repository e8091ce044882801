from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

Row = Dict[str, Any]
Query = Dict[str, Any]


class TableNotFoundError(KeyError):
    """Raised when an operation targets a table the storage does not know."""

    def __init__(self, table: str):
        super().__init__(table)
        self.table = table

    def __str__(self) -> str:
        return f"Table not found: {self.table}"


def _compare(op: str, actual: Any, expected: Any) -> bool:
    if op == "$eq":
        return actual == expected
    if op == "$ne":
        return actual != expected
    if op == "$in":
        return actual in expected
    if op == "$nin":
        return actual not in expected
    if actual is None:
        return False
    if op == "$lt":
        return actual < expected
    if op == "$lte":
        return actual <= expected
    if op == "$gt":
        return actual > expected
    if op == "$gte":
        return actual >= expected
    raise ValueError(f"Unsupported query operator: {op}")


def match_query(row: Row, query: Optional[Query]) -> bool:
    """Check a row against an equality / operator query.

    ``{"platform": "discord", "time": {"$lt": 1600000000}}`` matches rows
    whose platform equals "discord" and whose time is below the bound.
    """
    if not query:
        return True
    for key, condition in query.items():
        actual = row.get(key)
        if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
            if not all(_compare(op, actual, operand) for op, operand in condition.items()):
                return False
        elif actual != condition:
            return False
    return True


@dataclass
class StorageNameSpace:
    namespace: str
    global_config: dict = field(default_factory=dict)

    async def index_done_callback(self):
        """Commit pending writes to the underlying medium."""
        pass


@dataclass
class BaseTableStorage(StorageNameSpace):
    """Tabular datastore used by the database tool and the backup subsystem."""

    def primary_key(self, table: str) -> List[str]:
        return list(self.global_config.get("primary_keys", {}).get(table, ["id"]))

    def row_key(self, row: Row, keys: Iterable[str]) -> Tuple:
        return tuple(repr(row.get(k)) for k in keys)

    async def stats(self) -> Dict[str, int]:
        """Return a mapping of table name to row count."""
        raise NotImplementedError

    async def get(self, table: str, query: Optional[Query] = None) -> List[Row]:
        raise NotImplementedError

    async def set(self, table: str, query: Optional[Query], data: Row) -> int:
        """Update matching rows; returns the number of modified rows."""
        raise NotImplementedError

    async def create(self, table: str, data: Row) -> Row:
        raise NotImplementedError

    async def upsert(self, table: str, rows: List[Row], keys: Optional[List[str]] = None) -> Dict[str, int]:
        """Insert or update rows by key; returns inserted/matched/modified counts."""
        raise NotImplementedError

    async def remove(self, table: str, query: Optional[Query] = None) -> int:
        raise NotImplementedError

    async def drop(self, table: str) -> None:
        raise NotImplementedError

    async def drop_all(self) -> None:
        raise NotImplementedError
