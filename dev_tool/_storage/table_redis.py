"""Redis-based table storage for deployments that share one datastore."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import redis.asyncio as aioredis
from redis.backoff import ExponentialBackoff
from redis.retry import Retry
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError

from ..base import BaseTableStorage, Query, Row, TableNotFoundError, match_query
from .._utils import DateTimeEncoder, dumps_json, loads_json, logger


@dataclass
class RedisTableStorage(BaseTableStorage):
    """Table storage keeping one Redis hash per table, keyed by primary key."""

    _redis_client: Optional[Any] = field(init=False, default=None)
    _connection_pool: Optional[Any] = field(init=False, default=None)
    _initialized: bool = field(init=False, default=False)

    def __post_init__(self):
        self._prefix = f"dev_tool:{self.namespace}:"
        self.redis_url = self.global_config.get("redis_url", "redis://localhost:6379")
        self.redis_password = self.global_config.get("redis_password", None)
        self.max_connections = self.global_config.get("redis_max_connections", 50)
        self.socket_timeout = self.global_config.get("redis_socket_timeout", 5.0)

    async def _ensure_initialized(self):
        """Ensure Redis connection is initialized."""
        if self._initialized:
            return

        retry = Retry(
            ExponentialBackoff(cap=10, base=1),
            retries=3,
            supported_errors=(RedisConnectionError, TimeoutError, ConnectionError)
        )

        self._connection_pool = aioredis.ConnectionPool.from_url(
            self.redis_url,
            password=self.redis_password,
            max_connections=self.max_connections,
            socket_timeout=self.socket_timeout,
            decode_responses=True,
            retry=retry,
        )
        self._redis_client = aioredis.Redis(connection_pool=self._connection_pool)

        try:
            await self._redis_client.ping()
            logger.info(f"Connected to Redis for table namespace: {self.namespace}")
        except RedisError as e:
            logger.error(f"Redis connection failed: {e}")
            raise

        self._initialized = True

    @property
    def _registry_key(self) -> str:
        return f"{self._prefix}__tables__"

    def _table_key(self, table: str) -> str:
        return f"{self._prefix}table:{table}"

    def _sequence_key(self, table: str) -> str:
        return f"{self._prefix}seq:{table}"

    def _field(self, table: str, row: Row) -> str:
        return json.dumps([row.get(k) for k in self.primary_key(table)], cls=DateTimeEncoder)

    async def _load(self, table: str) -> Dict[str, Row]:
        await self._ensure_initialized()
        if not await self._redis_client.sismember(self._registry_key, table):
            raise TableNotFoundError(table)
        raw = await self._redis_client.hgetall(self._table_key(table))
        return {k: loads_json(v) for k, v in sorted(raw.items())}

    async def _save(self, table: str, rows: List[Row]) -> None:
        mapping = {self._field(table, row): dumps_json(row, indent=None) for row in rows}
        await self._redis_client.sadd(self._registry_key, table)
        if mapping:
            await self._redis_client.hset(self._table_key(table), mapping=mapping)
            await self._advance_sequence(table, rows)

    async def _advance_sequence(self, table: str, rows: List[Row]) -> None:
        """Keep the id sequence at or above every integer id written."""
        if self.primary_key(table) != ["id"]:
            return
        ids = [r["id"] for r in rows if isinstance(r.get("id"), int) and not isinstance(r.get("id"), bool)]
        if not ids:
            return
        current = int(await self._redis_client.get(self._sequence_key(table)) or 0)
        if max(ids) > current:
            await self._redis_client.set(self._sequence_key(table), max(ids))

    async def stats(self) -> Dict[str, int]:
        await self._ensure_initialized()
        tables = await self._redis_client.smembers(self._registry_key)
        return {name: await self._redis_client.hlen(self._table_key(name)) for name in sorted(tables)}

    async def get(self, table: str, query: Optional[Query] = None) -> List[Row]:
        rows = await self._load(table)
        return [r for r in rows.values() if match_query(r, query)]

    async def set(self, table: str, query: Optional[Query], data: Row) -> int:
        rows = await self._load(table)
        changed, stale = [], []
        for field_name, row in rows.items():
            if match_query(row, query):
                updated = {**row, **data}
                if updated != row:
                    changed.append(updated)
                    if self._field(table, updated) != field_name:
                        stale.append(field_name)
        if stale:
            await self._redis_client.hdel(self._table_key(table), *stale)
        await self._save(table, changed)
        return len(changed)

    async def create(self, table: str, data: Row) -> Row:
        await self._ensure_initialized()
        row = dict(data)
        if self.primary_key(table) == ["id"] and row.get("id") is None:
            row["id"] = await self._redis_client.incr(self._sequence_key(table))
        if await self._redis_client.hexists(self._table_key(table), self._field(table, row)):
            raise ValueError(f"Duplicate primary key {self.primary_key(table)} in table {table}")
        await self._save(table, [row])
        return row

    async def upsert(self, table: str, rows: List[Row], keys: Optional[List[str]] = None) -> Dict[str, int]:
        await self._ensure_initialized()
        keys = keys or self.primary_key(table)
        try:
            existing = list((await self._load(table)).values())
        except TableNotFoundError:
            existing = []

        result = {"inserted": 0, "matched": 0, "modified": 0}
        to_write = []
        for incoming in rows:
            missing = [k for k in keys if k not in incoming]
            if missing:
                raise ValueError(f"Row for table {table} is missing key fields: {missing}")
            key = self.row_key(incoming, keys)
            match = next((r for r in existing if self.row_key(r, keys) == key), None)
            if match is None:
                to_write.append(incoming)
                existing.append(incoming)
                result["inserted"] += 1
                continue
            result["matched"] += 1
            merged = {**match, **incoming}
            if merged != match:
                to_write.append(merged)
                result["modified"] += 1

        await self._save(table, to_write)
        logger.debug(f"Upserted {len(rows)} rows into Redis table {table}: {result}")
        return result

    async def remove(self, table: str, query: Optional[Query] = None) -> int:
        rows = await self._load(table)
        fields = [f for f, row in rows.items() if match_query(row, query)]
        if fields:
            await self._redis_client.hdel(self._table_key(table), *fields)
        return len(fields)

    async def drop(self, table: str) -> None:
        await self._ensure_initialized()
        if not await self._redis_client.sismember(self._registry_key, table):
            raise TableNotFoundError(table)
        await self._redis_client.delete(self._table_key(table), self._sequence_key(table))
        await self._redis_client.srem(self._registry_key, table)

    async def drop_all(self) -> None:
        await self._ensure_initialized()
        for table in await self._redis_client.smembers(self._registry_key):
            await self.drop(table)
        logger.info(f"Dropped all tables in Redis namespace: {self.namespace}")

    async def close(self):
        """Close the Redis connection pool."""
        if self._redis_client:
            await self._redis_client.aclose()
        if self._connection_pool:
            await self._connection_pool.disconnect()
        self._initialized = False
