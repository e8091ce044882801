"""Storage factory for centralized backend creation."""

from typing import Callable, Dict, Type

from ..base import BaseTableStorage


class StorageFactory:
    """Factory for creating table storage backends with validation and registration."""

    _table_backends: Dict[str, Callable[[], Type[BaseTableStorage]]] = {}

    ALLOWED_TABLE = {"memory", "json", "redis"}

    @classmethod
    def register_table(cls, name: str, backend_loader: Callable[[], Type[BaseTableStorage]]) -> None:
        """Register a table storage backend.

        Args:
            name: Backend name (must be in ALLOWED_TABLE)
            backend_loader: Function that returns the table storage class

        Raises:
            ValueError: If backend name not in allowed list
        """
        if name not in cls.ALLOWED_TABLE:
            raise ValueError(f"Backend {name} not in allowed table backends: {cls.ALLOWED_TABLE}")
        cls._table_backends[name] = backend_loader

    @classmethod
    def create_table_storage(cls, backend: str, namespace: str, global_config: dict) -> BaseTableStorage:
        """Create a table storage instance.

        Args:
            backend: Backend name
            namespace: Storage namespace
            global_config: Global configuration dict

        Returns:
            Initialized table storage instance

        Raises:
            ValueError: If backend not registered
        """
        if backend not in cls._table_backends:
            _register_backends()
            if backend not in cls._table_backends:
                raise ValueError(f"Unknown table backend: {backend}. Available: {list(cls._table_backends.keys())}")

        backend_class = cls._table_backends[backend]()
        return backend_class(namespace=namespace, global_config=global_config)


def _get_memory_storage():
    from .table_memory import MemoryTableStorage
    return MemoryTableStorage


def _get_json_storage():
    from .table_json import JsonTableStorage
    return JsonTableStorage


def _get_redis_storage():
    from .table_redis import RedisTableStorage
    return RedisTableStorage


def _register_backends():
    """Register all built-in backends with lazy loaders."""
    StorageFactory.register_table("memory", _get_memory_storage)
    StorageFactory.register_table("json", _get_json_storage)
    StorageFactory.register_table("redis", _get_redis_storage)
