"""Storage module with lazy loading support."""

from typing import TYPE_CHECKING

from .factory import StorageFactory, _register_backends

if TYPE_CHECKING:
    from .table_memory import MemoryTableStorage
    from .table_json import JsonTableStorage
    from .table_redis import RedisTableStorage


def __getattr__(name):
    """Lazy import storage backends so redis is only loaded when used."""
    if name == "MemoryTableStorage":
        from .table_memory import MemoryTableStorage
        return MemoryTableStorage
    elif name == "JsonTableStorage":
        from .table_json import JsonTableStorage
        return JsonTableStorage
    elif name == "RedisTableStorage":
        from .table_redis import RedisTableStorage
        return RedisTableStorage
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    "StorageFactory",
    "_register_backends",
    "MemoryTableStorage",
    "JsonTableStorage",
    "RedisTableStorage",
]
