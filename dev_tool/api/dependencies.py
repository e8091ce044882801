"""Dependency injection for FastAPI."""

from fastapi import Request
from typing import TYPE_CHECKING

from .exceptions import StorageUnavailableError

if TYPE_CHECKING:
    from dev_tool.base import BaseTableStorage
    from dev_tool.backup import BackupManager, BackupScheduler


async def get_storage(request: Request) -> "BaseTableStorage":
    """Get table storage from app state."""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise StorageUnavailableError("table storage")
    return storage


async def get_backup_manager(request: Request) -> "BackupManager":
    """Get BackupManager instance from app state."""
    manager = getattr(request.app.state, "backup_manager", None)
    if manager is None:
        raise StorageUnavailableError("backup manager")
    return manager


async def get_scheduler(request: Request) -> "BackupScheduler":
    """Get BackupScheduler instance from app state."""
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise StorageUnavailableError("backup scheduler")
    return scheduler
