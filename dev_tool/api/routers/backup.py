"""Backup and restore API endpoints."""

from fastapi import APIRouter, Depends
from typing import List, Optional

from ..models import BackupRequest, MessageResponse, RestoreRequest
from ..dependencies import get_backup_manager, get_scheduler
from ..exceptions import BackupNotFoundError
from dev_tool.backup import BackupManager, BackupScheduler
from dev_tool.backup.models import BackupEntry
from dev_tool._utils import logger

router = APIRouter(prefix="/backup", tags=["backup"])


@router.post("", response_model=MessageResponse)
async def create_backup(
    request: Optional[BackupRequest] = None,
    scheduler: BackupScheduler = Depends(get_scheduler)
) -> MessageResponse:
    """Run a backup now, through the same path as the periodic timer."""
    tables = request.tables if request else None
    message = await scheduler.trigger(tables)
    return MessageResponse(message=message)


@router.get("", response_model=List[BackupEntry])
async def list_backups(
    backup_manager: BackupManager = Depends(get_backup_manager)
) -> List[BackupEntry]:
    """List all available backups, newest first."""
    return await backup_manager.list_backups()


@router.get("/catalog", response_model=MessageResponse)
async def backup_catalog(
    backup_manager: BackupManager = Depends(get_backup_manager)
) -> MessageResponse:
    """Describe all available backups as text."""
    return MessageResponse(message=await backup_manager.list_all_backups())


@router.post("/restore", response_model=MessageResponse)
async def restore_backup(
    request: RestoreRequest,
    backup_manager: BackupManager = Depends(get_backup_manager)
) -> MessageResponse:
    """Restore the backup at a 1-based catalog index, or list backups when no index is given."""
    message = await backup_manager.perform_restore(request.index, request.tables)
    return MessageResponse(message=message)


@router.delete("/{timestamp}", response_model=MessageResponse)
async def delete_backup(
    timestamp: str,
    backup_manager: BackupManager = Depends(get_backup_manager)
) -> MessageResponse:
    """Delete every file of one backup."""
    deleted = await backup_manager.delete_backup(timestamp)

    if not deleted:
        raise BackupNotFoundError(timestamp)

    logger.info(f"Backup {timestamp} deleted via API")
    return MessageResponse(message=f"Backup deleted: {timestamp}")
