"""Backup and restore of table storage."""

from .manager import BackupManager
from .scheduler import BackupScheduler
from .models import BackupEntry, BackupMode, BackupResult

__all__ = ["BackupManager", "BackupScheduler", "BackupEntry", "BackupMode", "BackupResult"]
