"""Periodic and on-demand backup triggering."""

import asyncio
from typing import List, Optional

from ..config import BackupConfig
from .._utils import logger
from .manager import BackupManager


class BackupScheduler:
    """Own the periodic backup task.

    Must be constructed inside a running event loop: when automatic backups
    are enabled the timer starts immediately. ``dispose`` has to be called on
    shutdown to cancel it.
    """

    def __init__(self, manager: BackupManager, config: Optional[BackupConfig] = None):
        self.manager = manager
        self.config = config or manager.config
        self._task: Optional[asyncio.Task] = None

        if self.config.auto_backup and self.config.interval > 0:
            self.start()

    @property
    def interval_seconds(self) -> float:
        return self.config.interval * 3600

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start (or restart) the periodic backup task."""
        self.dispose()
        logger.info(f"Scheduled backups enabled, interval: {self.config.interval} hours")
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            logger.info("Starting scheduled backup...")
            await self.trigger()

    async def trigger(self, tables: Optional[List[str]] = None) -> str:
        """Run backup followed by retention now; never raises."""
        try:
            return await self.manager.perform_backup(tables)
        except Exception as e:
            message = f"Scheduled backup failed: {e}"
            logger.error(message)
            return message

    def dispose(self) -> None:
        """Cancel the periodic task; safe to call repeatedly."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.debug("Backup timer cancelled")

    async def stop(self) -> None:
        """Cancel the periodic task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Stopped scheduled backups")
