"""Deletion of backup artifacts beyond the retention count."""

from pathlib import Path
from typing import Dict, List

from .._utils import logger
from .utils import FILE_PREFIX, match_backup_file


async def cleanup_old_backups(backup_dir: Path, keep: int) -> List[str]:
    """Delete every artifact older than the ``keep`` most recent ones.

    Files are grouped by timestamp first, so a multi-file artifact is kept or
    deleted as a whole regardless of how many tables it holds.

    Args:
        backup_dir: Directory holding backup files
        keep: Number of artifacts to keep; 0 or less keeps everything

    Returns:
        Names of deleted files
    """
    if keep <= 0:
        return []

    try:
        names = [p.name for p in Path(backup_dir).iterdir() if p.name.startswith(FILE_PREFIX)]
    except OSError as e:
        logger.error(f"Failed to clean up old backups: {e}")
        return []

    artifacts: Dict[str, List[str]] = {}
    for name in names:
        parsed = match_backup_file(name)
        if parsed is None:
            logger.debug(f"Ignoring unrecognised file in backup directory: {name}")
            continue
        artifacts.setdefault(parsed[0], []).append(name)

    expired = sorted(artifacts, reverse=True)[keep:]
    deleted = []
    for timestamp in expired:
        for name in sorted(artifacts[timestamp]):
            try:
                (Path(backup_dir) / name).unlink()
            except OSError as e:
                logger.error(f"Failed to delete old backup {name}: {e}")
                continue
            deleted.append(name)
            logger.info(f"Deleted old backup: {name}")
    return deleted
