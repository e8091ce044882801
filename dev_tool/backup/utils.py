"""Utility functions for backup/restore operations."""

import re
from datetime import datetime, timedelta
from pathlib import Path
from typing import AbstractSet, Any, Optional, Tuple, Union

from .._utils import load_json, logger, write_json

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
FILE_PREFIX = "backup_"

TIMESTAMP_PATTERN = re.compile(r"^\d{8}_\d{6}$")
SINGLE_FILE_PATTERN = re.compile(r"^backup_(\d{8}_\d{6})\.json$")
MULTI_FILE_PATTERN = re.compile(r"^backup_(\d{8}_\d{6})_(.+)\.json$")


def generate_timestamp(now: Optional[datetime] = None) -> str:
    """Generate a sortable local-time backup timestamp.

    Returns:
        Timestamp in format: YYYYMMDD_HHMMSS
    """
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(timestamp: str) -> datetime:
    """Parse a backup timestamp into a naive local datetime.

    Raises:
        ValueError: If the timestamp is not in YYYYMMDD_HHMMSS form
    """
    if not TIMESTAMP_PATTERN.match(timestamp or ""):
        raise ValueError(f"Malformed backup timestamp: {timestamp!r}")
    return datetime.strptime(timestamp, TIMESTAMP_FORMAT)


def format_timestamp(timestamp: str) -> Tuple[str, str]:
    """Split a backup timestamp into human readable date and time strings.

    Args:
        timestamp: Timestamp in YYYYMMDD_HHMMSS form

    Returns:
        Tuple of ("YYYY-MM-DD", "HH:MM:SS")
    """
    if not TIMESTAMP_PATTERN.match(timestamp or ""):
        raise ValueError(f"Malformed backup timestamp: {timestamp!r}")
    date = f"{timestamp[0:4]}-{timestamp[4:6]}-{timestamp[6:8]}"
    time = f"{timestamp[9:11]}:{timestamp[11:13]}:{timestamp[13:15]}"
    return date, time


def single_file_name(timestamp: str) -> str:
    return f"{FILE_PREFIX}{timestamp}.json"


def multi_file_name(timestamp: str, table: str) -> str:
    return f"{FILE_PREFIX}{timestamp}_{table}.json"


def match_backup_file(file_name: str) -> Optional[Tuple[str, Optional[str]]]:
    """Classify a file name as a backup artifact member.

    Returns:
        (timestamp, None) for single-file artifacts, (timestamp, table) for
        multi-file members, or None for anything else
    """
    match = SINGLE_FILE_PATTERN.match(file_name)
    if match:
        return match.group(1), None
    match = MULTI_FILE_PATTERN.match(file_name)
    if match:
        return match.group(1), match.group(2)
    return None


def ensure_dir(dir_path: Union[str, Path]) -> Path:
    """Create the backup directory (and parents) if it does not exist."""
    path = Path(dir_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def reserve_timestamp(
    backup_dir: Path,
    now: Optional[datetime] = None,
    in_flight: AbstractSet[str] = frozenset(),
) -> str:
    """Return a timestamp no existing or running artifact uses.

    Two runs started within the same second would otherwise write the same
    file names; the later one moves forward a second at a time. Runs that
    have not written their files yet are passed in as ``in_flight``.
    """
    moment = now or datetime.now()
    timestamp = generate_timestamp(moment)
    while timestamp in in_flight or any(backup_dir.glob(f"{FILE_PREFIX}{timestamp}.json")) or \
            any(backup_dir.glob(f"{FILE_PREFIX}{timestamp}_*.json")):
        logger.debug(f"Backup timestamp {timestamp} already in use")
        moment += timedelta(seconds=1)
        timestamp = generate_timestamp(moment)
    return timestamp


async def save_backup_file(data: Any, output_path: Path) -> None:
    """Serialize rows (dates as ISO strings) to a backup file."""
    write_json(data, output_path)
    logger.debug(f"Backup file saved: {output_path}")


async def load_backup_file(file_path: Path) -> Any:
    """Load a backup file, reviving ISO date strings into datetimes."""
    data = load_json(file_path)
    logger.debug(f"Backup file loaded: {file_path}")
    return data
