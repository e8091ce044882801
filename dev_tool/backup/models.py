"""Data models for backup/restore operations."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from .utils import parse_timestamp


class BackupMode(str, Enum):
    """On-disk layout of a backup artifact."""
    SINGLE_FILE = "single"
    MULTI_FILE = "multi"


class BackupResult(BaseModel):
    """Outcome of one backup run."""

    timestamp: str = Field(..., description="Artifact timestamp (YYYYMMDD_HHMMSS)")
    mode: BackupMode
    tables: List[str] = Field(default_factory=list, description="Tables the run attempted")
    succeeded: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
    files: List[str] = Field(default_factory=list, description="File names written")

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def attempted_count(self) -> int:
        return len(self.tables)


class BackupEntry(BaseModel):
    """One artifact as seen by the catalog."""

    timestamp: str
    tables: Optional[List[str]] = None  # None for single-file artifacts

    @property
    def created_at(self) -> datetime:
        return parse_timestamp(self.timestamp)
