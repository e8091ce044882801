"""Backup layouts for backup/restore operations."""

from .base import BaseExporter
from .single_file import SingleFileExporter
from .multi_file import MultiFileExporter

__all__ = ["BaseExporter", "SingleFileExporter", "MultiFileExporter"]
