"""Custom exceptions for FastAPI application."""

from fastapi import HTTPException
from starlette.status import (
    HTTP_404_NOT_FOUND,
    HTTP_503_SERVICE_UNAVAILABLE,
)


class DevToolError(HTTPException):
    """Base exception for dev-tool API errors."""
    pass


class TableNotFoundHTTPError(DevToolError):
    def __init__(self, table: str):
        super().__init__(HTTP_404_NOT_FOUND, f"Table {table} not found")


class BackupNotFoundError(DevToolError):
    def __init__(self, timestamp: str):
        super().__init__(HTTP_404_NOT_FOUND, f"Backup not found: {timestamp}")


class StorageUnavailableError(DevToolError):
    def __init__(self, backend: str):
        super().__init__(HTTP_503_SERVICE_UNAVAILABLE, f"{backend} backend temporarily unavailable")
