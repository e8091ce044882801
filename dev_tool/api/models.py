"""Pydantic models for API requests and responses."""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any, Union
from enum import Enum
from datetime import datetime


class UpdateMode(str, Enum):
    SET = "set"
    CREATE = "create"
    UPSERT = "upsert"


class BackupRequest(BaseModel):
    tables: Optional[List[str]] = None


class RestoreRequest(BaseModel):
    index: Optional[Union[int, str]] = None
    tables: Optional[List[str]] = None

    @field_validator('tables')
    @classmethod
    def drop_blank_tables(cls, v):
        if v is None:
            return v
        tables = [t.strip() for t in v if t and t.strip()]
        return tables or None


class UpdateRequest(BaseModel):
    mode: UpdateMode = UpdateMode.SET
    data: Union[Dict[str, Any], List[Dict[str, Any]]]
    query: Optional[Dict[str, Any]] = None
    keys: Optional[List[str]] = None


class MessageResponse(BaseModel):
    message: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class HealthStatus(BaseModel):
    status: str  # "healthy", "unhealthy"
    storage: bool
    scheduler_running: bool
    timestamp: datetime = Field(default_factory=datetime.utcnow)
