"""Database tool endpoints."""

import json
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Any, Dict, Optional

from ..models import MessageResponse, UpdateRequest
from ..dependencies import get_storage
from ..exceptions import TableNotFoundHTTPError
from dev_tool import DbService
from dev_tool.base import BaseTableStorage

router = APIRouter(prefix="/db", tags=["database"])


def get_db_service(storage: BaseTableStorage = Depends(get_storage)) -> DbService:
    """Dependency to get DbService instance."""
    return DbService(storage)


def parse_filter(filter: Optional[str]) -> Dict[str, Any]:
    """Parse a JSON filter passed as a query parameter."""
    if not filter:
        return {}
    try:
        parsed = json.loads(filter)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Invalid filter JSON: {e}")
    if not isinstance(parsed, dict):
        raise HTTPException(status_code=400, detail="Filter must be a JSON object")
    return parsed


async def require_table(db: DbService, table: str) -> str:
    valid = await db.validate_table(table)
    if not valid:
        raise TableNotFoundHTTPError(table)
    return valid


@router.get("/tables", response_model=MessageResponse)
async def list_tables(
    page: Optional[str] = None,
    db: DbService = Depends(get_db_service)
) -> MessageResponse:
    """Overview of all tables and row counts; page="all" lists everything."""
    return MessageResponse(message=await db.list_tables(page))


@router.get("/tables/{table}", response_model=MessageResponse)
async def query_table(
    table: str,
    filter: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    db: DbService = Depends(get_db_service)
) -> MessageResponse:
    """Query rows of a table as a text table."""
    query = parse_filter(filter)
    valid = await require_table(db, table)
    return MessageResponse(message=await db.query(valid, query, page))


@router.get("/tables/{table}/count", response_model=MessageResponse)
async def count_rows(
    table: str,
    filter: Optional[str] = None,
    db: DbService = Depends(get_db_service)
) -> MessageResponse:
    """Count matching rows of a table."""
    query = parse_filter(filter)
    valid = await require_table(db, table)
    return MessageResponse(message=await db.count(valid, query))


@router.post("/tables/{table}/update", response_model=MessageResponse)
async def update_rows(
    table: str,
    request: UpdateRequest,
    db: DbService = Depends(get_db_service)
) -> MessageResponse:
    """Update rows with set, create or upsert semantics."""
    valid = await require_table(db, table)
    message = await db.update(valid, request.data, request.mode.value, request.query, request.keys)
    return MessageResponse(message=message)


@router.delete("/tables/{table}/rows", response_model=MessageResponse)
async def delete_rows(
    table: str,
    filter: Optional[str] = None,
    db: DbService = Depends(get_db_service)
) -> MessageResponse:
    """Delete matching rows; without a filter the table is cleared."""
    query = parse_filter(filter)
    valid = await require_table(db, table)
    return MessageResponse(message=await db.delete(valid, query))


@router.delete("/tables/{table}", response_model=MessageResponse)
async def drop_table(
    table: str,
    db: DbService = Depends(get_db_service)
) -> MessageResponse:
    """Drop one table."""
    valid = await require_table(db, table)
    return MessageResponse(message=await db.drop(valid))


@router.delete("/tables", response_model=MessageResponse)
async def drop_all_tables(
    all: bool = False,
    db: DbService = Depends(get_db_service)
) -> MessageResponse:
    """Drop every table; requires all=true."""
    if not all:
        raise HTTPException(status_code=400, detail="Refusing to drop all tables without all=true")
    return MessageResponse(message=await db.drop(drop_all=True))
