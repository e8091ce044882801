"""Health check endpoints."""

from fastapi import APIRouter, Depends, Request
from typing import Dict

from ..models import HealthStatus
from ..dependencies import get_storage
from dev_tool.base import BaseTableStorage

router = APIRouter(prefix="/health", tags=["health"])


async def check_storage(storage: BaseTableStorage) -> bool:
    """Check that the table storage answers a stats call."""
    try:
        await storage.stats()
        return True
    except Exception:
        return False


@router.get("", response_model=HealthStatus)
async def health_check(
    request: Request,
    storage: BaseTableStorage = Depends(get_storage)
) -> HealthStatus:
    """Health of the storage backend and the backup timer."""
    storage_ok = await check_storage(storage)
    scheduler = getattr(request.app.state, "scheduler", None)

    return HealthStatus(
        status="healthy" if storage_ok else "unhealthy",
        storage=storage_ok,
        scheduler_running=bool(scheduler and scheduler.is_running)
    )


@router.get("/live")
async def liveness_probe() -> Dict[str, str]:
    """Kubernetes liveness probe."""
    return {"status": "alive"}
