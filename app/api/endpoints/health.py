from fastapi import APIRouter, Response

from app.services.presence import presence_tracker
from app.services.redis_service import redis_service

router = APIRouter(tags=["health"])


@router.get("/health", summary="Simple readiness probe")
async def health_check(response: Response) -> dict:
    store_ok = await redis_service.ping()
    if not store_ok:
        response.status_code = 503
    return {
        "status": "ok" if store_ok else "degraded",
        "redis": "ok" if store_ok else "unavailable",
        "online_users": presence_tracker.online_users,
    }
