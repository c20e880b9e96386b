from fastapi import APIRouter

from app.models.character import Stats
from app.services.stats import stats_service

router = APIRouter(prefix="/api", tags=["stats"])


@router.get("/stats", response_model=Stats)
async def get_stats() -> Stats:
    """Character counts per race and gender, total votes and the leading race/bloodline."""
    return await stats_service.summary()
