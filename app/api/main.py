from fastapi import APIRouter

from .endpoints.characters import router as characters_router
from .endpoints.health import router as health_router
from .endpoints.presence import router as presence_router
from .endpoints.reports import router as reports_router
from .endpoints.stats import router as stats_router

api_router = APIRouter()


@api_router.get("/")
async def root():
    return {"message": "New Eden Faces API is running"}


api_router.include_router(health_router)
api_router.include_router(characters_router)
api_router.include_router(reports_router)
api_router.include_router(stats_router)
api_router.include_router(presence_router)
