from contextlib import asynccontextmanager

import redis.asyncio as redis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from app.api.main import api_router
from app.core.constants import MSG_STORE_UNAVAILABLE
from app.core.exceptions import FacesError
from app.services.redis_service import redis_service
from app.services.registry.service import registry_service

from .config import settings
from .version import __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events (startup/shutdown).
    """
    if await redis_service.ping():
        logger.info(f"Connected to Redis at {settings.REDIS_URL}")
    else:
        # Keep serving; store-backed endpoints answer 503 until Redis is back
        logger.error(f"Could not connect to Redis at {settings.REDIS_URL}. Is redis-server running?")
    yield
    try:
        await registry_service.close()
        logger.info("Registry HTTP client closed")
    except Exception as exc:
        logger.warning(f"Failed to close registry HTTP client: {exc}")
    await redis_service.close()


app = FastAPI(
    title=settings.APP_NAME,
    description="Vote for the best looking characters of New Eden",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if settings.APP_ENV != "development" else "/docs",
    redoc_url=None if settings.APP_ENV != "development" else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FacesError)
async def faces_error_handler(request: Request, exc: FacesError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(redis.RedisError)
@app.exception_handler(OSError)
async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Store failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"message": MSG_STORE_UNAVAILABLE})


app.include_router(api_router)
