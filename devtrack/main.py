import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from devtrack.api.v1.router import api_router
from devtrack.core.config import settings
from devtrack.core.logging import configure_logging
from devtrack.db.session import dispose_engine, init_db
from devtrack.services.sync_registry import sync_registry
from devtrack.services.sync_service import UserNotFound

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting DevTrack API...")
    await init_db()
    logger.info("Database initialized")
    yield
    in_flight = sync_registry.in_flight()
    if in_flight:
        logger.warning("Shutting down with syncs in flight for users %s", in_flight)
    logger.info("Shutting down...")
    await dispose_engine()

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.exception_handler(UserNotFound)
async def user_not_found_handler(request: Request, exc: UserNotFound):
    # user deleted between the dependency lookup and the sync pass
    return JSONResponse(status_code=404, content={"detail": "User not found"})


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "version": settings.VERSION,
        "service": settings.PROJECT_NAME,
        "syncs_in_flight": len(sync_registry.in_flight()),
    }

@app.get("/")
async def root():
    return {
        "message": "DevTrack API",
        "docs": f"{settings.API_V1_STR}/docs",
        "version": settings.VERSION
    }
