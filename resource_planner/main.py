import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from loguru import logger

from resource_planner.api.allocations import router as allocations_router
from resource_planner.api.dependencies import load_directory
from resource_planner.config.settings import settings
from resource_planner.core.logger import setup_logger
from resource_planner.db.models import Base
from resource_planner.db.session import check_database_connection, get_engine


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Prepare logging, tables and the fallback client directory on startup.

    Note: FastAPI requires async for lifespan context manager,
    even if no await operations are used.
    """
    setup_logger(level=settings.log_level, log_file=settings.log_file, json_file=settings.log_json)

    check_database_connection()
    logger.info("Ensuring database tables exist")
    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables verified")

    load_directory()

    await asyncio.sleep(0)
    yield


app = FastAPI(title="Resource Planner", lifespan=lifespan)

app.include_router(allocations_router)

logger.info("FastAPI application initialized")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests."""
    logger.debug(f"Request: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
    return response
