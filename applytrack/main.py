"""FastAPI entry point for the application tracker."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from applytrack.config import settings
from applytrack.db import close as close_db
from applytrack.db import get_connection, ping
from applytrack.errors import (
    DuplicateError,
    NotFoundError,
    StorageUnavailableError,
    TrackerError,
    ValidationError,
)
from applytrack.routers import applications

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[TrackerError], int] = {
    DuplicateError: 409,
    NotFoundError: 404,
    ValidationError: 422,
    StorageUnavailableError: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Applytrack on %s:%d", settings.host, settings.port)
    get_connection()

    yield

    close_db()
    logger.info("Applytrack stopped")


app = FastAPI(
    title="Applytrack",
    description="Job application lifecycle tracking",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # identity comes from a trusted proxy header
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(applications.router)


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    status_code = STATUS_CODES.get(type(exc), 400)
    if status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.kind)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.kind, "detail": exc.message},
    )


@app.get("/health")
async def health() -> dict:
    db_connected = ping()
    return {
        "status": "ok" if db_connected else "degraded",
        "db_connected": db_connected,
        "identity_header": settings.user_header,
    }


if __name__ == "__main__":
    uvicorn.run(
        "applytrack.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
    )
