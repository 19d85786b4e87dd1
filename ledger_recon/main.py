"""Ledger Reconciliation Backend - FastAPI Application."""

import time
import traceback
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ledger_recon import __version__
from ledger_recon.config import settings
from ledger_recon.database import init_db
from ledger_recon.deps import DbSession
from ledger_recon.logger import configure_logging, get_logger
from ledger_recon.routers import reconciliation

# Initialize logging early
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - init DB on startup."""
    await init_db()
    logger.info("Application started", version=__version__, environment=settings.environment)
    yield
    logger.info("Application shutting down")


app = FastAPI(
    title="Ledger Reconciliation API",
    description="Matches internal ledger entries against external transaction records",
    version=__version__,
    lifespan=lifespan,
)


@app.middleware("http")
async def logging_middleware(request: Request, call_next: Any) -> Response:
    """Middleware to inject Request-ID and log request details."""
    request_id = request.headers.get("X-Request-ID", str(uuid4()))

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    start_time = time.perf_counter()
    try:
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        logger.info(
            "HTTP Request",
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )

        response.headers["X-Request-ID"] = request_id
        return response
    except Exception as exc:
        duration = time.perf_counter() - start_time
        logger.exception(
            "HTTP Request Failed",
            duration_ms=round(duration * 1000, 2),
            error=str(exc),
        )
        raise


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler to ensure JSON response."""
    # Only show exception details in DEBUG mode
    if settings.debug:
        detail = str(exc)
        trace = traceback.format_exc()
    else:
        detail = "An internal server error occurred. Please try again later."
        trace = None

    return JSONResponse(
        status_code=500,
        content={
            "detail": detail,
            "trace": trace,
            "request_id": structlog.contextvars.get_contextvars().get("request_id"),
        },
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "X-Request-ID"],
)

app.include_router(reconciliation.router)


@app.get("/health")
async def health_check(db: DbSession) -> Response:
    """Return 200 when the override database answers, 503 otherwise."""
    try:
        await db.execute(text("SELECT 1"))
        database_ok = True
    except SQLAlchemyError as e:
        logger.error(
            "Health check: database unavailable",
            error=str(e),
            error_type=type(e).__name__,
        )
        database_ok = False

    return JSONResponse(
        status_code=200 if database_ok else 503,
        content={
            "status": "healthy" if database_ok else "unhealthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": {"database": database_ok},
            "version": __version__,
        },
    )
