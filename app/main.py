"""
strideOS FastAPI application entrypoint.

``create_application`` wires logging, the lifespan hooks, middleware
(CORS and slowapi rate limiting), the domain exception handlers, the v1 API
and a health check that also pings the database.
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.api.v1.auth import limiter
from app.api.v1.router import api_router
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.db.session import engine

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    logger.info(
        "Starting %s v%s (document sync at %s)",
        settings.APP_NAME,
        settings.APP_VERSION,
        settings.COLLAB_SYNC_URL,
    )
    yield
    logger.info("Shutting down %s", settings.APP_NAME)
    await engine.dispose()


def _add_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Routes opt in with @limiter.limit; the login route is the only one today
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]


async def health_check() -> JSONResponse:
    """Liveness plus a ``SELECT 1`` against the database; 503 when it is unreachable."""
    database = "ok"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Health check: database unavailable: %s", exc)
        database = "unavailable"

    healthy = database == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ok" if healthy else "degraded",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "database": database,
        },
    )


def create_application() -> FastAPI:
    logging.basicConfig(level=settings.LOG_LEVEL, format=LOG_FORMAT)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=(
            "Project management API for agencies: clients, departments, projects, "
            "sprint planning, kanban boards, collaborative documents and "
            "real-time notifications."
        ),
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    _add_middleware(app)
    register_exception_handlers(app)

    app.include_router(api_router, prefix=settings.API_V1_STR)
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"], include_in_schema=False)
    return app


app = create_application()
