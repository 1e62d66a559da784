"""
Investor Forms Service: application entry-point.

Initializes the FastAPI application, registers middleware, exception handlers
and routers, and manages the shared ``httpx.AsyncClient`` used for every call
to the remote investor API.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from investor_forms.api.v1.api import api_router
from investor_forms.core.config import settings
from investor_forms.core.exceptions import add_exception_handlers
from investor_forms.core.logging import setup_logging
from investor_forms.core.sessions import form_sessions
from investor_forms.middleware import RequestIDMiddleware, RequestTimingMiddleware

setup_logging()
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


# ────────────────────────────────────────────────────────────────────────────
# Application lifespan
# ────────────────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: open one pooled HTTP client for the remote investor API.

    Shutdown: close it and drop every open form session.  In-flight remote
    calls are not awaited; their results land on discarded forms.
    """
    app.state.http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)
    logger.info(
        "Remote investor API at %s (timeout %.1fs)",
        settings.INVESTOR_API_BASE_URL,
        settings.HTTP_TIMEOUT,
    )

    yield

    logger.info("Shutting down: closing HTTP client, dropping %d form sessions", len(form_sessions))
    await app.state.http_client.aclose()
    form_sessions.clear()


# ────────────────────────────────────────────────────────────────────────────
# FastAPI application instance
# ────────────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=VERSION,
    description=(
        "Form sessions for creating and updating investor profiles: draft "
        "editing, image upload, and submission to the investor API."
    ),
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)


# ── Middleware (last added = outermost) ──
app.add_middleware(RequestTimingMiddleware)

# Wraps the timing middleware so its log line still sees the request ID
app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Global error handlers ──
add_exception_handlers(app)

# ── API routers ──
app.include_router(api_router, prefix=settings.API_V1_STR)


# ── Health check ──


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness check with form-session statistics."""
    expired = form_sessions.purge_expired()
    return {
        "status": "ok",
        "version": VERSION,
        "remote_api": settings.INVESTOR_API_BASE_URL,
        "sessions": {**form_sessions.get_stats(), "purged_now": expired},
    }
