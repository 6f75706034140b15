"""FastAPI application for the ToneMeter family messaging backend.

Provides REST API endpoints wrapping the tonemeter package for:
- Pre-flight tone analysis with a daily per-user quota
- Moderated message creation, listing, and read receipts
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tonemeter import __version__
from tonemeter.logging import configure_logging
from web.backend.app.dependencies import get_settings
from web.backend.app.routers import ai_coach, messages

configure_logging(get_settings().log_level)

app = FastAPI(
    title="ToneMeter API",
    description=(
        "REST API for co-parenting family messaging. "
        "Parent messages pass through tone moderation before delivery."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for development)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(ai_coach.router)
app.include_router(messages.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "ToneMeter API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
