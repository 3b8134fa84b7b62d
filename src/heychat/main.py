# src/heychat/main.py
"""Main entry point for the HeyChat relay."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from heychat.api.v1 import (
    admin_router,
    chats_router,
    contacts_router,
    realtime_router,
    reports_router,
    users_router,
)
from heychat.core.settings import settings
from heychat.db.session import SessionLocal, create_tables
from heychat.realtime import RealtimeHub, SqlChatStore

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="HeyChat Relay",
    description="Real-time 1-to-1 messaging with presence and read receipts",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(chats_router, prefix="/api/v1")
app.include_router(contacts_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(reports_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(realtime_router)

# One presence directory per process; tests swap the hub for their own.
app.state.hub = RealtimeHub(SqlChatStore(SessionLocal))


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    create_tables()
    logger.info("%s %s starting", settings.app_name, settings.app_version)


@app.get("/health")
async def health_check() -> dict[str, object]:
    """Health check endpoint to verify the service is running."""
    hub: RealtimeHub = app.state.hub
    return {"status": "ok", "online": len(hub.presence)}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "realtime": "/ws",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("heychat.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
