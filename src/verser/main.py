# src/verser/main.py
"""Main entry point for the Verser application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from verser.api.v1 import (
    communities_router,
    conversations_router,
    realtime_router,
    users_router,
)
from verser.api.v1.dependencies import get_relay_hub
from verser.core.settings import settings

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Verser API",
    description="Social network backend with realtime presence and communities",
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
app.include_router(communities_router, prefix="/api/v1")
app.include_router(conversations_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(realtime_router)


@app.on_event("startup")
async def on_startup() -> None:
    hub = get_relay_hub()
    await hub.start()
    app.state.relay_hub = hub
    logger.info("Relay heartbeat every %.1fs", hub.heartbeat_interval)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    hub = getattr(app.state, "relay_hub", None)
    if hub:
        await hub.stop()

@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}

@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Verser API",
        "version": settings.app_version,
        "description": "Social network backend with realtime presence and communities",
        "websocket": "/ws",
        "docs": "/docs",
        "redoc": "/redoc"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("verser.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
