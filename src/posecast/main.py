"""
PoseCast Client Main Application
================================

FastAPI entry point that runs the streaming client and exposes its status.

The client streams color/depth envelopes to the telemetry server and places
anchors from server-pushed positions. The HTTP surface is for probes and
debugging only; it does not control streaming.

Endpoints:
    GET  /          - Service information
    GET  /health    - Liveness probe (is process alive?)
    GET  /ready     - Readiness probe (session connected?)
    GET  /metrics   - Component metrics
    GET  /anchors   - Tracked anchors
"""

import logging
import os
import signal
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from posecast.client import StreamingClient, build_client
from posecast.config import settings


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_client: Optional[StreamingClient] = None
_startup_time: float = 0.0


def get_client() -> Optional[StreamingClient]:
    return _client


# =============================================================================
# Signal Handlers
# =============================================================================

def _handle_sigterm(signum, frame):
    """Log SIGTERM; uvicorn drives the actual shutdown through lifespan."""
    logger.info("Received SIGTERM, initiating graceful shutdown...")


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _client, _startup_time

    signal.signal(signal.SIGTERM, _handle_sigterm)

    _startup_time = time.time()
    logger.info(f"Starting {settings.client.name} {settings.client.version}")
    logger.info(f"Telemetry server: {settings.connection.url}")
    logger.info(
        f"Send interval: {settings.capture.send_interval_seconds}s, "
        f"min anchor separation: {settings.anchors.min_separation}"
    )

    _client = build_client(settings)
    await _client.start()

    yield

    logger.info("Shutting down gracefully...")
    if _client:
        await _client.stop()
    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="PoseCast Client",
    description="Color/depth + pose telemetry streaming client",
    version=settings.client.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "PoseCast Client",
        "version": settings.client.version,
        "name": settings.client.name,
        "server_url": settings.connection.url,
        "frame_source": settings.capture.source,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness probe - is the session connected?

    Returns 200 while the session is CONNECTED, 503 otherwise.
    """
    client = get_client()
    session_state = client.session.state.value if client else "UNINITIALIZED"
    connected = client.session.connected if client else False

    if connected:
        return JSONResponse({
            "status": "ready",
            "session_state": session_state,
        })
    return JSONResponse(
        {
            "status": "not_ready",
            "session_state": session_state,
        },
        status_code=503,
    )


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    client = get_client()
    if client is None:
        return JSONResponse({"error": "Client not initialized"}, status_code=503)

    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        **client.status(),
    })


@app.get("/anchors")
async def anchors() -> JSONResponse:
    """Currently tracked anchors."""
    client = get_client()
    if client is None:
        return JSONResponse({"error": "Client not initialized"}, status_code=503)

    return JSONResponse({
        "min_separation": client.registry.min_separation,
        "anchors": client.registry.to_list(),
    })


# =============================================================================
# Main Entry Point
# =============================================================================

def run() -> None:
    """Console entry point."""
    import uvicorn

    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "posecast.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    run()
