"""FastAPI application — sample ingestion, session lifecycle, and health.

This module wires together all infrastructure:
- CORS, request logging and error-handling middleware
- Session store, intensity engine and alert classifier
- Latest-reading cache
- Downstream stream pipeline with alert notifications
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from workout_monitor import __version__
from workout_monitor.api.middleware import setup_middleware
from workout_monitor.api.routes.data import router as data_router
from workout_monitor.api.routes.sessions import router as sessions_router
from workout_monitor.config import get_settings
from workout_monitor.monitors.intensity import IntensityEngine
from workout_monitor.notifications.handlers import create_dispatcher
from workout_monitor.profiles import ProfileDirectory, create_profile_directory
from workout_monitor.sessions.store import SessionStore
from workout_monitor.storage.latest import LatestReadingCache
from workout_monitor.streaming.pipeline import StreamPipeline

logger = structlog.get_logger(__name__)

# ── Shared state (initialised in lifespan) ────────────────────

_profiles: ProfileDirectory | None = None
_sessions: SessionStore | None = None
_engine: IntensityEngine | None = None
_latest: LatestReadingCache | None = None
_pipeline: StreamPipeline | None = None
_pipeline_task: asyncio.Task | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hooks."""
    global _profiles, _sessions, _engine, _latest, _pipeline, _pipeline_task

    settings = get_settings()

    # 1. Session state + scoring
    _profiles = create_profile_directory(settings)
    _sessions = SessionStore(_profiles)
    _engine = IntensityEngine(_sessions)
    _latest = LatestReadingCache()

    # 2. Downstream forwarding
    dispatcher = create_dispatcher(settings)
    _pipeline = StreamPipeline(maxsize=settings.pipeline_maxsize)
    _pipeline.add_consumer(dispatcher.dispatch)
    _pipeline_task = asyncio.create_task(_pipeline.start())

    logger.info("server.started", port=settings.api_port, notifiers=dispatcher.handler_names)

    yield  # ← application runs

    # Shutdown
    if _pipeline:
        await _pipeline.stop()
    if _pipeline_task:
        _pipeline_task.cancel()
    if _profiles is not None:
        await _profiles.aclose()
    logger.info("server.stopped")


app = FastAPI(
    title="Workout Monitor API",
    description="Real-time exercise intensity and safety alerts from wearable sensor streams.",
    version=__version__,
    lifespan=lifespan,
)

# ── Middleware ────────────────────────────────────────────────
setup_middleware(app)

# ── Routers ───────────────────────────────────────────────────
app.include_router(data_router)
app.include_router(sessions_router)


# ── Health ────────────────────────────────────────────────────

@app.get("/health", tags=["system"])
async def health():
    return {
        "status": "ok",
        "pipeline": _pipeline.stats() if _pipeline else None,
        "active_sessions": _sessions.active_count if _sessions else 0,
    }
