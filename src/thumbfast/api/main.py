"""Thumbfast — FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, all REST API routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
- **Image generation** is performed by
  :class:`~thumbfast.core.orchestrator.GenerationOrchestrator`, which fans a
  request out to the Gemini API as independent parallel calls.
- **History** lives in a SQLite database managed by
  :class:`~thumbfast.core.history_store.HistoryStore` (capped, oldest-first
  eviction).
- **Usage stats** live in a single JSON record managed by
  :class:`~thumbfast.core.stats_tracker.StatsTracker`.
- All three are created in :func:`lifespan` and stored on ``app.state``;
  route handlers read them from there rather than from module globals.

``POST /api/generate`` only generates.  The browser forwards successful
results to ``POST /api/history`` and ``POST /api/stats/track`` itself, so
that it decides what counts as a completed generation.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/api/config``               Modes, layouts, models
POST      ``/api/generate``             Generate image variants
POST      ``/api/prompt/compile``       Preview the composed prompt
GET       ``/api/history``              All history entries, newest first
POST      ``/api/history``              Add a history entry
DELETE    ``/api/history``              Clear history
GET       ``/api/history/{id}``         Single history entry
DELETE    ``/api/history/{id}``         Delete a history entry
GET       ``/api/stats``                Usage stats
POST      ``/api/stats/track``          Record a completed generation
POST      ``/api/stats/reset``          Reset usage stats
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    thumbfast

Direct invocation::

    python -m thumbfast.api.main
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from thumbfast import __version__
from thumbfast.api.models import (
    GenerateRequest,
    GenerateResponse,
    GeneratedImageModel,
    HistoryEntryModel,
    TrackRequest,
    UsageStatsModel,
)
from thumbfast.core.catalog import DEFAULT_MODEL_ID, LAYOUT_OPTIONS, MODEL_OPTIONS, OUTPUT_MODES
from thumbfast.core.config import ThumbfastConfig, config
from thumbfast.core.errors import (
    AccessDeniedError,
    GenerationFailedError,
    HistoryStoreError,
    InvalidRequestError,
)
from thumbfast.core.gemini_client import GeminiImageClient
from thumbfast.core.history_store import HistoryStore
from thumbfast.core.orchestrator import GenerationOrchestrator
from thumbfast.core.prompt_composer import compose
from thumbfast.core.stats_tracker import StatsTracker

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Application lifecycle — client and store setup and teardown.
# ---------------------------------------------------------------------------


def init_state(app: FastAPI, settings: ThumbfastConfig, client: GeminiImageClient) -> None:
    """Attach the orchestrator and local stores to ``app.state``.

    Args:
        app: The FastAPI application instance.
        settings: Configuration providing storage paths and limits.
        client: Remote model client used by the orchestrator.
    """
    app.state.settings = settings
    app.state.client = client
    app.state.orchestrator = GenerationOrchestrator(client)
    app.state.history = HistoryStore(settings.history_db, settings.history_max_entries)
    app.state.stats = StatsTracker(settings.stats_file)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    On startup:
        Creates the Gemini client, the orchestrator, the history store and
        the stats tracker from the global configuration, unless a test has
        already populated ``app.state``.

    On shutdown:
        Closes the HTTP connection pool of the Gemini client.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    # --- Startup -----------------------------------------------------------
    if not hasattr(app.state, "orchestrator"):
        client = GeminiImageClient(
            config.gemini_api_key,
            base_url=config.gemini_base_url,
            timeout=config.request_timeout,
        )
        init_state(app, config, client)
    if not app.state.settings.access_password:
        logger.warning("THUMBFAST_ACCESS_PASSWORD is not set; generation is disabled.")
    logger.info("Thumbfast %s ready (history at %s).", __version__, app.state.settings.history_db)

    yield  # Application runs here.

    # --- Shutdown ----------------------------------------------------------
    await app.state.client.aclose()
    logger.info("Gemini client closed on shutdown.")


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Thumbfast",
    description="Thumbnail, icon and logo generation API backed by Gemini image models.",
    version=__version__,
    lifespan=lifespan,
)

# The browser client may be served from a different origin during
# development.  In production, restrict ``allow_origins``.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str) -> JSONResponse:
    """Build the ``{"error": message}`` body the browser client expects."""
    return JSONResponse(status_code=status_code, content={"error": message})


def _is_authorized(request: Request, password: str | None) -> bool:
    expected = request.app.state.settings.access_password
    if not expected or not password:
        return False
    return hmac.compare_digest(password.encode(), expected.encode())


def require_access_password(
    request: Request,
    x_access_password: str | None = Header(default=None),
) -> None:
    """Reject the request unless ``x-access-password`` matches the secret.

    Runs as a route dependency, so it is resolved before the request body
    is validated.

    Raises:
        AccessDeniedError: If the header is missing, wrong, or no secret
            is configured.
    """
    if not _is_authorized(request, x_access_password):
        raise AccessDeniedError("Unauthorized")


@app.exception_handler(AccessDeniedError)
async def access_denied_handler(request: Request, exc: AccessDeniedError) -> JSONResponse:
    return _error(401, str(exc))


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/api/config")
async def get_config() -> dict:
    """Return the fixed catalog for the frontend.

    Returns:
        Dictionary with keys ``version``, ``modes``, ``layouts``,
        ``models`` and ``default_model``.
    """
    return {
        "version": __version__,
        "modes": [
            {"id": m.id, "label": m.label, "description": m.description} for m in OUTPUT_MODES
        ],
        "layouts": [{"value": v, "label": label} for v, label in LAYOUT_OPTIONS.items()],
        "models": [
            {"id": m.id, "label": m.label, "cost": m.cost_per_image} for m in MODEL_OPTIONS
        ],
        "default_model": DEFAULT_MODEL_ID,
    }


@app.post(
    "/api/generate",
    response_model=GenerateResponse,
    dependencies=[Depends(require_access_password)],
)
async def generate_images(req: GenerateRequest, request: Request):
    """Generate up to four image variants for a prompt.

    This endpoint:

    1. Checks the ``x-access-password`` header against the configured secret
       (:func:`require_access_password`, before the body is validated).
    2. Rejects a blank prompt or an empty or unknown mode selection.
    3. Dispatches the clamped number of variants in parallel.
    4. Returns every image produced by the calls that succeeded.

    Args:
        req: Validated :class:`GenerateRequest` payload.
        request: The incoming request (for ``app.state``).

    Returns:
        :class:`GenerateResponse` with the images (possibly none) and the
        resolved model, or an ``{"error": ...}`` body with status 401, 400
        or 500.
    """
    # --- Generate ----------------------------------------------------------
    orchestrator: GenerationOrchestrator = request.app.state.orchestrator
    try:
        result = await orchestrator.generate(req.to_domain())
    except InvalidRequestError as e:
        return _error(400, str(e))
    except GenerationFailedError as e:
        logger.error("Generation failed: %s", e)
        return _error(500, str(e) or "Image generation failed")

    return GenerateResponse(
        images=[GeneratedImageModel.from_domain(img) for img in result.images],
        model=result.model_used,
    )


@app.post("/api/prompt/compile")
async def compile_prompt(req: GenerateRequest) -> dict:
    """Preview the composed instruction text without generating.

    Returns:
        Dictionary with a single ``compiled_prompt`` key.
    """
    return {"compiled_prompt": compose(req.to_domain())}


@app.get("/api/history", response_model=list[HistoryEntryModel])
async def list_history(request: Request):
    """Return all history entries, newest first.

    An unavailable history database yields an empty list.
    """
    history: HistoryStore = request.app.state.history
    return [HistoryEntryModel.from_domain(entry) for entry in history.get_all()]


@app.post("/api/history", response_model=HistoryEntryModel)
async def add_history(entry: HistoryEntryModel, request: Request):
    """Store a completed generation, evicting the oldest entries when full.

    Raises:
        HTTPException: 503 if the history database cannot be written.
    """
    history: HistoryStore = request.app.state.history
    try:
        history.add(entry.to_domain())
    except HistoryStoreError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return entry


@app.delete("/api/history")
async def clear_history(request: Request) -> dict:
    """Delete every history entry.

    Raises:
        HTTPException: 503 if the history database cannot be written.
    """
    history: HistoryStore = request.app.state.history
    try:
        history.clear()
    except HistoryStoreError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return {"success": True}


@app.get("/api/history/{entry_id}", response_model=HistoryEntryModel)
async def get_history_entry(entry_id: str, request: Request):
    """Return a single history entry.

    Raises:
        HTTPException: 404 if the entry is not found.
    """
    history: HistoryStore = request.app.state.history
    entry = history.get(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="History entry not found")
    return HistoryEntryModel.from_domain(entry)


@app.delete("/api/history/{entry_id}")
async def delete_history_entry(entry_id: str, request: Request) -> dict:
    """Delete a history entry.  Deleting an unknown id is not an error.

    Returns:
        Dictionary with ``success`` and ``deleted`` (whether a row existed).
    """
    history: HistoryStore = request.app.state.history
    try:
        deleted = history.remove(entry_id)
    except HistoryStoreError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return {"success": True, "deleted": deleted}


@app.get("/api/stats", response_model=UsageStatsModel)
async def get_stats(request: Request):
    """Return the usage counters."""
    stats: StatsTracker = request.app.state.stats
    return UsageStatsModel.from_domain(stats.stats)


@app.post("/api/stats/track", response_model=UsageStatsModel)
async def track_stats(req: TrackRequest, request: Request):
    """Record a completed generation of ``imageCount`` images."""
    stats: StatsTracker = request.app.state.stats
    return UsageStatsModel.from_domain(stats.track(req.image_count, req.model))


@app.post("/api/stats/reset", response_model=UsageStatsModel)
async def reset_stats(request: Request):
    """Reset all counters to zero."""
    stats: StatsTracker = request.app.state.stats
    return UsageStatsModel.from_domain(stats.reset())


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~thumbfast.core.config.config`
    (``THUMBFAST_SERVER_HOST``, ``THUMBFAST_SERVER_PORT``,
    ``THUMBFAST_LOG_LEVEL``).  Defaults to ``0.0.0.0:7860``.

    This function is registered as the ``thumbfast`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "thumbfast.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
