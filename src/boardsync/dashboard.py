"""Board API server: JSON endpoints a board front end renders from.

A module-level ``_session`` is set at startup (or by test fixtures) and
injected into handlers via ``Depends(_get_session)``. The app lifespan
starts the session's polling and tears down its timers on shutdown.

Usage:
    boardsync dashboard                    # Serves http://localhost:8377
    boardsync dashboard --port 9000        # Custom port
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from boardsync.core import find_boardsync_root, read_config
from boardsync.session import BoardSession

DEFAULT_PORT = 8377

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level state: set by main() or test fixtures
# ---------------------------------------------------------------------------

_session: BoardSession | None = None


def _get_session() -> BoardSession:
    if _session is None:
        from fastapi import HTTPException

        raise HTTPException(status_code=503, detail="Board session not initialized")
    return _session


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(*, start_polling: bool = True) -> Any:
    """Create the FastAPI application with all board endpoints under ``/api``.

    When *start_polling* is true the lifespan activates the session's sync
    scheduler on startup; the session is always closed on shutdown.
    """
    from boardsync.dashboard_routes.board import create_router

    @contextlib.asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        session = _session
        if session is not None and start_polling:
            session.start()
        try:
            yield
        finally:
            if session is not None:
                await session.aclose()

    app = FastAPI(title="boardsync", docs_url=None, redoc_url=None, lifespan=_lifespan)
    app.include_router(create_router(), prefix="/api")

    @app.get("/api/health")
    async def api_health() -> JSONResponse:
        if _session is None:
            return JSONResponse({"status": "starting"}, status_code=503)
        return JSONResponse(
            {
                "status": "ok",
                "issues": len(_session.store.issues),
                "pending_mutations": _session.engine.pending,
                "polling": _session.scheduler.active and _session.scheduler.enabled,
            }
        )

    return app


def main(port: int = DEFAULT_PORT, *, host: str = "127.0.0.1") -> None:
    """Start the board API server for the project in the current directory."""
    import uvicorn

    global _session

    boardsync_dir = find_boardsync_root()
    config = read_config(boardsync_dir)
    _session = BoardSession.from_config(config)
    logger.info("Board API starting on %s:%d as %s", host, port, _session.auth.user.name)

    app = create_app()
    print(f"boardsync board API: http://{host}:{port}/api/board")
    uvicorn.run(app, host=host, port=port, log_level="warning")
