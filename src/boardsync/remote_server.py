"""HTTP front for the in-memory remote store.

Serves the wire contract ``HttpRemote`` consumes:

    GET   /api/issues          -> list of issues
    PATCH /api/issues/{id}     -> patch echo, or 503 on an injected failure
    POST  /api/reset           -> restore the seed issue set

Usage:
    boardsync serve-remote --port 8378 --success-rate 0.9
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.requests import Request

from boardsync.dashboard_routes.common import _error_response, _parse_json_body
from boardsync.remote import FetchFailedError, InMemoryRemote, UpdateFailedError
from boardsync.validation import validate_patch

DEFAULT_REMOTE_PORT = 8378

logger = logging.getLogger(__name__)


def create_remote_app(remote: InMemoryRemote) -> Any:
    app = FastAPI(title="boardsync remote store", docs_url=None, redoc_url=None)

    @app.get("/api/issues")
    async def api_list_issues() -> JSONResponse:
        try:
            issues = await remote.fetch_all()
        except FetchFailedError as e:
            return _error_response(str(e), "FETCH_FAILED", 503)
        return JSONResponse([i.to_dict() for i in issues])

    @app.patch("/api/issues/{issue_id}")
    async def api_update_issue(issue_id: str, request: Request) -> JSONResponse:
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        patch, err = validate_patch(body)
        if err:
            return _error_response(err, "VALIDATION_ERROR", 400)
        try:
            echo = await remote.update(issue_id, patch)
        except UpdateFailedError as e:
            return _error_response(str(e), "UPDATE_FAILED", 503, {"issue_id": issue_id})
        return JSONResponse(echo)

    @app.post("/api/reset")
    async def api_reset() -> JSONResponse:
        remote.reset()
        return JSONResponse({"status": "ok"})

    return app


def main(
    port: int = DEFAULT_REMOTE_PORT,
    *,
    host: str = "127.0.0.1",
    success_rate: float = 0.9,
    delay_ms: int = 500,
) -> None:
    import uvicorn

    remote = InMemoryRemote(success_rate=success_rate, delay_ms=delay_ms)
    app = create_remote_app(remote)
    logger.info("Remote store starting on %s:%d (success rate %.2f)", host, port, success_rate)
    print(f"boardsync remote store: http://{host}:{port}/api/issues")
    uvicorn.run(app, host=host, port=port, log_level="warning")
