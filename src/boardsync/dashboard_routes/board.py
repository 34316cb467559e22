"""Board, issue, undo, filter, and settings route handlers."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.requests import Request

from boardsync.core import POLLING_OPTIONS_MS
from boardsync.dashboard_routes.common import (
    _body_int,
    _body_str,
    _error_response,
    _forbidden,
    _issue_not_found,
    _parse_json_body,
)
from boardsync.filters import FilterSpec
from boardsync.mutations import MutationOutcome
from boardsync.session import BoardSession
from boardsync.types.api import MutationResponse

logger = logging.getLogger(__name__)

_FILTER_KEYS = frozenset({"search", "assignee", "severity"})

# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------


def create_router() -> APIRouter:
    """Build the APIRouter for board endpoints.

    Handlers are async and run on the event loop that also drives the
    session's poll and undo tasks, so the store is only touched from one
    thread.
    """
    from boardsync.dashboard import _get_session

    router = APIRouter()

    def _mutation_response(session: BoardSession, issue_id: str, outcome: MutationOutcome) -> JSONResponse:
        if outcome is MutationOutcome.REJECTED:
            return _forbidden(session.auth.user.name)
        if outcome is MutationOutcome.IGNORED:
            # The issue vanished in a refresh between lookup and edit.
            return _issue_not_found(issue_id)
        issue = session.get_issue(issue_id)
        body = MutationResponse(
            outcome=outcome.value,  # type: ignore[typeddict-item]
            issue=issue.to_dict() if issue else None,
            error=session.store.error if outcome is MutationOutcome.ROLLED_BACK else None,
        )
        return JSONResponse(body)

    async def _edit(session: BoardSession, issue_id: str, patch: dict[str, Any]) -> JSONResponse:
        if not session.auth.can_edit:
            return _forbidden(session.auth.user.name)
        if session.get_issue(issue_id) is None:
            return _issue_not_found(issue_id)
        try:
            outcome = await session.edit(issue_id, patch)
        except ValueError as e:
            return _error_response(str(e), "VALIDATION_ERROR", 400, {"issue_id": issue_id})
        return _mutation_response(session, issue_id, outcome)

    # -- reads ---------------------------------------------------------------

    @router.get("/board")
    async def api_board(session: BoardSession = Depends(_get_session)) -> JSONResponse:
        return JSONResponse(session.to_response())

    @router.get("/issues")
    async def api_issues(session: BoardSession = Depends(_get_session)) -> JSONResponse:
        """Canonical collection in board order, unfiltered."""
        return JSONResponse([i.to_dict() for i in session.store.issues])

    @router.get("/issue/{issue_id}")
    async def api_issue_detail(issue_id: str, session: BoardSession = Depends(_get_session)) -> JSONResponse:
        issue = session.get_issue(issue_id)
        if issue is None:
            return _issue_not_found(issue_id)
        return JSONResponse(issue.to_dict())

    # -- mutations -----------------------------------------------------------

    @router.post("/issue/{issue_id}/status")
    async def api_move_issue(issue_id: str, request: Request, session: BoardSession = Depends(_get_session)) -> JSONResponse:
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        if "status" not in body:
            return _error_response("status is required", "VALIDATION_ERROR", 400, {"field": "status"})
        status = _body_str(body, "status")
        if isinstance(status, JSONResponse):
            return status
        return await _edit(session, issue_id, {"status": status})

    @router.patch("/issue/{issue_id}")
    async def api_edit_issue(issue_id: str, request: Request, session: BoardSession = Depends(_get_session)) -> JSONResponse:
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        return await _edit(session, issue_id, body)

    @router.post("/undo")
    async def api_undo(session: BoardSession = Depends(_get_session)) -> JSONResponse:
        if not session.auth.can_edit:
            return _forbidden(session.auth.user.name)
        undone = await session.undo()
        return JSONResponse({"undone": undone, "error": session.store.error})

    # -- view state ----------------------------------------------------------

    @router.get("/filters")
    async def api_get_filters(session: BoardSession = Depends(_get_session)) -> JSONResponse:
        return JSONResponse(session.store.filters.to_dict())

    @router.post("/filters")
    async def api_set_filters(request: Request, session: BoardSession = Depends(_get_session)) -> JSONResponse:
        """Merge the given filter keys into the current filters (page resets to 1)."""
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        unknown = sorted(set(body) - _FILTER_KEYS)
        if unknown:
            return _error_response(
                f"Unknown filter keys: {', '.join(unknown)}", "VALIDATION_ERROR", 400, {"keys": unknown}
            )
        changes: dict[str, Any] = {}
        if "severity" in body:
            severity = _body_int(body, "severity", nullable=True)
            if isinstance(severity, JSONResponse):
                return severity
            changes["severity"] = severity
        for key in ("search", "assignee"):
            if key in body:
                value = _body_str(body, key, default="")
                if isinstance(value, JSONResponse):
                    return value
                changes[key] = value
        spec = session.set_filters(**changes)
        return JSONResponse(spec.to_dict())

    @router.delete("/filters")
    async def api_reset_filters(session: BoardSession = Depends(_get_session)) -> JSONResponse:
        session.reset_filters()
        return JSONResponse(FilterSpec().to_dict())

    @router.post("/page")
    async def api_set_page(request: Request, session: BoardSession = Depends(_get_session)) -> JSONResponse:
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        page = _body_int(body, "page", min_value=1)
        if isinstance(page, JSONResponse):
            return page
        if page is None:
            return _error_response("page is required", "VALIDATION_ERROR", 400, {"field": "page"})
        session.set_page(page)
        return JSONResponse({"page": page, "totalPages": session.board().total_pages})

    # -- settings and sync ---------------------------------------------------

    @router.get("/settings/polling")
    async def api_get_polling(session: BoardSession = Depends(_get_session)) -> JSONResponse:
        return JSONResponse({"interval": session.store.polling_interval, "options": list(POLLING_OPTIONS_MS)})

    @router.put("/settings/polling")
    async def api_set_polling(request: Request, session: BoardSession = Depends(_get_session)) -> JSONResponse:
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        try:
            interval = session.set_polling_interval(body.get("interval"))
        except ValueError as e:
            return _error_response(
                str(e), "INVALID_POLLING_INTERVAL", 400, {"options": list(POLLING_OPTIONS_MS)}
            )
        return JSONResponse({"interval": interval, "options": list(POLLING_OPTIONS_MS)})

    @router.delete("/error")
    async def api_clear_error(session: BoardSession = Depends(_get_session)) -> JSONResponse:
        session.clear_error()
        return JSONResponse({"error": None})

    @router.post("/refresh")
    async def api_refresh(session: BoardSession = Depends(_get_session)) -> JSONResponse:
        ok = await session.refresh()
        return JSONResponse({"ok": ok, "error": session.store.error})

    return router
