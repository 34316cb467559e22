"""Shared helpers for board API route modules.

Every error leaves through ``_error_response`` so clients always see the
``{"error": {"message", "code", "details"}}`` envelope.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fastapi.responses import JSONResponse
    from starlette.requests import Request

logger = logging.getLogger(__name__)

_MISSING = object()


def _error_response(
    message: str,
    code: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Return a structured error response and log the error."""
    from fastapi.responses import JSONResponse

    logger.warning("API error [%s] %s: %s", status_code, code, message)
    return JSONResponse(
        {"error": {"message": message, "code": code, "details": details or {}}},
        status_code=status_code,
    )


def _issue_not_found(issue_id: str) -> JSONResponse:
    return _error_response(f"Issue not found: {issue_id}", "ISSUE_NOT_FOUND", 404, {"issue_id": issue_id})


def _forbidden(user_name: str) -> JSONResponse:
    return _error_response(
        f"User {user_name} is not allowed to edit issues", "FORBIDDEN", 403, {"user": user_name}
    )


async def _parse_json_body(request: Request) -> dict[str, Any] | JSONResponse:
    """Parse a JSON object body, returning 400 on anything else."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error_response("Invalid JSON body", "VALIDATION_ERROR", 400)
    if not isinstance(body, dict):
        return _error_response("Request body must be a JSON object", "VALIDATION_ERROR", 400)
    return body


def _body_int(
    body: dict[str, Any],
    key: str,
    *,
    min_value: int | None = None,
    nullable: bool = False,
) -> int | None | JSONResponse:
    """Read an integer field from a parsed body.

    JSON booleans and floats are rejected even though Python treats ``True``
    as an int. With *nullable*, an explicit ``null`` yields ``None``.
    """
    value = body.get(key, _MISSING)
    if value is None and nullable:
        return None
    if value is _MISSING or value is None:
        return _error_response(f"{key} is required", "VALIDATION_ERROR", 400, {"field": key})
    if not isinstance(value, int) or isinstance(value, bool):
        return _error_response(
            f"Invalid value for {key}: {value!r}. Must be an integer.", "VALIDATION_ERROR", 400, {"field": key}
        )
    if min_value is not None and value < min_value:
        return _error_response(
            f"Invalid value for {key}: {value}. Must be >= {min_value}.", "VALIDATION_ERROR", 400, {"field": key}
        )
    return value


def _body_str(body: dict[str, Any], key: str, *, default: str | None = None) -> str | JSONResponse:
    """Read a string field; ``null`` or a missing key falls back to *default* when one is given."""
    value = body.get(key)
    if value is None and default is not None:
        return default
    if not isinstance(value, str):
        return _error_response(f"{key} must be a string", "VALIDATION_ERROR", 400, {"field": key})
    return value
