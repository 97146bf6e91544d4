"""Global exception handlers — translate domain errors to HTTP responses.

Every domain exception carries a ``code``; the code picks the HTTP status
and is echoed in the ``{"status": "error", "code": ..., "message": ...}``
envelope so clients can tell a bad URL from a missing token.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from git_packages.domain.exceptions import GitPackagesError, HttpFailure

logger = logging.getLogger(__name__)

_CODE_STATUS: dict[str, int] = {
    "invalid_url": 422,
    "unauthorized": 401,
    "not_found": 404,
    "rate_limited": 429,
    "already_installed": 409,
    "upstream_error": 502,
}

_CODE_HINTS: dict[str, str] = {
    "unauthorized": "Access denied. The repository may be private; check the provider token.",
    "not_found": "Repository, branch or file not found.",
}


def _error_json(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "code": code, "message": message},
    )


def _rate_limit_message(exc: HttpFailure) -> str:
    reset_raw = exc.headers.get("x-ratelimit-reset", "")
    if not reset_raw:
        return "Provider rate limit exceeded. Try again later or configure a token."
    try:
        reset_str = datetime.fromtimestamp(int(reset_raw), tz=timezone.utc).strftime(
            "%Y-%m-%d %H:%M:%S UTC"
        )
    except (ValueError, OSError):
        reset_str = reset_raw
    return f"Provider rate limit exceeded. Resets at {reset_str}."


def describe_error(exc: GitPackagesError) -> tuple[int, str, str]:
    """Return ``(http_status, code, message)`` for a domain exception."""
    code = exc.code
    status_code = _CODE_STATUS.get(code, 502)
    message = str(exc)
    if isinstance(exc, HttpFailure):
        if code == "rate_limited":
            message = _rate_limit_message(exc)
        elif code in _CODE_HINTS:
            message = f"{_CODE_HINTS[code]} ({exc})"
    return status_code, code, message


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application."""

    # ── Domain exceptions ───────────────────────────────────────────────

    @app.exception_handler(GitPackagesError)
    async def domain_handler(request: Request, exc: GitPackagesError) -> JSONResponse:
        status_code, code, message = describe_error(exc)
        logger.warning("%s (%s): %s", type(exc).__name__, code, exc)
        return _error_json(status_code, code, message)

    # ── Pydantic / FastAPI validation errors ────────────────────────────

    @app.exception_handler(RequestValidationError)
    async def validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = []
        for err in exc.errors():
            loc = " → ".join(str(p) for p in err.get("loc", []))
            messages.append(f"{loc}: {err.get('msg', 'validation error')}")
        return _error_json(422, "invalid_input", "; ".join(messages))

    # ── Catch-all for unexpected errors ─────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception")
        return _error_json(
            500, "internal_error", "An unexpected error occurred. Please try again later."
        )
