from __future__ import annotations

import logging

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.config import Settings

logger = logging.getLogger(__name__)


def security_headers(settings: Settings) -> dict[str, str]:
    headers = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "no-referrer",
        # Schedules and conflict reports change on every commit.
        "Cache-Control": "no-store",
    }
    if settings.security_enable_hsts:
        headers["Strict-Transport-Security"] = f"max-age={max(1, settings.security_hsts_max_age_seconds)}"
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, *, settings: Settings) -> None:
        super().__init__(app)
        self._headers = security_headers(settings)

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for name, value in self._headers.items():
            response.headers.setdefault(name, value)
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects bodies whose declared Content-Length exceeds ``max_bytes``.

    Error bodies use the same ``{"message", "details"}`` shape as ``AppError``.
    """

    def __init__(self, app, *, max_bytes: int) -> None:
        super().__init__(app)
        self._max_bytes = max(1, max_bytes)

    async def dispatch(self, request: Request, call_next) -> Response:
        raw_length = request.headers.get("content-length")
        if not raw_length:
            return await call_next(request)

        if not raw_length.isdigit():
            return JSONResponse(
                status_code=400,
                content={"message": "Invalid Content-Length header", "details": {"content_length": raw_length}},
            )
        length = int(raw_length)
        if length > self._max_bytes:
            logger.warning("Rejected %s %s: body of %d bytes", request.method, request.url.path, length)
            return JSONResponse(
                status_code=413,
                content={
                    "message": "Request body too large",
                    "details": {"content_length": length, "max_bytes": self._max_bytes},
                },
            )
        return await call_next(request)
