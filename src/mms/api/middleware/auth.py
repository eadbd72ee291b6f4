"""
Shared API-key gate.

With ``MMS_API_KEY`` set, every request outside the health checks and the
OpenAPI docs must send the key in ``X-API-Key``.  A missing or wrong key
gets a 401 problem document with code ``UNAUTHORIZED``.

The key says nothing about *who* is calling.  The caller's user id comes
from ``X-User-Id`` (see :mod:`mms.api.deps`) and is trusted as given.

Tags:
    mms, api, middleware, authentication, API-key

Doc-Types:
    api-reference
"""

from __future__ import annotations

import hmac

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from mms.api.middleware.errors import problem_response

API_KEY_HEADER = "X-API-Key"


def open_paths(api_prefix: str) -> frozenset[str]:
    """Health checks and API docs under *api_prefix*; these never need the key."""
    prefix = api_prefix.rstrip("/")
    return frozenset(f"{prefix}{p}" for p in ("/health", "/health/ready", "/docs", "/redoc", "/openapi.json"))


class AuthMiddleware(BaseHTTPMiddleware):
    """Reject requests without the configured API key.  No key configured, no gate."""

    def __init__(self, app: object, api_key: str | None = None, api_prefix: str = "") -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._api_key = api_key
        self._open = open_paths(api_prefix)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self._api_key is None or request.url.path.rstrip("/") in self._open:
            return await call_next(request)

        provided = request.headers.get(API_KEY_HEADER, "")
        if not hmac.compare_digest(provided.encode(), self._api_key.encode()):
            return problem_response(
                status=401,
                title="Unauthorized",
                detail=f"Missing or invalid API key. Send it in the {API_KEY_HEADER} header.",
                instance=request.url.path,
                code="UNAUTHORIZED",
            )
        return await call_next(request)
