"""
Tutorials API: CORS Origin Check
================================

What:  Rejects requests whose Origin header is outside the allow-list.
How:   Runs in front of Starlette's CORSMiddleware, which only omits the
       Access-Control-* headers for unknown origins and still lets the request
       reach the route. This middleware answers 403 instead, so a disallowed
       origin never reaches a handler.

Rules:
    - No Origin header (server-to-server, curl, same-origin GET): allowed
    - Origin in the allow-list, or the allow-list contains "*": allowed
    - Anything else: 403 {"error": "cors_rejected", "message": "Not allowed by CORS"}

The allow-list is read once when the application is created.
"""

import logging
from typing import Sequence

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from tutorials_api.exceptions import CORSRejectedError
from tutorials_api.middleware.request_id import request_id_var
from tutorials_api.responses import error_response

logger = logging.getLogger(__name__)


class CORSOriginCheckMiddleware(BaseHTTPMiddleware):

    def __init__(self, app: ASGIApp, allow_origins: Sequence[str] = ()):
        super().__init__(app)
        self.allow_origins = frozenset(allow_origins)
        self.allow_all = "*" in self.allow_origins

    def is_allowed(self, origin: str) -> bool:
        return self.allow_all or origin in self.allow_origins

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        origin = request.headers.get("origin")
        if origin is None or self.is_allowed(origin):
            return await call_next(request)

        exc = CORSRejectedError(origin=origin)
        rid = request_id_var.get("")
        logger.warning(
            "[%s] %s %s rejected: origin %r not allowed",
            rid,
            request.method,
            request.url.path,
            origin,
        )
        return error_response(403, "cors_rejected", exc.message)
