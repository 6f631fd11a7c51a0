"""
Tutorials API: Request Body Size Limit
======================================

What:  Rejects request bodies larger than `max_body_size` bytes (10 KB default)
       with 413 Payload Too Large, whatever their content type or validity.
How:   Pure ASGI middleware.
       1. A Content-Length above the cap is rejected before anything is read.
       2. Otherwise the body is read chunk by chunk; once the running total
          passes the cap the request is rejected without reading further.
       3. A body within the cap is replayed to the application as a single
          `http.request` message. Later receive() calls (disconnect
          detection) go straight to the server.

Written as a raw ASGI middleware rather than BaseHTTPMiddleware: a limit
enforced inside the route's body parsing would surface as a 400 parse error
instead of a 413.
"""

import logging
from typing import Optional

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from tutorials_api.exceptions import PayloadTooLargeError
from tutorials_api.middleware.request_id import request_id_var
from tutorials_api.responses import error_response

logger = logging.getLogger(__name__)

DEFAULT_MAX_BODY_SIZE = 10 * 1024


class BodySizeLimitMiddleware:

    def __init__(self, app: ASGIApp, max_body_size: int = DEFAULT_MAX_BODY_SIZE):
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = _content_length(Headers(scope=scope))
        if declared is not None and declared > self.max_body_size:
            await self._reject(scope, receive, send, declared)
            return

        body = bytearray()
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                # Client went away before finishing the upload
                return
            body.extend(message.get("body", b""))
            if len(body) > self.max_body_size:
                await self._reject(scope, receive, send, len(body))
                return
            if not message.get("more_body", False):
                break

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": bytes(body), "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send, size: int) -> None:
        exc = PayloadTooLargeError(limit=self.max_body_size)
        rid = request_id_var.get("")
        logger.warning(
            "[%s] %s %s rejected: body of at least %d bytes exceeds %d",
            rid,
            scope.get("method", ""),
            scope.get("path", ""),
            size,
            self.max_body_size,
        )
        response = error_response(
            413,
            "payload_too_large",
            exc.message,
            details=exc.context,
            headers={"Connection": "close"},
        )
        await response(scope, receive, send)


def _content_length(headers: Headers) -> Optional[int]:
    value = headers.get("content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
