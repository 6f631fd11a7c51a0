"""
Tutorials API: Error Response Builder
=====================================

What:  Builds the JSON body shared by every non-2xx answer.
How:   Used by the exception handlers in main.py and by the middleware that
       rejects requests before routing (CORS, body size, rate limit), so the
       shape is defined in one place.

Body:
    {"error": <code>, "message": <text>, "details": {...}?, "request_id": <id>}
"""

from typing import Any, Dict, Mapping, Optional

from starlette.responses import JSONResponse

from tutorials_api.middleware.request_id import request_id_var


def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {"error": error, "message": message}
    if details is not None:
        content["details"] = details
    content["request_id"] = request_id_var.get("")
    return JSONResponse(status_code=status_code, content=content, headers=headers)
