"""JSON error bodies and the outermost exception boundary."""

import logging
from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def error_response(message: str, status_code: int, details: Optional[Any] = None, **extra: Any) -> JSONResponse:
    """Build an ``{"error": ...}`` response, attaching details only when present."""
    body: dict[str, Any] = {**extra, "error": message}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log anything a route let escape and answer with a generic 500."""
    logger.exception("Unhandled error serving %s %s", request.method, request.url.path)
    return error_response("Internal server error", 500)


__all__ = ["error_response", "unhandled_exception_handler"]
