"""
Gateway failures and the centralized error responder.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
import structlog

logger = structlog.get_logger(__name__)

ORIGIN_REJECTED_MESSAGE = "CORS error - Origin not allowed"
GENERIC_ERROR_MESSAGE = "Internal server error"


class GatewayError(Exception):
    """Base class for failures raised by pipeline stages"""


class OriginNotAllowed(GatewayError):
    def __init__(self, origin: str):
        super().__init__("Not allowed by CORS")
        self.origin = origin


class PayloadTooLarge(GatewayError):
    def __init__(self, size: int, limit: int):
        super().__init__(f"request entity too large ({size} > {limit} bytes)")
        self.size = size
        self.limit = limit


class MalformedBody(GatewayError):
    pass


def error_response(request: Request, exc: Exception, settings) -> JSONResponse:
    """Single terminal sink for every failure raised while handling a request"""
    logger.error(
        "request_failed",
        error=str(exc),
        error_type=type(exc).__name__,
        method=request.method,
        path=request.url.path,
        exc_info=exc,
    )

    if isinstance(exc, OriginNotAllowed):
        return JSONResponse(
            status_code=403,
            content={
                "success": False,
                "message": ORIGIN_REJECTED_MESSAGE,
                "origin": exc.origin,
            },
        )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": GENERIC_ERROR_MESSAGE if settings.is_production else str(exc),
        },
    )


async def not_found(request: Request):
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return JSONResponse(
        status_code=404,
        content={"success": False, "message": f"Route {url} not found"},
    )
