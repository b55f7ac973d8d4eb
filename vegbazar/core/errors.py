# vegbazar/core/errors.py
import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vegbazar.schemas.common import ApiResponse

logger = logging.getLogger(__name__)


def _envelope(
    status_code: int,
    message: str,
    data: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ApiResponse[Any](statuscode=status_code, data=data, message=message)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body.model_dump()),
        headers=headers,
    )


def split_detail(detail: Any) -> tuple[str, Any]:
    """
    HTTPException.detail is either a message string, or a dict with a
    "message" key whose other keys become the envelope's `data`.
    """
    if isinstance(detail, dict):
        extra = {k: v for k, v in detail.items() if k != "message"}
        return str(detail.get("message", "Request failed")), extra or None
    return str(detail), None


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    message, data = split_detail(exc.detail)
    return _envelope(exc.status_code, message, data, getattr(exc, "headers", None))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg", message)
    details = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in errors
    ]
    return _envelope(status.HTTP_400_BAD_REQUEST, message, {"errors": details})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Internal details stay in the logs, never in the response body.
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
