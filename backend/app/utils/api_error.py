"""Shared JSON error bodies. Details are exposed only when DEBUG is on."""

import traceback

from fastapi.responses import JSONResponse

from app.config import settings


def internal_error(message: str, exc: Exception | None = None) -> JSONResponse:
    body: dict = {"error": message}
    if settings.DEBUG and exc is not None:
        body["error"] = str(exc) or message
        body["details"] = str(exc)
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content=body)
