# File: /inline_db/core/error_handlers.py | Version: 2.0 | Title: Domain + standardized error handlers
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from inline_db.core.errors import InlineDbError

log = logging.getLogger(__name__)

_CODE_MAP = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
    500: "INTERNAL_SERVER_ERROR",
}


def _err(code: int, message: str):
    return {"error": {"code": _CODE_MAP.get(code, "ERROR"), "message": message}}


def register_domain_handlers(app: FastAPI) -> None:
    """Always on: every InlineDbError renders as {"error": {"code", "message"[, "detail"]}}."""

    @app.exception_handler(InlineDbError)
    async def _domain_exc(req: Request, exc: InlineDbError):
        if exc.status_code >= 500:
            log.error("%s on %s %s: %s", exc.code, req.method, req.url.path, exc.message)
        else:
            log.info("%s on %s %s: %s", exc.code, req.method, req.url.path, exc.message)
        body = {"code": exc.code, "message": exc.message}
        if exc.detail is not None:
            body["detail"] = exc.detail
        return JSONResponse(status_code=exc.status_code, content={"error": body})


def register_exception_handlers(app: FastAPI) -> None:
    """Optional (ENABLE_STD_ERRORS): same envelope for HTTP and validation errors."""

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc(_req: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_err(exc.status_code, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_exc(_req: Request, exc: RequestValidationError):
        return JSONResponse(status_code=422, content=_err(422, "Validation error"))

    @app.exception_handler(Exception)
    async def _unhandled(req: Request, exc: Exception):
        log.exception("unhandled error on %s %s", req.method, req.url.path)
        # Avoid leaking internals
        return JSONResponse(status_code=500, content=_err(500, "Internal server error"))
