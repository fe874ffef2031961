"""Uniform response envelope and the exception handlers that produce it.

Every response body, success or failure, is {"success", "message", "data"}.
Routers return ok(...) and raise HTTPException; everything else is translated here.
"""
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

log = logging.getLogger("uvicorn.error")

VALIDATION_FAILED = "Validation failed"
INTERNAL_ERROR = "Internal server error"


def ok(message: str, data: Any = None) -> dict:
    return {"success": True, "message": message, "data": jsonable_encoder(data)}


def created(message: str, data: Any = None) -> JSONResponse:
    return JSONResponse(status_code=201, content=ok(message, data))


def error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "data": None},
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = f"Route {request.method} {request.url.path} not found"
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Field errors go to the server log only; clients get the generic message
    log.info("[Validation] %s %s: %s", request.method, request.url.path, exc.errors())
    return error_response(400, VALIDATION_FAILED)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("[Error] Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, INTERNAL_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
