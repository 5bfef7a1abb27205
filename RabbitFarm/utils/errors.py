# utils/errors.py
"""
Errores de dominio y su traducción a respuestas HTTP.

Los servicios lanzan subclases de AppError (independientes de FastAPI);
install_error_handlers() las convierte al sobre estándar:

    {"success": false, "message": "...", "errors"?: [...]}
"""
import logging
from enum import Enum

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    INTERNAL = "internal"


STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.RATE_LIMIT: 429,
    ErrorKind.INTERNAL: 500,
}


class AppError(Exception):
    """Error base. `kind` determina el status HTTP."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND


class AuthenticationError(AppError):
    kind = ErrorKind.AUTHENTICATION


class RateLimitError(AppError):
    kind = ErrorKind.RATE_LIMIT


class InternalError(AppError):
    kind = ErrorKind.INTERNAL


def _normalize_errors(errs):
    norm = []
    for e in errs:
        e = dict(e)
        val = e.get("input")
        if isinstance(val, (bytes, bytearray)):
            e["input"] = val.decode("utf-8", errors="ignore")
        # ctx puede traer excepciones no serializables
        if "ctx" in e:
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        norm.append(e)
    return norm


def error_body(message: str, errors: list | None = None) -> dict:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body


def install_error_handlers(app: FastAPI):
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.kind is ErrorKind.INTERNAL:
            logger.error("%s %s -> %s", request.method, request.url.path, exc.message)
        else:
            logger.warning("%s %s -> %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.errors))

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        errors = _normalize_errors(exc.errors())
        logger.warning("%s %s -> datos inválidos: %s", request.method, request.url.path, errors)
        return JSONResponse(status_code=400, content=error_body("Validation failed", errors))

    @app.exception_handler(IntegrityError)
    async def integrity_handler(request: Request, exc: IntegrityError):
        logger.warning("%s %s -> conflicto: %s", request.method, request.url.path, exc.orig)
        return JSONResponse(status_code=409, content=error_body("Conflict with existing data"))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_handler(request: Request, exc: Exception):
        logger.exception("%s %s -> error no controlado", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body("Internal server error"))
