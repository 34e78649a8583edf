"""
Error Envelope and Exception Handlers

Every service answers failures with the same JSON shape:

    {"error": "<short title>", "message": "<what the caller can do>"}

Route handlers raise one of the ServiceError subclasses below; anything
else that escapes is turned into a generic 500 by the catch-all handler.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from restaurant_services.core.config import get_settings

logger = logging.getLogger(__name__)

RETRY_LATER = "Tente novamente mais tarde"


class ServiceError(Exception):
    """An error that maps directly onto an HTTP status and JSON envelope."""

    status_code: int = 500

    def __init__(self, error: str, message: Optional[str] = None):
        super().__init__(error)
        self.error = error
        self.message = message

    def to_dict(self) -> dict:
        body = {"error": self.error}
        if self.message is not None:
            body["message"] = self.message
        return body


class BadRequestError(ServiceError):
    status_code = 400


class UnauthorizedError(ServiceError):
    status_code = 401


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class InternalServiceError(ServiceError):
    status_code = 500

    def __init__(self, error: str, message: Optional[str] = RETRY_LATER):
        super().__init__(error, message)


class ServiceUnavailableError(ServiceError):
    status_code = 503


def _describe_validation_error(exc: RequestValidationError) -> str:
    """Render the first validation problem as 'field: reason'."""
    errors = exc.errors()
    if not errors:
        return "Requisição inválida"

    first = errors[0]
    location = ".".join(
        str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")
    )
    reason = first.get("msg", "valor inválido")
    return f"{location}: {reason}" if location else reason


def register_exception_handlers(app: FastAPI) -> None:
    """Install the shared error handlers on a service application."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} → {exc.status_code} {exc.error}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message = _describe_validation_error(exc)
        logger.debug(f"Rejected {request.method} {request.url.path}: {message}")
        return JSONResponse(
            status_code=400,
            content={"error": "Dados inválidos", "message": message},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        # Unknown paths and unsupported methods share the catch-all answer
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"error": "Rota não encontrada"})
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")

        return JSONResponse(
            status_code=500,
            content={
                "error": "Erro interno do servidor",
                "message": str(exc) if get_settings().debug else "Algo deu errado",
            },
        )
