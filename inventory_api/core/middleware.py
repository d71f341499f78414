from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import time
import logging

from inventory_api.config.settings import settings
from inventory_api.core.exceptions import AppError
from inventory_api.shared.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

def _error_response(status_code: int, body: ErrorResponse, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=headers
    )

def setup_middleware(app: FastAPI):
    """Configure all middleware for the application"""

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )

        return response

def setup_exception_handlers(app: FastAPI):
    """Traducir la taxonomía de errores a respuestas JSON uniformes"""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} - {exc.error_code}: {exc.detail}")
        else:
            logger.warning(f"{request.method} {request.url.path} - {exc.error_code}: {exc.detail}")
        return _error_response(
            exc.status_code,
            ErrorResponse(message=str(exc.detail), error_code=exc.error_code, details=exc.details),
            headers=exc.headers
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error_response(
            400,
            ErrorResponse(
                message="Datos de entrada inválidos",
                error_code="VALIDATION_ERROR",
                details={"errors": jsonable_encoder(exc.errors(), custom_encoder={Exception: str})}
            )
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Error inesperado en {request.method} {request.url.path}")
        return _error_response(
            500,
            ErrorResponse(message="Error interno del servidor", error_code="INTERNAL_ERROR")
        )
