import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from parkmate.api.routes.devices import router as devices_router
from parkmate.api.routes.functions import router as functions_router
from parkmate.api.routes.health import router as health_router
from parkmate.api.routes.internal_codes import router as internal_codes_router
from parkmate.api.routes.messaging import router as messaging_router
from parkmate.api.routes.responses import (
    INVALID_INPUT_MESSAGE,
    PERSISTENCE_ERROR_MESSAGE,
    error_response,
)
from parkmate.core.config import get_settings
from parkmate.core.logging import configure_logging

logger = structlog.get_logger(__name__)


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info(
        "request_validation_failed",
        path=request.url.path,
        errors=len(exc.errors()),
    )
    return error_response(400, error=INVALID_INPUT_MESSAGE, code="E_INVALID_INPUT")


async def _persistence_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "persistence_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return error_response(500, error=PERSISTENCE_ERROR_MESSAGE, code="E_PERSISTENCE")


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return error_response(500, error=PERSISTENCE_ERROR_MESSAGE, code="E_INTERNAL")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, app_env=settings.app_env)

    app = FastAPI(
        title="ParkMate API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, _persistence_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
    app.include_router(health_router)
    app.include_router(functions_router)
    app.include_router(internal_codes_router)
    app.include_router(devices_router)
    app.include_router(messaging_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "parkmate.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
