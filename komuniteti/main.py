from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from komuniteti.api.deps import field_errors_from
from komuniteti.api.v1.router import router as api_v1_router
from komuniteti.config.settings import settings
from komuniteti.core.exceptions import BaseAppException, ErrorCode
from komuniteti.core.logging import get_logger, setup_logging
from komuniteti.core.middleware import register_middlewares
from komuniteti.db.init_db import init_db
from komuniteti.services.maintenance import MaintenanceGateway

logger = get_logger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Render application and request validation errors as JSON error bodies."""

    @app.exception_handler(BaseAppException)
    async def app_exception_handler(request: Request, exc: BaseAppException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "error": {
                    "message": "Request validation failed",
                    "code": ErrorCode.VALIDATION_ERROR.value,
                    "details": {"field_errors": field_errors_from(exc)},
                    "type": "RequestValidationError",
                }
            },
        )


def create_app(gateway: Optional[MaintenanceGateway] = None) -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures title, version, debug mode from Settings.
    - Registers CORS, request context middleware and exception handlers.
    - Includes the versioned API router under /api/v1.

    Args:
        gateway: Gateway to serve; defaults to one bound to SessionLocal,
            in which case the schema is created on startup outside
            production.
    """
    setup_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=settings.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ORIGINS != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_middlewares(app)
    register_exception_handlers(app)

    use_default_database = gateway is None
    app.state.maintenance_gateway = gateway or MaintenanceGateway()

    # Mount API v1 under /api/v1
    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    @app.on_event("startup")
    async def on_startup() -> None:
        if use_default_database and not settings.is_production():
            # For dev/demo only; production schemas are managed by migrations
            init_db()

    return app


app = create_app()
