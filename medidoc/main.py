"""FastAPI application entry point.

Main application setup with middleware, routing, and lifecycle management.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from medidoc import __version__
from medidoc.api import (
    appointments_router,
    doctors_router,
    documents_router,
    patients_router,
    prefill_router,
    templates_router,
)
from medidoc.api.schemas import ErrorResponse
from medidoc.core.config import Settings, get_settings
from medidoc.core.factory import ComponentFactory
from medidoc.core.logging_config import setup_logging
from medidoc.db.session import close_db, init_db
from medidoc.strategies.builder import SchemaValidationError
from medidoc.strategies.template_engine import TemplateValidationError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Creates tables on startup and disposes the engine on shutdown.
    """
    settings: Settings = app.state.settings

    logger.info("Starting medidoc API...")

    try:
        await init_db(settings)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}", exc_info=True)
        raise

    yield

    logger.info("Shutting down medidoc API...")

    try:
        await close_db()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error closing database: {e}", exc_info=True)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings. If None, loads from environment.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="medidoc",
        description="Patient records, templates and document generation for medical practices",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.factory = ComponentFactory(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in (
        doctors_router,
        patients_router,
        appointments_router,
        templates_router,
        documents_router,
        prefill_router,
    ):
        app.include_router(router)
        logger.debug(f"Registered router: {router.prefix}")

    logger.info(f"Form builder enabled: {settings.enable_builder_v2}")

    @app.get("/health", tags=["health"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {
            "status": "healthy",
            "service": "medidoc-api",
            "version": __version__,
        }

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors."""
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=jsonable_encoder(
                {
                    "detail": "Validation error",
                    "errors": exc.errors(),
                }
            ),
        )

    @app.exception_handler(TemplateValidationError)
    async def template_validation_handler(request: Request, exc: TemplateValidationError):
        logger.warning(f"Template validation failed: {exc}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=ErrorResponse(detail=str(exc), error_code="INVALID_TEMPLATE").model_dump(),
        )

    @app.exception_handler(SchemaValidationError)
    async def schema_validation_handler(request: Request, exc: SchemaValidationError):
        logger.warning(f"Builder schema validation failed: {exc.errors}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=ErrorResponse(
                detail="Invalid template schema",
                error_code="INVALID_SCHEMA",
                extra={"errors": exc.errors},
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                detail="Internal server error",
                error_code="INTERNAL_ERROR",
            ).model_dump(),
        )

    logger.info("FastAPI application created successfully")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "medidoc.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
