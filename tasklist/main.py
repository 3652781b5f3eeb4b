"""FastAPI main application with app factory and route configuration."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .deps import build_task_store, get_settings
from .errors import register_exception_handlers
from .ports import TaskOutputGateway
from .routes import tasks
from .schemas import HealthResponse
from .services.task_service import initialize_task_use_case, reset_task_use_case
from .utils.logging import (
    configure_request_logging,
    log_shutdown_info,
    log_startup_info,
    setup_logging,
)

logger = logging.getLogger(__name__)

EXPOSED_HEADERS = ["Authorization", "Content-Type", "X-Total-Count", "Location"]


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[TaskOutputGateway] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; defaults to the cached environment settings
        store: Task store to use; defaults to the one selected by settings

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Set up logging and the task use case for the app's lifetime."""
        setup_logging(settings)
        log_startup_info(settings)

        try:
            task_store = store if store is not None else build_task_store(settings)
            app.state.task_use_case = initialize_task_use_case(
                task_store, default_status=settings.default_status
            )
            app.state.task_store = task_store
            logger.info("Task use case initialized")
        except Exception as e:
            logger.error(f"Error during application startup: {str(e)}")
            raise

        yield

        reset_task_use_case()
        app.state.task_use_case = None
        dispose = getattr(app.state.task_store, "dispose", None)
        if dispose is not None:
            dispose()
        log_shutdown_info(settings)

    app = FastAPI(
        title=settings.app_name,
        description="REST API for managing tasks with case-insensitive unique titles",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # "*" cannot be combined with credentials, so fall back to a regex
    origins = settings.cors_origins
    allow_any_origin = "*" in origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if allow_any_origin else origins,
        allow_origin_regex=".*" if allow_any_origin else None,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_methods,
        allow_headers=settings.cors_headers,
        expose_headers=EXPOSED_HEADERS,
        max_age=settings.cors_max_age,
    )

    app.middleware("http")(configure_request_logging())

    register_exception_handlers(app)

    @app.get("/healthz", tags=["health"], response_model=HealthResponse)
    def health_check():
        """Health check endpoint for monitoring and load balancers."""
        task_store = getattr(app.state, "task_store", None)
        ping = getattr(task_store, "ping", None)
        store_ok = bool(ping and ping())

        health = HealthResponse(
            status="healthy" if store_ok else "unhealthy",
            version=settings.app_version,
            store="available" if store_ok else "unavailable",
        )
        if not store_ok:
            logger.error("Health check failed: task store unavailable")
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content=health.model_dump(mode="json"),
            )
        return health

    @app.get("/", tags=["root"])
    def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs_url": "/docs",
            "health_check": "/healthz",
            "endpoints": {
                "tasks": "/tasks",
            },
        }

    app.include_router(tasks.router, prefix="/tasks", tags=["tasks"])

    logger.info("FastAPI application created and configured")

    return app


# Create the app instance
app = create_app()
