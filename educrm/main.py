"""FastAPI application factory and entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from educrm.config import Settings, get_settings
from educrm.container import Container
from educrm.exceptions import create_exception_handlers
from educrm.middleware import AuthMiddleware, RequestContextMiddleware
from educrm.utils.request_context import RequestIdFilter

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure root logging once, with the request id on every record."""
    log_level = logging.DEBUG if settings.is_development else getattr(logging, settings.app_log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        force=True,  # Override any existing configuration
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(RequestIdFilter())
    logger.info(f"Logging configured at level: {logging.getLevelName(log_level)}")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    container = Container(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        logger.info(f"Starting {settings.app_name} in {settings.app_env} mode")
        yield
        logger.info(f"Shutting down {settings.app_name}")
        await container.close()

    app = FastAPI(
        title=settings.app_name,
        description="Management backend for training centres",
        version="1.0.0",
        docs_url="/docs" if settings.app_debug else None,
        redoc_url="/redoc" if settings.app_debug else None,
        openapi_url="/openapi.json" if settings.app_debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.container = container

    # Added in reverse: the last one added runs first
    app.add_middleware(AuthMiddleware, api_prefix=settings.api_prefix)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware, timeout=settings.request_timeout)

    # Register exception handlers
    for exc_class, handler in create_exception_handlers().items():
        app.add_exception_handler(exc_class, handler)

    register_routers(app, settings)

    return app


def register_routers(app: FastAPI, settings: Settings) -> None:
    """Register the versioned API router and the health check."""
    from educrm.api.v1 import api_router

    app.include_router(api_router, prefix=settings.api_prefix)

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {"status": "healthy", "app": settings.app_name, "env": settings.app_env}


def main():
    """Entry point for running the application."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(
        create_app(settings),
        host=settings.listen_host,
        port=settings.listen_port,
        log_level=settings.app_log_level.lower(),
    )


if __name__ == "__main__":
    main()
