"""
Main FastAPI application creation and configuration.
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import get_settings
from ..config.settings import configure_logging
from ..exceptions import DatasetLoomError
from ..utils.logging import set_correlation_id
from ..utils.result import failure_from_exception
from .api.dependencies import set_service_container
from .api.router import get_api_router
from .service_container import ServiceConfig, ServiceContainer

# Global container instance
container = ServiceContainer(ServiceConfig.from_settings(get_settings()))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    configure_logging(level=get_settings().log_level)
    await container.initialize()
    set_service_container(container)
    yield
    # Shutdown
    set_service_container(None)
    await container.cleanup()


async def handle_service_error(request: Request, exc: DatasetLoomError) -> JSONResponse:
    """Render a service error as a Failure envelope."""
    failure = failure_from_exception(exc)
    return JSONResponse(content=failure.to_dict(), status_code=failure.status_code)


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="DatasetLoom API",
        description="Chat persistence and training-dataset export",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DatasetLoomError, handle_service_error)

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-Id") or str(uuid.uuid4())
        set_correlation_id(correlation_id)
        response = await call_next(request)
        response.headers["X-Correlation-Id"] = correlation_id
        return response

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy" if container.initialized else "starting",
            "version": __version__,
            "database": container.db_pool is not None,
        }

    app.include_router(get_api_router())

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "datasetloom.server.main:create_app",
        host=settings.host,
        port=settings.port,
        reload=True,
        factory=True,
    )
