"""FastAPI app factory"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..core.config.settings import NyuchiConfig, get_config
from ..core.errors import InvalidInput, PipelineError
from ..core.storage.database import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Opens the database on startup and disposes of it on shutdown.
    """
    config: NyuchiConfig = app.state.config
    db = init_db(config.get_database_url())
    await db.create_tables()
    app.state.db = db

    logger.info("Nyuchi pipeline API started")

    yield

    await db.close()
    logger.info("Nyuchi pipeline API stopped")


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    """Render domain errors with their status and diagnostic details."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render malformed or missing request fields as InvalidInput."""
    fields = [
        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return await pipeline_error_handler(request, InvalidInput("Invalid request", fields=fields))


def create_app(config: Optional[NyuchiConfig] = None) -> FastAPI:
    """Create FastAPI application.

    Args:
        config: Configuration to serve with; defaults to the global config

    Returns:
        Configured FastAPI application instance
    """
    config = config or get_config()

    app = FastAPI(
        title="Nyuchi Pipeline API",
        description="Unified submission pipeline and Ubuntu contribution scoring",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Policy is frozen for the lifetime of the app
    app.state.config = config
    app.state.policy = config.access_policy()

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PipelineError, pipeline_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Register routes
    from .routes import pipeline, ubuntu

    app.include_router(pipeline.router, prefix="/api/pipeline", tags=["pipeline"])
    app.include_router(ubuntu.router, prefix="/api/ubuntu", tags=["ubuntu"])

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "service": "nyuchi-pipeline"}

    return app
