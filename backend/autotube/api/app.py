"""FastAPI application setup with lifespan and exception handlers."""

from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from autotube import __version__, validate_dependencies
from autotube.api.routes import router
from autotube.orchestrator.factory import build_executor, create_job_store
from autotube.orchestrator.pipeline import PipelineExecutor

logger = logging.getLogger(__name__)


def create_app(executor: Optional[PipelineExecutor] = None) -> FastAPI:
    """Build the API application.

    Args:
        executor: Pre-built executor (tests). When None, the lifespan
                  validates ffmpeg and wires the executor from settings.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager.

        Startup:
            - Validate system dependencies (ffmpeg, ffprobe)
            - Create the job store and executor

        Shutdown:
            - Close the job store
        """
        logger.info("Starting AutoTube API...")
        if executor is None:
            validate_dependencies()
            store = await create_job_store()
            app.state.executor = build_executor(store)
        else:
            app.state.executor = executor
        logger.info("API startup complete")

        yield

        logger.info("Shutting down AutoTube API...")
        await app.state.executor.store.close()
        logger.info("API shutdown complete")

    app = FastAPI(
        title="AutoTube API",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS for the dashboard dev server
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler to prevent stack traces in API responses."""
        logger.error(
            f"Unhandled exception in {request.method} {request.url.path}: "
            f"{type(exc).__name__}: {str(exc)}"
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc),
            },
        )

    return app


app = create_app()
