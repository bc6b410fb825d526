"""FastAPI application factory for RevLens.

Creates and configures the FastAPI app with CORS, error mapping
and all route modules registered.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from revlens.core.errors import (
    InvalidRequestError,
    NotFoundError,
    RevLensError,
)

logger = logging.getLogger(__name__)


def status_code_for(error: RevLensError) -> int:
    """HTTP status for a core error: 404, 400, or 500 for everything else."""
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, InvalidRequestError):
        return 400
    return 500


def create_app(
    db_manager,
    project_manager,
    orchestrator,
    config,
    worker=None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_manager: DatabaseManager instance
        project_manager: ProjectManager instance
        orchestrator: AnalysisOrchestrator instance
        config: RevLensConfig
        worker: AnalysisWorker running in this process (optional)

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="RevLens API",
        description="Code review analysis service",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Store shared dependencies on app state
    app.state.db_manager = db_manager
    app.state.project_manager = project_manager
    app.state.orchestrator = orchestrator
    app.state.config = config
    app.state.worker = worker

    @app.exception_handler(RevLensError)
    async def revlens_error_handler(request: Request, exc: RevLensError):
        status = status_code_for(exc)
        if status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=status,
            content={"error": exc.message, "kind": exc.kind},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        fields = ", ".join(
            ".".join(str(p) for p in e.get("loc", ()) if p != "body") for e in errors
        )
        return JSONResponse(
            status_code=400,
            content={
                "error": f"Invalid request: {fields}" if fields else "Invalid request",
                "kind": InvalidRequestError.kind,
            },
        )

    # Register routers
    from .routes.projects import router as projects_router
    from .routes.files import router as files_router
    from .routes.analysis import router as analysis_router

    app.include_router(projects_router, prefix="/api")
    app.include_router(files_router, prefix="/api")
    app.include_router(analysis_router, prefix="/api")

    @app.get("/health")
    async def health_check():
        return {
            "status": "ok",
            "service": "revlens",
            "worker": bool(worker and worker.is_running),
        }

    logger.info("FastAPI app created with all routes registered")
    return app
