"""FastAPI dependencies for RevLens.

Provides shared services via FastAPI's Depends() injection system.
Everything is created once at startup and stored on app.state.
"""

import logging

from fastapi import Request

logger = logging.getLogger(__name__)


async def get_project_manager(request: Request):
    """Get ProjectManager from app state."""
    return request.app.state.project_manager


async def get_orchestrator(request: Request):
    """Get AnalysisOrchestrator from app state."""
    return request.app.state.orchestrator


async def get_config(request: Request):
    """Get RevLensConfig from app state."""
    return request.app.state.config
