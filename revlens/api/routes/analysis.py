"""Analysis API routes.

Starting an analysis only creates and queues tasks; the response returns
as soon as every descriptor is on the dispatch queue. Clients poll the
status endpoint for progress.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..deps import get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["analysis"])


# ── Request models ───────────────────────────────────────────────────────

class StartAnalysisRequest(BaseModel):
    project_id: str
    types: list[str]


# ── Routes ───────────────────────────────────────────────────────────────

@router.post("/start", status_code=201)
async def start_analysis(
    data: StartAnalysisRequest,
    orchestrator=Depends(get_orchestrator),
):
    """Create one task per requested type and queue it for the workers."""
    tasks = orchestrator.start_analysis(data.project_id, data.types)
    return {"message": "Analysis started successfully", "tasks": tasks}


@router.get("/project/{project_id}")
async def get_project_analyses(
    project_id: str,
    orchestrator=Depends(get_orchestrator),
):
    tasks = orchestrator.get_tasks_by_project(project_id)
    return {
        "tasks": tasks,
        "status": orchestrator.get_project_rollup(project_id),
    }


@router.get("/{task_id}")
async def get_analysis(
    task_id: str,
    orchestrator=Depends(get_orchestrator),
):
    return {"task": orchestrator.get_task(task_id)}


@router.get("/{task_id}/status")
async def get_analysis_status(
    task_id: str,
    orchestrator=Depends(get_orchestrator),
):
    return orchestrator.get_task_status(task_id)
