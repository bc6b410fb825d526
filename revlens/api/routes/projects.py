"""Project management API routes (FastAPI).

Provides CRUD operations for review projects. Deleting a project
tombstones it together with its files and analysis tasks.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from revlens.core.errors import NotFoundError

from ..deps import get_project_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


# ── Request/Response models ──────────────────────────────────────────────

class ProjectCreate(BaseModel):
    name: str
    description: str = ""


class ProjectUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    status: str | None = None


class ProjectResponse(BaseModel):
    project_id: str
    user_id: str
    name: str
    description: str
    status: str = "pending"
    created_at: str | None = None
    updated_at: str | None = None


# ── Routes ───────────────────────────────────────────────────────────────

@router.get("")
async def list_projects(pm=Depends(get_project_manager)):
    projects = pm.list_projects()
    return {"projects": [ProjectResponse(**p) for p in projects]}


@router.post("", status_code=201)
async def create_project(
    data: ProjectCreate,
    pm=Depends(get_project_manager),
):
    """Create a new project owned by the default user."""
    project = pm.create_project(name=data.name, description=data.description)
    return {"project": ProjectResponse(**project)}


@router.get("/{project_id}")
async def get_project(
    project_id: str,
    pm=Depends(get_project_manager),
):
    """Project with its live files and analysis tasks."""
    project = pm.get_project(project_id, include_children=True)
    if not project:
        raise NotFoundError("Project not found")
    return {"project": project}


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    pm=Depends(get_project_manager),
):
    project = pm.update_project(
        project_id,
        name=data.name,
        description=data.description,
        status=data.status,
    )
    return {"project": ProjectResponse(**project)}


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    pm=Depends(get_project_manager),
):
    if not pm.delete_project(project_id):
        raise NotFoundError("Project not found")
    return {"message": "Project deleted successfully"}
