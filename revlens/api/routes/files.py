"""Source file API routes.

Uploads are stored under ``<upload_path>/<project_id>/<name>``; text
content is also kept on the row so analyses never re-read the disk.
"""

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile

from revlens.core.content import format_size
from revlens.core.errors import InvalidRequestError, NotFoundError

from ..deps import get_config, get_project_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["files"])


@router.post("/upload")
async def upload_files(
    project_id: str = Form(...),
    files: list[UploadFile] = File(...),
    pm=Depends(get_project_manager),
    config=Depends(get_config),
):
    """Upload one or more files into a project."""
    if not pm.get_project(project_id):
        raise NotFoundError("Project not found")
    if not files:
        raise InvalidRequestError("No files provided")

    max_mb = config.storage.max_upload_size_mb
    received = []
    for upload in files:
        content = await upload.read()
        size_mb = len(content) / (1024 * 1024)
        if size_mb > max_mb:
            raise InvalidRequestError(
                f"File too large ({size_mb:.1f}MB). Maximum is {max_mb}MB."
            )
        received.append((upload, content))

    # Nothing is written until every file has passed the size check
    uploaded = []
    skipped = []
    for upload, content in received:
        stored = pm.store_file(
            project_id,
            upload.filename,
            content,
            upload_root=config.storage.upload_path,
            mime_type=upload.content_type,
        )
        if stored is None:
            skipped.append(upload.filename)
            continue

        stored["size"] = format_size(stored["size_bytes"])
        uploaded.append(stored)

    logger.info(f"Uploaded {len(uploaded)} file(s) to project {project_id}")
    return {
        "message": "Files uploaded successfully",
        "files": uploaded,
        "skipped": skipped,
    }


@router.get("/project/{project_id}")
async def get_project_files(
    project_id: str,
    pm=Depends(get_project_manager),
):
    if not pm.get_project(project_id):
        raise NotFoundError("Project not found")
    return {"files": pm.get_project_files(project_id)}


@router.get("/{file_id}")
async def get_file(
    file_id: str,
    pm=Depends(get_project_manager),
):
    source_file = pm.get_file(file_id)
    if not source_file:
        raise NotFoundError("File not found")
    return {"file": source_file}


@router.delete("/{file_id}")
async def delete_file(
    file_id: str,
    pm=Depends(get_project_manager),
):
    if not pm.delete_file(file_id):
        raise NotFoundError("File not found")
    return {"message": "File deleted successfully"}
