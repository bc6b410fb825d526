"""Project Manager for RevLens.

Provides CRUD operations for projects and their uploaded source files.
Deletes are soft: rows get a deleted_at tombstone and drop out of every
default query, so analysis history stays auditable.
"""

import logging
import os
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError

from ..constants import (
    DEFAULT_EMAIL,
    DEFAULT_USER_ID,
    DEFAULT_USERNAME,
    PROJECT_PENDING,
    PROJECT_STATUSES,
)
from ..content import ContentKind, classify, detect_language, sanitize_filename
from ..db import DatabaseManager
from ..db.models import AnalysisTask, Project, SourceFile, User
from ..errors import InvalidRequestError, NotFoundError, PersistenceError
from ..utils import parse_id

logger = logging.getLogger(__name__)


class ProjectManager:
    """Manages projects and their source files with database persistence."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager
        logger.info("ProjectManager initialized")

    def ensure_default_user(self) -> str:
        """Create the default owner if missing; returns its user_id."""
        try:
            with self.db.get_session() as session:
                uid = UUID(DEFAULT_USER_ID)
                user = session.query(User).filter(User.user_id == uid).first()
                if not user:
                    session.add(User(
                        user_id=uid,
                        username=DEFAULT_USERNAME,
                        email=DEFAULT_EMAIL,
                    ))
                    logger.info(f"Created default user {DEFAULT_USERNAME}")
                return DEFAULT_USER_ID
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to ensure default user") from e

    # =========================================================================
    # Project CRUD
    # =========================================================================

    def create_project(
        self,
        name: str,
        description: str = "",
        user_id: str = DEFAULT_USER_ID,
    ) -> Dict:
        """Create a new project in ``pending`` status."""
        if not name or not name.strip():
            raise InvalidRequestError("name is required")

        try:
            with self.db.get_session() as session:
                project = Project(
                    project_id=uuid4(),
                    user_id=parse_id(user_id, "user"),
                    name=name.strip(),
                    description=description or "",
                    status=PROJECT_PENDING,
                )
                session.add(project)
                session.flush()

                logger.info(f"Created project: {project.project_id} ({name})")
                return self._project_to_dict(project)

        except SQLAlchemyError as e:
            logger.error(f"Failed to create project: {e}")
            raise PersistenceError("Failed to create project") from e

    def get_project(self, project_id: str, include_children: bool = False) -> Optional[Dict]:
        """Retrieve a live project by ID, or None."""
        pid = parse_id(project_id, "project")
        try:
            with self.db.get_session() as session:
                project = self._live_project(session, pid)
                if not project:
                    return None

                data = self._project_to_dict(project)
                if include_children:
                    data["files"] = [
                        self._file_to_dict(f) for f in project.files if f.deleted_at is None
                    ]
                    data["analysis"] = [
                        {
                            "id": str(t.task_id),
                            "type": t.type,
                            "status": t.status,
                            "created_at": t.created_at.isoformat() if t.created_at else None,
                        }
                        for t in project.analysis_tasks if t.deleted_at is None
                    ]
                return data

        except SQLAlchemyError as e:
            logger.error(f"Failed to get project {project_id}: {e}")
            raise PersistenceError("Failed to fetch project") from e

    def list_projects(self, user_id: Optional[str] = None) -> List[Dict]:
        """List live projects, newest first, optionally for a single user."""
        try:
            with self.db.get_session() as session:
                query = session.query(Project).filter(Project.deleted_at.is_(None))
                if user_id:
                    query = query.filter(Project.user_id == parse_id(user_id, "user"))
                projects = query.order_by(Project.created_at.desc()).all()

                return [self._project_to_dict(p) for p in projects]

        except SQLAlchemyError as e:
            logger.error(f"Failed to list projects: {e}")
            raise PersistenceError("Failed to fetch projects") from e

    def update_project(
        self,
        project_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Dict:
        """Update project fields; empty values leave the field unchanged."""
        if status and status not in PROJECT_STATUSES:
            raise InvalidRequestError(f"Invalid project status: {status}")

        pid = parse_id(project_id, "project")
        try:
            with self.db.get_session() as session:
                project = self._live_project(session, pid)
                if not project:
                    raise NotFoundError("Project not found")

                if name:
                    project.name = name
                if description:
                    project.description = description
                if status:
                    project.status = status
                project.updated_at = datetime.utcnow()
                session.flush()

                return self._project_to_dict(project)

        except SQLAlchemyError as e:
            logger.error(f"Failed to update project {project_id}: {e}")
            raise PersistenceError("Failed to update project") from e

    def set_project_status(self, project_id: str, status: str) -> None:
        """Write the aggregate status column."""
        self.update_project(project_id, status=status)

    def delete_project(self, project_id: str) -> bool:
        """Tombstone a project together with its files and tasks."""
        pid = parse_id(project_id, "project")
        now = datetime.utcnow()
        try:
            with self.db.get_session() as session:
                project = self._live_project(session, pid)
                if not project:
                    return False

                project.deleted_at = now
                session.query(SourceFile).filter(
                    SourceFile.project_id == pid,
                    SourceFile.deleted_at.is_(None),
                ).update({SourceFile.deleted_at: now}, synchronize_session=False)
                session.query(AnalysisTask).filter(
                    AnalysisTask.project_id == pid,
                    AnalysisTask.deleted_at.is_(None),
                ).update({AnalysisTask.deleted_at: now}, synchronize_session=False)

                logger.info(f"Deleted project: {project_id} ({project.name})")
                return True

        except SQLAlchemyError as e:
            logger.error(f"Failed to delete project {project_id}: {e}")
            raise PersistenceError("Failed to delete project") from e

    # =========================================================================
    # Source Files
    # =========================================================================

    def store_file(
        self,
        project_id: str,
        filename: str,
        data: bytes,
        upload_root: str,
        mime_type: Optional[str] = None,
    ) -> Optional[Dict]:
        """Write an uploaded file to disk and record it.

        Text content is captured on the row; binary content never is.
        Returns None when the name is unusable ("." / ".." / empty).
        """
        pid = parse_id(project_id, "project")
        name = sanitize_filename(os.path.basename(filename or ""))
        if name in ("", ".", ".."):
            logger.warning(f"Skipping upload with unusable name {filename!r}")
            return None

        # One directory per file so same-named uploads never share bytes
        file_id = uuid4()
        file_dir = os.path.join(upload_root, str(pid), str(file_id))
        save_path = os.path.join(file_dir, name)
        try:
            os.makedirs(file_dir, exist_ok=True)
            with open(save_path, "wb") as f:
                f.write(data)
        except OSError as e:
            logger.error(f"Failed to write {save_path}: {e}")
            raise PersistenceError(f"Failed to save file: {name}") from e

        content = None
        if classify(data) is ContentKind.TEXT:
            content = data.decode("utf-8")

        try:
            with self.db.get_session() as session:
                source_file = SourceFile(
                    file_id=file_id,
                    project_id=pid,
                    name=name,
                    path=save_path,
                    size_bytes=len(data),
                    mime_type=mime_type,
                    content=content,
                    language=detect_language(name),
                )
                session.add(source_file)
                session.flush()
                return self._file_to_dict(source_file)

        except SQLAlchemyError as e:
            logger.error(f"Failed to save file metadata {name}: {e}")
            raise PersistenceError(f"Failed to save file metadata: {name}") from e

    def get_project_files(self, project_id: str, include_content: bool = False) -> List[Dict]:
        """List live files in a project, in upload order."""
        pid = parse_id(project_id, "project")
        try:
            with self.db.get_session() as session:
                files = session.query(SourceFile).filter(
                    SourceFile.project_id == pid,
                    SourceFile.deleted_at.is_(None),
                ).order_by(SourceFile.created_at).all()

                return [self._file_to_dict(f, include_content) for f in files]

        except SQLAlchemyError as e:
            logger.error(f"Failed to get files for project {project_id}: {e}")
            raise PersistenceError("Failed to fetch files") from e

    def count_files(self, project_id: str) -> int:
        pid = parse_id(project_id, "project")
        try:
            with self.db.get_session() as session:
                return session.query(SourceFile).filter(
                    SourceFile.project_id == pid,
                    SourceFile.deleted_at.is_(None),
                ).count()
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to count files") from e

    def get_file(self, file_id: str) -> Optional[Dict]:
        fid = parse_id(file_id, "file")
        try:
            with self.db.get_session() as session:
                source_file = session.query(SourceFile).filter(
                    SourceFile.file_id == fid,
                    SourceFile.deleted_at.is_(None),
                ).first()
                if not source_file:
                    return None
                return self._file_to_dict(source_file, include_content=True)
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to fetch file") from e

    def delete_file(self, file_id: str) -> bool:
        """Tombstone a file and remove its bytes from disk.

        Analysis tasks that reference the file are left untouched.
        """
        fid = parse_id(file_id, "file")
        try:
            with self.db.get_session() as session:
                source_file = session.query(SourceFile).filter(
                    SourceFile.file_id == fid,
                    SourceFile.deleted_at.is_(None),
                ).first()
                if not source_file:
                    return False
                source_file.deleted_at = datetime.utcnow()
                path = source_file.path
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to delete file") from e

        try:
            os.remove(path)
        except FileNotFoundError:
            logger.debug(f"File already gone from disk: {path}")
        try:
            os.rmdir(os.path.dirname(path))
        except OSError as e:
            logger.debug(f"Left upload directory in place: {e}")
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _live_project(session, pid: UUID) -> Optional[Project]:
        return session.query(Project).filter(
            Project.project_id == pid,
            Project.deleted_at.is_(None),
        ).first()

    @staticmethod
    def _project_to_dict(project: Project) -> Dict:
        return {
            "project_id": str(project.project_id),
            "user_id": str(project.user_id),
            "name": project.name,
            "description": project.description or "",
            "status": project.status,
            "created_at": project.created_at.isoformat() if project.created_at else None,
            "updated_at": project.updated_at.isoformat() if project.updated_at else None,
        }

    @staticmethod
    def _file_to_dict(source_file: SourceFile, include_content: bool = False) -> Dict:
        data = {
            "file_id": str(source_file.file_id),
            "project_id": str(source_file.project_id),
            "name": source_file.name,
            "path": source_file.path,
            "size_bytes": source_file.size_bytes,
            "mime_type": source_file.mime_type,
            "language": source_file.language,
            "is_text": source_file.content is not None,
            "created_at": source_file.created_at.isoformat() if source_file.created_at else None,
        }
        if include_content:
            data["content"] = source_file.content
        return data
