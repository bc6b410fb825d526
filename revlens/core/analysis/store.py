"""Task Store: durable AnalysisTask records.

Every write runs in its own session, so each row change is atomic on its
own; nothing here spans multiple tasks in one transaction. Tombstoned
tasks (deleted_at set) are invisible to every read.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from ..db import DatabaseManager
from ..db.models import AnalysisTask
from ..errors import (
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
)
from ..utils import parse_id
from .models import TaskStatus

logger = logging.getLogger(__name__)


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts else None


def task_to_dict(task: AnalysisTask) -> Dict[str, Any]:
    return {
        "id": str(task.task_id),
        "project_id": str(task.project_id),
        "file_id": str(task.file_id) if task.file_id else None,
        "type": task.type,
        "status": task.status,
        "result": task.result,
        "metadata": task.task_metadata,
        "created_at": _iso(task.created_at),
        "updated_at": _iso(task.updated_at),
    }


class TaskStore:
    """Create/read/update/soft-delete for AnalysisTask rows."""

    def __init__(self, db_manager: DatabaseManager):
        self._db = db_manager

    # ── Writes ──────────────────────────────────────────────────────────

    def create_task(
        self,
        project_id: str,
        analysis_type: str,
        file_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Persist a new task in ``pending`` with created_at == updated_at."""
        pid = parse_id(project_id, "project")
        fid = parse_id(file_id, "file") if file_id else None
        now = datetime.utcnow()

        try:
            with self._db.get_session() as session:
                task = AnalysisTask(
                    task_id=uuid4(),
                    project_id=pid,
                    file_id=fid,
                    type=analysis_type,
                    status=TaskStatus.PENDING.value,
                    created_at=now,
                    updated_at=now,
                )
                session.add(task)
                session.flush()
                created = task_to_dict(task)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create {analysis_type} task for project {project_id}: {e}")
            raise PersistenceError("Failed to create analysis task") from e

        logger.info(f"Created analysis task {created['id']} ({analysis_type}) for project {project_id}")
        return created

    def update_status(
        self,
        task_id: str,
        status: TaskStatus,
        result: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Move a task along its lifecycle.

        This is the operation the queue consumer performs. Only
        pending → processing and processing → completed|failed are
        accepted; the change is a compare-and-set on the current status
        so two concurrent workers cannot both win.
        """
        tid = parse_id(task_id, "analysis")
        target = TaskStatus(status)

        try:
            with self._db.get_session() as session:
                task = self._live_query(session).filter(
                    AnalysisTask.task_id == tid
                ).first()
                if not task:
                    raise NotFoundError("Analysis not found")

                current = TaskStatus(task.status)
                if not current.can_transition_to(target):
                    raise InvalidTransitionError(
                        f"Cannot move analysis {task_id} from {current.value} to {target.value}",
                        current=current,
                    )

                values: Dict[Any, Any] = {
                    AnalysisTask.status: target.value,
                    AnalysisTask.updated_at: datetime.utcnow(),
                }
                if result is not None:
                    values[AnalysisTask.result] = result
                if metadata is not None:
                    values[AnalysisTask.task_metadata] = metadata

                updated = session.query(AnalysisTask).filter(
                    AnalysisTask.task_id == tid,
                    AnalysisTask.status == current.value,
                ).update(values, synchronize_session=False)
                if updated != 1:
                    raise InvalidTransitionError(
                        f"Analysis {task_id} changed concurrently; expected {current.value}"
                    )

                session.flush()
                session.expire(task)
                refreshed = task_to_dict(task)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update analysis {task_id}: {e}")
            raise PersistenceError("Failed to update analysis task") from e

        logger.info(f"Analysis {task_id}: {current.value} -> {target.value}")
        return refreshed

    def soft_delete_task(self, task_id: str) -> bool:
        """Tombstone a task; it stays in the table for audit."""
        tid = parse_id(task_id, "analysis")
        try:
            with self._db.get_session() as session:
                updated = self._live_query(session).filter(
                    AnalysisTask.task_id == tid
                ).update(
                    {AnalysisTask.deleted_at: datetime.utcnow()},
                    synchronize_session=False,
                )
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to delete analysis task") from e
        return updated == 1

    # ── Reads ───────────────────────────────────────────────────────────

    def get_task(self, task_id: str) -> Dict[str, Any]:
        """Full task record including result and metadata."""
        tid = parse_id(task_id, "analysis")
        try:
            with self._db.get_session() as session:
                task = self._live_query(session).filter(
                    AnalysisTask.task_id == tid
                ).first()
                if not task:
                    raise NotFoundError("Analysis not found")
                return task_to_dict(task)
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to fetch analysis") from e

    def get_task_status(self, task_id: str) -> Dict[str, Any]:
        """Status projection; selects only the four columns it returns."""
        tid = parse_id(task_id, "analysis")
        try:
            with self._db.get_session() as session:
                row = session.query(
                    AnalysisTask.task_id,
                    AnalysisTask.status,
                    AnalysisTask.created_at,
                    AnalysisTask.updated_at,
                ).filter(
                    AnalysisTask.task_id == tid,
                    AnalysisTask.deleted_at.is_(None),
                ).first()
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to fetch analysis status") from e

        if not row:
            raise NotFoundError("Analysis not found")

        return {
            "id": str(row.task_id),
            "status": row.status,
            "created_at": _iso(row.created_at),
            "updated_at": _iso(row.updated_at),
        }

    def list_tasks(self, project_id: str) -> List[Dict[str, Any]]:
        """Live tasks of a project, most recent first."""
        pid = parse_id(project_id, "project")
        try:
            with self._db.get_session() as session:
                tasks = self._live_query(session).filter(
                    AnalysisTask.project_id == pid
                ).order_by(
                    AnalysisTask.created_at.desc(),
                    AnalysisTask.task_id.desc(),
                ).all()
                return [task_to_dict(t) for t in tasks]
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to fetch analyses") from e

    def status_counts(self, project_id: str) -> Dict[str, int]:
        """Count live tasks per status for a project."""
        pid = parse_id(project_id, "project")
        try:
            with self._db.get_session() as session:
                rows = session.query(AnalysisTask.status).filter(
                    AnalysisTask.project_id == pid,
                    AnalysisTask.deleted_at.is_(None),
                ).all()
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to count analyses") from e

        counts: Dict[str, int] = {}
        for (status,) in rows:
            counts[status] = counts.get(status, 0) + 1
        return counts

    @staticmethod
    def _live_query(session):
        return session.query(AnalysisTask).filter(AnalysisTask.deleted_at.is_(None))
