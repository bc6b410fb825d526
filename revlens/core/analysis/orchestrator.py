"""Analysis Orchestrator: turns batch requests into dispatched tasks.

Public API consumed by API routes:
    start_analysis(project_id, types) -> list of created tasks
    get_tasks_by_project(project_id) -> tasks, newest first
    get_task(task_id) -> full task record
    get_task_status(task_id) -> {id, status, created_at, updated_at}
    get_project_rollup(project_id) -> aggregate status derived from tasks

Batch creation is not atomic across tasks. A failure part-way through
leaves the tasks already created (and queued) in place, and a task whose
descriptor could not be queued stays persisted as ``pending``.
"""

import logging
from typing import Any, Dict, List, Sequence

from ..constants import (
    PROJECT_ANALYZING,
    PROJECT_COMPLETED,
    PROJECT_FAILED,
    PROJECT_PENDING,
)
from ..errors import InvalidRequestError, NotFoundError, RevLensError
from ..project import ProjectManager
from .models import AnalysisType, TaskDescriptor, TaskStatus
from .queue import DispatchQueue
from .store import TaskStore

logger = logging.getLogger(__name__)


def rollup_status(counts: Dict[str, int]) -> str:
    """Aggregate project status from per-status task counts.

    No tasks → pending; anything still pending/processing → analyzing;
    otherwise failed if any task failed, else completed.
    """
    if not any(counts.values()):
        return PROJECT_PENDING
    if counts.get(TaskStatus.PENDING.value) or counts.get(TaskStatus.PROCESSING.value):
        return PROJECT_ANALYZING
    if counts.get(TaskStatus.FAILED.value):
        return PROJECT_FAILED
    return PROJECT_COMPLETED


class AnalysisOrchestrator:
    """Validate, persist and enqueue analysis tasks; serve status lookups.

    Never moves a task past ``pending``: every later transition belongs
    to the worker consuming the dispatch queue.
    """

    def __init__(
        self,
        project_manager: ProjectManager,
        task_store: TaskStore,
        dispatch_queue: DispatchQueue,
    ):
        self._projects = project_manager
        self._tasks = task_store
        self._queue = dispatch_queue

    # ── Batch creation ──────────────────────────────────────────────────

    def start_analysis(self, project_id: str, types: Sequence[str]) -> List[Dict[str, Any]]:
        """Create and enqueue one task per requested analysis type.

        Args:
            project_id: Project to analyze
            types: Analysis type tags, processed in the given order

        Returns:
            Created tasks in request order

        Raises:
            NotFoundError: project missing or deleted
            InvalidRequestError: no types requested, or project has no files
            PersistenceError: a task could not be created (earlier tasks stay)
            QueueError: a descriptor could not be queued (its task stays pending)
        """
        project = self._projects.get_project(project_id)
        if not project:
            raise NotFoundError("Project not found")

        if not types:
            raise InvalidRequestError("At least one analysis type is required")
        if any(not isinstance(t, str) or not t.strip() for t in types):
            raise InvalidRequestError("Analysis types must be non-empty strings")

        if self._projects.count_files(project_id) == 0:
            raise InvalidRequestError("No files found in project")

        unknown = [t for t in types if t not in AnalysisType.values()]
        if unknown:
            logger.info(f"Accepting unrecognised analysis type(s) {unknown} as open tags")

        pid = project["project_id"]
        created: List[Dict[str, Any]] = []

        for analysis_type in types:
            task = self._tasks.create_task(pid, analysis_type)

            descriptor = TaskDescriptor(
                analysis_id=task["id"],
                project_id=pid,
                type=analysis_type,
            )
            try:
                self._queue.enqueue(descriptor)
            except RevLensError:
                logger.error(
                    f"Analysis {task['id']} ({analysis_type}) persisted but not queued; "
                    f"left pending after {len(created)} queued task(s)"
                )
                raise

            created.append(task)

        self._mark_project_analyzing(pid)

        logger.info(f"Started {len(created)} analysis task(s) for project {pid}")
        return created

    def _mark_project_analyzing(self, project_id: str) -> None:
        """Best-effort aggregate status update; failures are only logged."""
        try:
            self._projects.set_project_status(project_id, PROJECT_ANALYZING)
        except Exception as e:
            logger.warning(f"Failed to mark project {project_id} analyzing: {e}")

    # ── Retrieval ───────────────────────────────────────────────────────

    def get_tasks_by_project(self, project_id: str) -> List[Dict[str, Any]]:
        if not self._projects.get_project(project_id):
            raise NotFoundError("Project not found")
        return self._tasks.list_tasks(project_id)

    def get_task(self, task_id: str) -> Dict[str, Any]:
        return self._tasks.get_task(task_id)

    def get_task_status(self, task_id: str) -> Dict[str, Any]:
        return self._tasks.get_task_status(task_id)

    def get_project_rollup(self, project_id: str) -> str:
        """Aggregate status recomputed from the project's live tasks."""
        if not self._projects.get_project(project_id):
            raise NotFoundError("Project not found")
        return rollup_status(self._tasks.status_counts(project_id))
