"""Background worker consuming the analysis dispatch queue.

Same shape as the other background workers in this codebase:
- Daemon thread with its own asyncio event loop
- Polls the queue every poll_interval when it is empty
- Blocking work (DB, LLM) runs via asyncio.to_thread

Per descriptor: pending → processing → completed|failed, then a
best-effort refresh of the project's aggregate status. There is no retry:
a descriptor whose task is no longer pending (redelivery, or a task that
was deleted) is logged and dropped.
"""

import asyncio
import logging
import threading
from datetime import datetime
from typing import Optional
from uuid import uuid4

from ..errors import InvalidTransitionError, NotFoundError
from ..project import ProjectManager
from .generator import AnalysisGenerator, to_file_inputs
from .models import TaskDescriptor, TaskStatus
from .orchestrator import rollup_status
from .queue import DispatchQueue
from .store import TaskStore

logger = logging.getLogger(__name__)


class AnalysisWorker:
    """Consume TaskDescriptors and drive their tasks to a terminal state.

    Lifecycle:
    1. start() spawns a daemon thread with an asyncio loop
    2. _main_loop() claims descriptors until the queue is empty, then sleeps
    3. process_one() handles exactly one descriptor
    4. stop() signals shutdown
    """

    def __init__(
        self,
        dispatch_queue: DispatchQueue,
        task_store: TaskStore,
        project_manager: ProjectManager,
        generator: AnalysisGenerator,
        poll_interval: float = 2.0,
    ):
        self._queue = dispatch_queue
        self._tasks = task_store
        self._projects = project_manager
        self._generator = generator
        self.poll_interval = poll_interval
        self.worker_id = f"analysis-{uuid4()}"

        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def start(self):
        """Start the background worker thread."""
        if self._running:
            logger.warning("Analysis worker already running")
            return
        self._running = True
        self._thread = threading.Thread(
            target=self._run_loop, daemon=True, name="analysis-worker"
        )
        self._thread.start()
        logger.info(f"Analysis worker {self.worker_id} started on {self._queue.name}")

    def stop(self):
        """Stop the background worker."""
        self._running = False
        if self._thread:
            self._thread.join(timeout=self.poll_interval + 5.0)
        logger.info("Analysis worker stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    def _run_loop(self):
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._main_loop())
        except Exception as e:
            logger.error(f"Analysis worker loop error: {e}")
        finally:
            self._loop.close()

    async def _main_loop(self):
        while self._running:
            try:
                handled = await asyncio.to_thread(self.process_one)
            except Exception as e:
                logger.error(f"Error in analysis worker loop: {e}")
                handled = False
            if not handled:
                await asyncio.sleep(self.poll_interval)

    # ── One cycle ───────────────────────────────────────────────────────

    def process_one(self) -> bool:
        """Claim and process a single descriptor.

        Returns:
            True if a descriptor was claimed (whatever its outcome),
            False if the queue was empty
        """
        descriptor = self._queue.claim(self.worker_id)
        if descriptor is None:
            return False

        logger.info(
            f"Processing analysis {descriptor.analysis_id} "
            f"({descriptor.type}) for project {descriptor.project_id}"
        )

        try:
            self._tasks.update_status(descriptor.analysis_id, TaskStatus.PROCESSING)
        except InvalidTransitionError as e:
            if e.current is not None and e.current.is_terminal:
                logger.info(
                    f"Dropping redelivered analysis {descriptor.analysis_id}: "
                    f"already {e.current.value}"
                )
            else:
                logger.warning(f"Skipping analysis {descriptor.analysis_id}: {e}")
            return True
        except NotFoundError as e:
            logger.warning(f"Skipping analysis {descriptor.analysis_id}: {e}")
            return True

        self._run_task(descriptor)
        self._refresh_project_status(descriptor.project_id)
        return True

    def _run_task(self, descriptor: TaskDescriptor) -> None:
        started = datetime.utcnow()
        try:
            files = self._projects.get_project_files(
                descriptor.project_id, include_content=True
            )
            result = self._generator.generate(descriptor.type, to_file_inputs(files))
        except Exception as e:
            logger.error(f"Analysis {descriptor.analysis_id} failed: {e}")
            self._tasks.update_status(
                descriptor.analysis_id,
                TaskStatus.FAILED,
                metadata={"error": str(e), "worker_id": self.worker_id},
            )
            return

        elapsed = (datetime.utcnow() - started).total_seconds()
        self._tasks.update_status(
            descriptor.analysis_id,
            TaskStatus.COMPLETED,
            result=result,
            metadata={
                "files_analyzed": len(files),
                "duration_seconds": round(elapsed, 3),
                "worker_id": self.worker_id,
            },
        )

    def _refresh_project_status(self, project_id: str) -> None:
        try:
            status = rollup_status(self._tasks.status_counts(project_id))
            self._projects.set_project_status(project_id, status)
        except Exception as e:
            logger.warning(f"Failed to refresh status of project {project_id}: {e}")
