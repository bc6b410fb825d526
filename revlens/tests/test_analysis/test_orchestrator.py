"""Tests for AnalysisOrchestrator.

Uses a real in-memory SQLite store so persisted side effects (tasks left
behind by a partial batch) can be observed directly.
"""

from datetime import datetime
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from revlens.core.analysis import (
    AnalysisOrchestrator,
    TaskDescriptor,
    TaskStatus,
    rollup_status,
)
from revlens.core.errors import (
    InvalidRequestError,
    NotFoundError,
    PersistenceError,
    QueueError,
)


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def orchestrator(project_manager, task_store, memory_queue):
    return AnalysisOrchestrator(project_manager, task_store, memory_queue)


def _drain(queue):
    items = []
    while True:
        d = queue.claim("test")
        if d is None:
            return items
        items.append(d)


# ── Tests: Validation ────────────────────────────────────────────────────


class TestStartAnalysisValidation:

    def test_missing_project(self, orchestrator, memory_queue):
        with pytest.raises(NotFoundError):
            orchestrator.start_analysis(str(uuid4()), ["code_analysis"])
        assert memory_queue.size() == 0

    def test_deleted_project(self, orchestrator, project, project_manager):
        project_manager.delete_project(project["project_id"])

        with pytest.raises(NotFoundError):
            orchestrator.start_analysis(project["project_id"], ["code_analysis"])

    def test_project_without_files(self, orchestrator, project_manager, task_store, memory_queue):
        empty = project_manager.create_project("empty")

        with pytest.raises(InvalidRequestError):
            orchestrator.start_analysis(empty["project_id"], ["code_analysis"])
        assert task_store.list_tasks(empty["project_id"]) == []
        assert memory_queue.size() == 0

    def test_empty_types(self, orchestrator, project, task_store):
        with pytest.raises(InvalidRequestError):
            orchestrator.start_analysis(project["project_id"], [])
        assert task_store.list_tasks(project["project_id"]) == []

    def test_blank_type(self, orchestrator, project):
        with pytest.raises(InvalidRequestError):
            orchestrator.start_analysis(project["project_id"], ["code_analysis", "  "])

    def test_missing_project_checked_before_types(self, orchestrator):
        with pytest.raises(NotFoundError):
            orchestrator.start_analysis(str(uuid4()), [])

    def test_malformed_project_id(self, orchestrator):
        with pytest.raises(InvalidRequestError):
            orchestrator.start_analysis("not-a-uuid", ["code_analysis"])


# ── Tests: Batch creation ────────────────────────────────────────────────


class TestStartAnalysis:

    def test_creates_one_pending_task_per_type(self, orchestrator, project, memory_queue):
        tasks = orchestrator.start_analysis(
            project["project_id"], ["code_analysis", "documentation"]
        )

        assert [t["type"] for t in tasks] == ["code_analysis", "documentation"]
        assert all(t["status"] == "pending" for t in tasks)
        assert len({t["id"] for t in tasks}) == 2

        descriptors = _drain(memory_queue)
        assert descriptors == [
            TaskDescriptor(t["id"], project["project_id"], t["type"]) for t in tasks
        ]

    def test_duplicate_types_are_kept(self, orchestrator, project):
        tasks = orchestrator.start_analysis(
            project["project_id"], ["code_analysis", "code_analysis"]
        )
        assert len(tasks) == 2

    def test_unknown_type_accepted(self, orchestrator, project, caplog):
        with caplog.at_level("INFO", logger="revlens.core.analysis.orchestrator"):
            tasks = orchestrator.start_analysis(project["project_id"], ["license_audit", "documentation"])

        assert tasks[0]["type"] == "license_audit"
        assert "['license_audit']" in caplog.text

    def test_marks_project_analyzing(self, orchestrator, project, project_manager):
        orchestrator.start_analysis(project["project_id"], ["code_analysis"])
        assert project_manager.get_project(project["project_id"])["status"] == "analyzing"

    def test_fresh_task_timestamps_match(self, orchestrator, project):
        task = orchestrator.start_analysis(project["project_id"], ["code_analysis"])[0]
        status = orchestrator.get_task_status(task["id"])

        assert status["status"] == "pending"
        assert status["created_at"] == status["updated_at"]

    def test_enqueue_failure_leaves_pending_task(self, project_manager, task_store, project):
        queue = MagicMock()
        queue.enqueue.side_effect = [None, QueueError("Failed to queue analysis task")]
        orchestrator = AnalysisOrchestrator(project_manager, task_store, queue)

        with pytest.raises(QueueError):
            orchestrator.start_analysis(
                project["project_id"],
                ["code_analysis", "documentation", "pattern_detection"],
            )

        tasks = task_store.list_tasks(project["project_id"])
        assert sorted(t["type"] for t in tasks) == ["code_analysis", "documentation"]
        assert all(t["status"] == "pending" for t in tasks)
        assert queue.enqueue.call_count == 2

    def test_create_failure_keeps_earlier_tasks(self, project_manager, task_store, project, memory_queue):
        store = MagicMock(wraps=task_store)
        store.create_task.side_effect = [
            task_store.create_task(project["project_id"], "code_analysis"),
            PersistenceError("Failed to create analysis task"),
        ]
        orchestrator = AnalysisOrchestrator(project_manager, store, memory_queue)

        with pytest.raises(PersistenceError):
            orchestrator.start_analysis(
                project["project_id"], ["code_analysis", "documentation"]
            )

        assert memory_queue.size() == 1
        assert len(task_store.list_tasks(project["project_id"])) == 1

    def test_status_update_failure_is_swallowed(self, task_store, memory_queue):
        pid = str(uuid4())
        projects = MagicMock()
        projects.get_project.return_value = {"project_id": pid}
        projects.count_files.return_value = 1
        projects.set_project_status.side_effect = PersistenceError("db down")
        orchestrator = AnalysisOrchestrator(projects, task_store, memory_queue)

        tasks = orchestrator.start_analysis(pid, ["code_analysis"])

        assert len(tasks) == 1
        projects.set_project_status.assert_called_once_with(pid, "analyzing")


# ── Tests: Retrieval ─────────────────────────────────────────────────────


class TestRetrieval:

    def test_tasks_by_project_newest_first(self, orchestrator, project):
        with patch("revlens.core.analysis.store.datetime") as mock_dt:
            mock_dt.utcnow.side_effect = [datetime(2026, 1, 1, 9, 0), datetime(2026, 1, 1, 9, 5)]
            created = orchestrator.start_analysis(
                project["project_id"], ["code_analysis", "documentation"]
            )
        listed = orchestrator.get_tasks_by_project(project["project_id"])

        assert [t["id"] for t in listed] == [t["id"] for t in reversed(created)]

    def test_tasks_by_missing_project(self, orchestrator):
        with pytest.raises(NotFoundError):
            orchestrator.get_tasks_by_project(str(uuid4()))

    def test_get_task_idempotent(self, orchestrator, project):
        task = orchestrator.start_analysis(project["project_id"], ["code_analysis"])[0]
        assert orchestrator.get_task(task["id"]) == orchestrator.get_task(task["id"])

    def test_get_missing_task(self, orchestrator):
        with pytest.raises(NotFoundError):
            orchestrator.get_task(str(uuid4()))
        with pytest.raises(NotFoundError):
            orchestrator.get_task_status(str(uuid4()))

    def test_project_rollup(self, orchestrator, project, task_store):
        assert orchestrator.get_project_rollup(project["project_id"]) == "pending"

        task = orchestrator.start_analysis(project["project_id"], ["code_analysis"])[0]
        assert orchestrator.get_project_rollup(project["project_id"]) == "analyzing"

        task_store.update_status(task["id"], TaskStatus.PROCESSING)
        task_store.update_status(task["id"], TaskStatus.COMPLETED, result="ok")
        assert orchestrator.get_project_rollup(project["project_id"]) == "completed"


class TestRollupStatus:

    @pytest.mark.parametrize("counts,expected", [
        ({}, "pending"),
        ({"pending": 1, "completed": 2}, "analyzing"),
        ({"processing": 1, "failed": 1}, "analyzing"),
        ({"completed": 2, "failed": 1}, "failed"),
        ({"completed": 3}, "completed"),
    ])
    def test_rollup(self, counts, expected):
        assert rollup_status(counts) == expected
