"""Tests for TaskStore against an in-memory SQLite database.

Tests cover:
- Task creation (pending, created_at == updated_at)
- Lifecycle transitions and terminal states
- Reads: full record, status projection, per-project listing
- Soft delete visibility
- Persistence failures surfacing as PersistenceError
"""

from datetime import datetime
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from revlens.core.analysis import TaskStatus, TaskStore
from revlens.core.errors import (
    InvalidRequestError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
)


# ── Tests: Creation ──────────────────────────────────────────────────────


class TestCreateTask:

    def test_new_task_is_pending(self, task_store, project):
        task = task_store.create_task(project["project_id"], "code_analysis")

        assert task["status"] == "pending"
        assert task["type"] == "code_analysis"
        assert task["project_id"] == project["project_id"]
        assert task["file_id"] is None
        assert task["result"] is None
        assert task["metadata"] is None

    def test_timestamps_equal_on_creation(self, task_store, project):
        task = task_store.create_task(project["project_id"], "documentation")
        status = task_store.get_task_status(task["id"])

        assert task["created_at"] == task["updated_at"]
        assert status["created_at"] == status["updated_at"]

    def test_ids_are_distinct(self, task_store, project):
        a = task_store.create_task(project["project_id"], "code_analysis")
        b = task_store.create_task(project["project_id"], "code_analysis")
        assert a["id"] != b["id"]

    def test_unknown_type_is_stored(self, task_store, project):
        """Type is an open tag; the store does not validate it."""
        task = task_store.create_task(project["project_id"], "security_scan")
        assert task_store.get_task(task["id"])["type"] == "security_scan"

    def test_malformed_project_id(self, task_store):
        with pytest.raises(InvalidRequestError):
            task_store.create_task("nope", "code_analysis")

    def test_database_failure_raises_persistence_error(self):
        db = MagicMock()
        db.get_session.side_effect = OperationalError("INSERT", {}, Exception("down"))
        store = TaskStore(db)

        with pytest.raises(PersistenceError):
            store.create_task(str(uuid4()), "code_analysis")


# ── Tests: Transitions ───────────────────────────────────────────────────


class TestUpdateStatus:

    def test_full_lifecycle(self, task_store, project):
        task = task_store.create_task(project["project_id"], "code_analysis")

        processing = task_store.update_status(task["id"], TaskStatus.PROCESSING)
        assert processing["status"] == "processing"

        done = task_store.update_status(
            task["id"], TaskStatus.COMPLETED, result="ok", metadata={"files_analyzed": 1}
        )
        assert done["status"] == "completed"
        assert done["result"] == "ok"
        assert done["metadata"] == {"files_analyzed": 1}
        assert done["updated_at"] >= done["created_at"]

    def test_failed_records_metadata(self, task_store, project):
        task = task_store.create_task(project["project_id"], "code_analysis")
        task_store.update_status(task["id"], TaskStatus.PROCESSING)

        failed = task_store.update_status(
            task["id"], TaskStatus.FAILED, metadata={"error": "boom"}
        )
        assert failed["status"] == "failed"
        assert failed["metadata"]["error"] == "boom"

    def test_pending_cannot_skip_to_completed(self, task_store, project):
        task = task_store.create_task(project["project_id"], "code_analysis")

        with pytest.raises(InvalidTransitionError):
            task_store.update_status(task["id"], TaskStatus.COMPLETED)
        assert task_store.get_task(task["id"])["status"] == "pending"

    @pytest.mark.parametrize("terminal", [TaskStatus.COMPLETED, TaskStatus.FAILED])
    def test_terminal_states_are_never_left(self, task_store, project, terminal):
        task = task_store.create_task(project["project_id"], "code_analysis")
        task_store.update_status(task["id"], TaskStatus.PROCESSING)
        task_store.update_status(task["id"], terminal)

        for target in TaskStatus:
            with pytest.raises(InvalidTransitionError) as exc_info:
                task_store.update_status(task["id"], target)
            assert exc_info.value.current is terminal
        assert task_store.get_task(task["id"])["status"] == terminal.value

    def test_invalid_transition_is_invalid_request(self):
        assert issubclass(InvalidTransitionError, InvalidRequestError)

    def test_missing_task(self, task_store):
        with pytest.raises(NotFoundError):
            task_store.update_status(str(uuid4()), TaskStatus.PROCESSING)


# ── Tests: Reads ─────────────────────────────────────────────────────────


class TestReads:

    def test_get_task_is_idempotent(self, task_store, project):
        task = task_store.create_task(project["project_id"], "code_analysis")
        assert task_store.get_task(task["id"]) == task_store.get_task(task["id"])

    def test_get_task_missing(self, task_store):
        with pytest.raises(NotFoundError):
            task_store.get_task(str(uuid4()))

    def test_status_projection_keys(self, task_store, project):
        task = task_store.create_task(project["project_id"], "code_analysis")
        status = task_store.get_task_status(task["id"])

        assert set(status) == {"id", "status", "created_at", "updated_at"}
        assert status["id"] == task["id"]
        assert status["status"] == "pending"

    def test_list_newest_first(self, task_store, project):
        with patch("revlens.core.analysis.store.datetime") as mock_dt:
            mock_dt.utcnow.side_effect = [datetime(2026, 1, 1, 9, 0), datetime(2026, 1, 1, 9, 5)]
            first = task_store.create_task(project["project_id"], "code_analysis")
            second = task_store.create_task(project["project_id"], "documentation")

        ids = [t["id"] for t in task_store.list_tasks(project["project_id"])]
        assert ids == [second["id"], first["id"]]

    def test_list_order_is_stable_for_equal_timestamps(self, task_store, project):
        with patch("revlens.core.analysis.store.datetime") as mock_dt:
            mock_dt.utcnow.return_value = datetime(2026, 1, 1, 9, 0)
            created = [
                task_store.create_task(project["project_id"], kind)
                for kind in ("code_analysis", "documentation", "dependency_map", "pattern_detection")
            ]

        listed = [t["id"] for t in task_store.list_tasks(project["project_id"])]
        assert listed == sorted((t["id"] for t in created), reverse=True)
        assert [t["id"] for t in task_store.list_tasks(project["project_id"])] == listed

    def test_list_scoped_to_project(self, task_store, project, project_manager):
        other = project_manager.create_project("other")
        task_store.create_task(other["project_id"], "code_analysis")

        assert task_store.list_tasks(project["project_id"]) == []

    def test_status_counts(self, task_store, project):
        a = task_store.create_task(project["project_id"], "code_analysis")
        task_store.create_task(project["project_id"], "documentation")
        task_store.update_status(a["id"], TaskStatus.PROCESSING)

        assert task_store.status_counts(project["project_id"]) == {
            "pending": 1,
            "processing": 1,
        }


# ── Tests: Soft delete ───────────────────────────────────────────────────


class TestSoftDelete:

    def test_deleted_task_is_invisible(self, task_store, project):
        task = task_store.create_task(project["project_id"], "code_analysis")

        assert task_store.soft_delete_task(task["id"]) is True

        with pytest.raises(NotFoundError):
            task_store.get_task(task["id"])
        with pytest.raises(NotFoundError):
            task_store.get_task_status(task["id"])
        assert task_store.list_tasks(project["project_id"]) == []

    def test_second_delete_is_noop(self, task_store, project):
        task = task_store.create_task(project["project_id"], "code_analysis")
        task_store.soft_delete_task(task["id"])
        assert task_store.soft_delete_task(task["id"]) is False

    def test_deleted_task_cannot_transition(self, task_store, project):
        task = task_store.create_task(project["project_id"], "code_analysis")
        task_store.soft_delete_task(task["id"])

        with pytest.raises(NotFoundError):
            task_store.update_status(task["id"], TaskStatus.PROCESSING)
