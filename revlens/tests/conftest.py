"""Shared fixtures: an in-memory SQLite database with the full schema."""

import pytest

from revlens.core.analysis import InMemoryDispatchQueue, TaskStore
from revlens.core.db import DatabaseManager
from revlens.core.project import ProjectManager


@pytest.fixture
def db_manager():
    db = DatabaseManager("sqlite://")
    db.create_tables()
    yield db
    db.dispose()


@pytest.fixture
def project_manager(db_manager):
    pm = ProjectManager(db_manager)
    pm.ensure_default_user()
    return pm


@pytest.fixture
def task_store(db_manager):
    return TaskStore(db_manager)


@pytest.fixture
def memory_queue():
    return InMemoryDispatchQueue("test:queue", retry_factor=0)


@pytest.fixture
def upload_dir(tmp_path):
    return str(tmp_path / "uploads")


@pytest.fixture
def project(project_manager, upload_dir):
    """A project holding one Go source file."""
    p = project_manager.create_project("demo", "demo project")
    project_manager.store_file(
        p["project_id"], "main.go", b"package main\n\nfunc main() {}\n", upload_dir
    )
    return p
