"""
Database module for RevLens.

Exports:
- DatabaseManager: Database connection and session management
- wait_for_db: Database availability checker with retry logic
- Models: User, Project, SourceFile, AnalysisTask, DispatchEntry
- Base: SQLAlchemy declarative base
"""

from .db import DatabaseManager, wait_for_db
from .models import (
    Base,
    User,
    Project,
    SourceFile,
    AnalysisTask,
    DispatchEntry,
)

__all__ = [
    # Database management
    "DatabaseManager",
    "wait_for_db",

    # ORM models
    "Base",
    "User",
    "Project",
    "SourceFile",
    "AnalysisTask",
    "DispatchEntry",
]
