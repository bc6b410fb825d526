"""
SQLAlchemy ORM Models for RevLens

Source analysis platform models:
- User: Owning user of projects
- Project: A set of uploaded source files (aggregate analysis status)
- SourceFile: Individual uploaded file within a project
- AnalysisTask: One asynchronous analysis job (pending → processing → completed|failed)
- DispatchEntry: Durable queue rows for the SQL dispatch transport

Projects, files and tasks are never hard-deleted by the application;
they carry a deleted_at tombstone and are excluded from default queries.
"""

from sqlalchemy import (
    Column, String, Integer, Text, TIMESTAMP, ForeignKey, BigInteger,
    Index, TypeDecorator, JSON,
)
from sqlalchemy.orm import relationship, declarative_base
from sqlalchemy.dialects.postgresql import UUID as PostgreSQL_UUID, JSONB
import uuid
from datetime import datetime

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


# UUID type that works with both PostgreSQL and SQLite
class UUID(TypeDecorator):
    """Platform-independent UUID type.

    Uses PostgreSQL's UUID type when available, otherwise stores as String(36).
    """
    impl = String
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PostgreSQL_UUID(as_uuid=True))
        else:
            return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        elif dialect.name == 'postgresql':
            return value
        else:
            if isinstance(value, uuid.UUID):
                return str(value)
            else:
                return str(uuid.UUID(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        elif dialect.name == 'postgresql':
            return value
        else:
            if isinstance(value, uuid.UUID):
                return value
            else:
                return uuid.UUID(value)


# =============================================================================
# Core User Model
# =============================================================================

class User(Base):
    """Owner of projects."""
    __tablename__ = "users"

    user_id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    username = Column(String(255), unique=True, nullable=False)
    email = Column(String(255), unique=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)

    projects = relationship("Project", back_populates="user")

    def __repr__(self):
        return f"<User(user_id={self.user_id}, username='{self.username}')>"


# =============================================================================
# Project & File Models
# =============================================================================

class Project(Base):
    """A group of uploaded source files submitted for analysis."""
    __tablename__ = "projects"
    __table_args__ = (
        Index('idx_user_projects', 'user_id', 'created_at'),
        Index('idx_projects_deleted', 'deleted_at'),
    )

    project_id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, default="")
    status = Column(String(20), default='pending', nullable=False)  # pending, analyzing, completed, failed
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    deleted_at = Column(TIMESTAMP, nullable=True)

    # Relationships
    user = relationship("User", back_populates="projects")
    files = relationship("SourceFile", back_populates="project", order_by="SourceFile.created_at")
    analysis_tasks = relationship("AnalysisTask", back_populates="project", order_by="AnalysisTask.created_at")

    def __repr__(self):
        return f"<Project(project_id={self.project_id}, name='{self.name}', status='{self.status}')>"


class SourceFile(Base):
    """Individual uploaded file within a project.

    ``content`` is only populated for files classified as text.
    """
    __tablename__ = "source_files"
    __table_args__ = (
        Index('idx_source_files_project', 'project_id'),
    )

    file_id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    path = Column(String(1024), nullable=False)
    size_bytes = Column(BigInteger, default=0)
    mime_type = Column(String(255))
    content = Column(Text, nullable=True)
    language = Column(String(50))
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    deleted_at = Column(TIMESTAMP, nullable=True)

    project = relationship("Project", back_populates="files")

    def __repr__(self):
        return f"<SourceFile(file_id={self.file_id}, name='{self.name}', lang='{self.language}')>"


# =============================================================================
# Analysis Models
# =============================================================================

class AnalysisTask(Base):
    """One analysis job for a project.

    Created pending by the orchestrator; moved to processing and then
    completed|failed only by the worker consuming the dispatch queue.
    The file reference is weak: removing the file leaves the task history.
    """
    __tablename__ = "analysis_tasks"
    __table_args__ = (
        Index('idx_analysis_tasks_project_created', 'project_id', 'created_at'),
        Index('idx_analysis_tasks_status', 'status'),
    )

    task_id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False)
    file_id = Column(UUID(), ForeignKey("source_files.file_id", ondelete="SET NULL"), nullable=True)
    type = Column(String(50), nullable=False)           # code_analysis, dependency_map, documentation, pattern_detection
    status = Column(String(20), default='pending', nullable=False)
    result = Column(Text, nullable=True)
    task_metadata = Column("metadata", JSONType, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False)
    updated_at = Column(TIMESTAMP, nullable=False)
    deleted_at = Column(TIMESTAMP, nullable=True)

    project = relationship("Project", back_populates="analysis_tasks")
    file = relationship("SourceFile")

    def __repr__(self):
        return f"<AnalysisTask(task_id={self.task_id}, type='{self.type}', status='{self.status}')>"


class DispatchEntry(Base):
    """Append-only queue row used by SqlDispatchQueue.

    entry_id is monotonically increasing and defines FIFO order per topic.
    """
    __tablename__ = "dispatch_queue"
    __table_args__ = (
        Index('idx_dispatch_topic_claimed', 'topic', 'claimed_at', 'entry_id'),
    )

    entry_id = Column(Integer, primary_key=True, autoincrement=True)
    topic = Column(String(100), nullable=False)
    payload = Column(Text, nullable=False)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    claimed_at = Column(TIMESTAMP, nullable=True)
    claimed_by = Column(String(100), nullable=True)

    def __repr__(self):
        return f"<DispatchEntry(entry_id={self.entry_id}, topic='{self.topic}')>"
