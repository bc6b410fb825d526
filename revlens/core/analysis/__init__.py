"""
Analysis dispatch engine.

Exports:
- AnalysisOrchestrator: validates batches, creates and enqueues tasks
- TaskStore: durable AnalysisTask records and lifecycle transitions
- DispatchQueue and transports: hand-off of descriptors to workers
- AnalysisWorker, AnalysisGenerator: the consuming side
"""

from .generator import AnalysisGenerator, GenerationError, build_llm
from .models import AnalysisType, TaskDescriptor, TaskStatus
from .orchestrator import AnalysisOrchestrator, rollup_status
from .queue import (
    DispatchQueue,
    InMemoryDispatchQueue,
    SqlDispatchQueue,
    TransportUnavailable,
    create_dispatch_queue,
)
from .store import TaskStore
from .worker import AnalysisWorker

__all__ = [
    "AnalysisOrchestrator",
    "rollup_status",
    "TaskStore",
    "AnalysisType",
    "TaskDescriptor",
    "TaskStatus",
    "DispatchQueue",
    "InMemoryDispatchQueue",
    "SqlDispatchQueue",
    "TransportUnavailable",
    "create_dispatch_queue",
    "AnalysisWorker",
    "AnalysisGenerator",
    "GenerationError",
    "build_llm",
]
