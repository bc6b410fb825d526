"""Data contracts for the analysis dispatch engine.

Kept as dataclasses/enums (not ORM models) for transport between the
orchestrator, the dispatch queue and the worker.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet


class AnalysisType(Enum):
    """Recognised analysis kinds. Task.type is an open string in storage."""
    CODE_ANALYSIS = "code_analysis"
    DEPENDENCY_MAP = "dependency_map"
    DOCUMENTATION = "documentation"
    PATTERN_DETECTION = "pattern_detection"

    @classmethod
    def values(cls) -> FrozenSet[str]:
        return frozenset(t.value for t in cls)


class TaskStatus(Enum):
    """Lifecycle of an AnalysisTask: pending → processing → completed|failed."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)

    def can_transition_to(self, target: "TaskStatus") -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: Dict[TaskStatus, FrozenSet[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.PROCESSING}),
    TaskStatus.PROCESSING: frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
}


@dataclass(frozen=True)
class TaskDescriptor:
    """Queue payload announcing a task to the worker pool.

    Wire format: {"analysis_id": ..., "project_id": ..., "type": ...}
    """
    analysis_id: str
    project_id: str
    type: str

    def to_payload(self) -> Dict[str, Any]:
        return {
            "analysis_id": self.analysis_id,
            "project_id": self.project_id,
            "type": self.type,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload())

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TaskDescriptor":
        return cls(
            analysis_id=str(payload["analysis_id"]),
            project_id=str(payload["project_id"]),
            type=str(payload["type"]),
        )

    @classmethod
    def from_json(cls, raw: str) -> "TaskDescriptor":
        return cls.from_payload(json.loads(raw))
