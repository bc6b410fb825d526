"""Dispatch Queue: hand-off of task descriptors to the worker pool.

The producer contract is a single operation, ``enqueue``: append the
descriptor to the tail of the named channel or raise QueueError. Transport
failures are retried with bounded exponential backoff so a producer is
never blocked indefinitely.

Delivery is at-least-once. Ordering is FIFO per producer; descriptors from
concurrent producers may interleave.

Transports:
- SqlDispatchQueue: rows in the ``dispatch_queue`` table (durable, shared
  between processes; claims use FOR UPDATE SKIP LOCKED on PostgreSQL)
- InMemoryDispatchQueue: process-local deque (tests, single-process runs)
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime
from typing import Deque, Optional

import backoff
from sqlalchemy.exc import SQLAlchemyError

from ..constants import DEFAULT_QUEUE_NAME
from ..db import DatabaseManager
from ..db.models import DispatchEntry
from ..errors import QueueError
from .models import TaskDescriptor

logger = logging.getLogger(__name__)


class TransportUnavailable(Exception):
    """Raised by a transport when an append may succeed on retry."""


class DispatchQueue(ABC):
    """Append-only, named channel of TaskDescriptors."""

    def __init__(
        self,
        name: str = DEFAULT_QUEUE_NAME,
        max_tries: int = 3,
        max_time: float = 10.0,
        retry_factor: float = 0.5,
    ):
        self.name = name
        self.max_tries = max_tries
        self.max_time = max_time
        self.retry_factor = retry_factor

    def enqueue(self, descriptor: TaskDescriptor) -> None:
        """Durably append a descriptor, retrying transient transport errors.

        Raises:
            QueueError: the descriptor could not be appended
        """

        @backoff.on_exception(
            backoff.expo,
            TransportUnavailable,
            max_tries=self.max_tries,
            max_time=self.max_time,
            on_backoff=self._on_retry,
            factor=self.retry_factor,
        )
        def _do_append():
            self._append(descriptor.to_json())

        try:
            _do_append()
        except TransportUnavailable as e:
            logger.error(
                f"Giving up on queueing analysis {descriptor.analysis_id} to {self.name}: {e}"
            )
            raise QueueError("Failed to queue analysis task") from e

        logger.info(
            f"Queued analysis {descriptor.analysis_id} ({descriptor.type}) on {self.name}"
        )

    def _on_retry(self, details: dict):
        logger.warning(
            f"Queue append to {self.name} failed "
            f"(try {details['tries']}), retrying in {details['wait']:.2f}s"
        )

    @abstractmethod
    def _append(self, payload: str) -> None:
        """Append a serialized payload; raise TransportUnavailable on failure."""

    @abstractmethod
    def claim(self, consumer_id: str) -> Optional[TaskDescriptor]:
        """Remove and return the head descriptor, or None when empty."""

    @abstractmethod
    def size(self) -> int:
        """Number of descriptors not yet claimed."""


class InMemoryDispatchQueue(DispatchQueue):
    """Thread-safe in-process queue."""

    def __init__(self, name: str = DEFAULT_QUEUE_NAME, **kwargs):
        super().__init__(name, **kwargs)
        self._items: Deque[str] = deque()
        self._lock = threading.Lock()

    def _append(self, payload: str) -> None:
        with self._lock:
            self._items.append(payload)

    def claim(self, consumer_id: str) -> Optional[TaskDescriptor]:
        with self._lock:
            if not self._items:
                return None
            payload = self._items.popleft()
        return TaskDescriptor.from_json(payload)

    def size(self) -> int:
        with self._lock:
            return len(self._items)


class SqlDispatchQueue(DispatchQueue):
    """Queue backed by the ``dispatch_queue`` table.

    Claimed rows are kept (claimed_at/claimed_by set) as a delivery log.
    """

    def __init__(self, db_manager: DatabaseManager, name: str = DEFAULT_QUEUE_NAME, **kwargs):
        super().__init__(name, **kwargs)
        self._db = db_manager

    def _append(self, payload: str) -> None:
        try:
            with self._db.get_session() as session:
                session.add(DispatchEntry(topic=self.name, payload=payload))
        except SQLAlchemyError as e:
            raise TransportUnavailable(str(e)) from e

    def claim(self, consumer_id: str) -> Optional[TaskDescriptor]:
        with self._db.get_session() as session:
            query = session.query(DispatchEntry).filter(
                DispatchEntry.topic == self.name,
                DispatchEntry.claimed_at.is_(None),
            ).order_by(DispatchEntry.entry_id)

            if self._db.dialect == "postgresql":
                query = query.with_for_update(skip_locked=True)

            entry = query.first()
            if not entry:
                return None

            entry.claimed_at = datetime.utcnow()
            entry.claimed_by = consumer_id
            payload = entry.payload

        return TaskDescriptor.from_json(payload)

    def size(self) -> int:
        with self._db.get_session() as session:
            return session.query(DispatchEntry).filter(
                DispatchEntry.topic == self.name,
                DispatchEntry.claimed_at.is_(None),
            ).count()


def create_dispatch_queue(
    backend: str,
    db_manager: Optional[DatabaseManager] = None,
    name: str = DEFAULT_QUEUE_NAME,
    max_tries: int = 3,
    max_time: float = 10.0,
    retry_factor: float = 0.5,
) -> DispatchQueue:
    """Build the configured transport."""
    kwargs = {"max_tries": max_tries, "max_time": max_time, "retry_factor": retry_factor}
    if backend == "memory":
        return InMemoryDispatchQueue(name, **kwargs)
    if backend == "sql":
        if db_manager is None:
            raise ValueError("SQL dispatch queue requires a DatabaseManager")
        return SqlDispatchQueue(db_manager, name, **kwargs)
    raise ValueError(f"Unknown queue backend: {backend}")
