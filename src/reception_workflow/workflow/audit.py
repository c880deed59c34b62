"""Audit sink for transition records.

Durable audit storage lives outside the engine; the coordinator only builds
``StateTransition`` records and forwards them to a ``TransitionAuditSink``.
``TransitionHistory`` is the in-process implementation: an append-only list
per aggregate.
"""

import threading
from typing import Protocol, runtime_checkable

from loguru import logger

from reception_workflow.workflow.models import StateTransition


@runtime_checkable
class TransitionAuditSink(Protocol):
    def record(self, transition: StateTransition) -> None: ...


class TransitionHistory:
    """Append-only, thread-safe transition history."""

    def __init__(self) -> None:
        self._history: dict[int, list[StateTransition]] = {}
        self._lock = threading.Lock()

    def record(self, transition: StateTransition) -> None:
        with self._lock:
            self._history.setdefault(transition.aggregate_id, []).append(transition)
        logger.info(
            "Recorded transition {from_state} -> {to_state} for aggregate {aggregate_id}",
            from_state=transition.from_state,
            to_state=transition.to_state,
            aggregate_id=transition.aggregate_id,
        )

    def get_history(self, aggregate_id: int) -> list[StateTransition]:
        with self._lock:
            return list(self._history.get(aggregate_id, ()))

    def last_transition(self, aggregate_id: int) -> StateTransition | None:
        with self._lock:
            history = self._history.get(aggregate_id)
            return history[-1] if history else None

    def __len__(self) -> int:
        with self._lock:
            return sum(len(h) for h in self._history.values())
