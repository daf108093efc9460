"""
Per-invocation result collection.
"""

from __future__ import annotations

import threading

from winpush.domain.models import DeploymentResult, ExecutionOutcome


class ResultCollector:
    """
    Thread-safe collector of outcomes keyed by input position.

    Outcomes may arrive in any order; freeze() returns them in input order.
    """

    def __init__(self, size: int):
        self._size = size
        self._outcomes: dict[int, ExecutionOutcome] = {}
        self._lock = threading.Lock()

    def record(self, index: int, outcome: ExecutionOutcome) -> None:
        if not 0 <= index < self._size:
            raise IndexError(f"Outcome index {index} out of range for {self._size} targets")
        with self._lock:
            if index in self._outcomes:
                raise ValueError(f"Outcome for index {index} already recorded")
            self._outcomes[index] = outcome

    def freeze(self) -> DeploymentResult:
        """
        Immutable result in input order.

        Raises:
            ValueError: If any target has no outcome
        """
        with self._lock:
            missing = [i for i in range(self._size) if i not in self._outcomes]
            if missing:
                raise ValueError(f"No outcome recorded for target index(es) {missing}")
            return DeploymentResult(tuple(self._outcomes[i] for i in range(self._size)))
