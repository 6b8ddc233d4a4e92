"""Lightweight in-memory metrics collector."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass
from typing import Dict


@dataclass
class MetricSnapshot:
    total_turns: int
    actions: Dict[str, int]
    step_outcomes: Dict[str, int]
    unexpected_errors: int


class MetricsCollector:
    """Thread-safe counter storage for basic service metrics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total_turns = 0
        self._unexpected_errors = 0
        self._actions: Counter[str] = Counter()
        self._steps: Counter[str] = Counter()

    def record_turn(self, action: str) -> None:
        with self._lock:
            self._total_turns += 1
            self._actions[action] += 1

    def record_step(self, step: str, ok: bool) -> None:
        with self._lock:
            self._steps[f"{step}.{'ok' if ok else 'failed'}"] += 1

    def record_unexpected_error(self) -> None:
        with self._lock:
            self._unexpected_errors += 1

    def snapshot(self) -> MetricSnapshot:
        with self._lock:
            return MetricSnapshot(
                total_turns=self._total_turns,
                actions=dict(self._actions),
                step_outcomes=dict(self._steps),
                unexpected_errors=self._unexpected_errors,
            )
