"""
Step accounting for a single generation run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class ProgressEvent:
    """Snapshot of run progress delivered to the caller."""

    completed_steps: int
    total_steps: int
    message: str
    stage: str | None = None

    @property
    def fraction(self) -> float:
        if self.total_steps <= 0:
            return 0.0
        return self.completed_steps / self.total_steps


ProgressCallback = Callable[[ProgressEvent], None]


class ProgressReporter:
    """
    Monotonic step counter against a fixed total.

    ``report`` announces what is about to happen without moving the counter;
    ``advance`` marks one unit of work as finished. Events are handed to the
    callback immediately.
    """

    def __init__(self, total_steps: int, callback: ProgressCallback | None = None) -> None:
        if total_steps <= 0:
            raise ValueError("total_steps must be a positive integer.")
        self._total_steps = total_steps
        self._completed_steps = 0
        self._callback = callback

    @property
    def completed_steps(self) -> int:
        return self._completed_steps

    @property
    def total_steps(self) -> int:
        return self._total_steps

    def report(self, message: str, *, stage: str | None = None) -> ProgressEvent:
        return self._emit(message, stage)

    def advance(self, message: str, *, stage: str | None = None) -> ProgressEvent:
        if self._completed_steps >= self._total_steps:
            raise ValueError(
                f"Cannot advance past {self._total_steps} steps."
            )
        self._completed_steps += 1
        return self._emit(message, stage)

    def _emit(self, message: str, stage: str | None) -> ProgressEvent:
        event = ProgressEvent(
            completed_steps=self._completed_steps,
            total_steps=self._total_steps,
            message=message,
            stage=stage,
        )
        if self._callback is not None:
            self._callback(event)
        return event
