"""
Multi-step progress tracking.

An operation declares up front how many units of work it will perform and
calls ``step_done()`` once per unit. The tracker carries a status line and an
optional percentage for the step currently in flight, so a progress sink can
render smooth progress while a long download is running.

Usage:
    progress = MultiStepProgress(4)
    progress.set_status("Downloading boards definitions.")
    progress.set_step_progress(50.0)
    progress.step_done()
    fraction, status = progress.snapshot()
"""

from typing import Callable, Tuple

ProgressCallback = Callable[["MultiStepProgress"], None]


class MultiStepProgress:
    """
    Fractional completion over a fixed number of steps.

    Not thread-safe. A single flow of control advances the tracker while other
    threads may read ``snapshot()``.

    Attributes:
        total_steps: Number of steps declared for the operation
        steps_done: Steps completed so far (never exceeds total_steps)
        status: Human-readable status line
    """

    def __init__(self, total_steps: int):
        if total_steps < 1:
            raise ValueError(f"total_steps must be at least 1, got {total_steps}")

        self.total_steps = total_steps
        self.steps_done = 0
        self.step_percentage = 0.0
        self.status = ""

    def step_done(self) -> None:
        """Mark exactly one step as completed."""
        if self.steps_done < self.total_steps:
            self.steps_done += 1
        self.step_percentage = 0.0

    def set_status(self, status: str) -> None:
        """Replace the status line without advancing."""
        self.status = status

    def set_step_progress(self, percentage: float) -> None:
        """
        Record progress within the current step.

        Args:
            percentage: Completion of the current step (clamped to 0-100)
        """
        if self.steps_done >= self.total_steps:
            return
        percentage = max(0.0, min(100.0, percentage))
        # Within one step the value only moves forward
        self.step_percentage = max(self.step_percentage, percentage)

    @property
    def fraction(self) -> float:
        """Completed steps over total steps."""
        return self.steps_done / self.total_steps

    @property
    def progress(self) -> float:
        """Overall completion percentage including the in-flight step."""
        done = self.steps_done + self.step_percentage / 100.0
        return min(100.0, done / self.total_steps * 100.0)

    def snapshot(self) -> Tuple[float, str]:
        """
        Read the tracker for an external progress sink.

        Returns:
            Tuple of (completed_steps / total_steps, status)
        """
        return self.fraction, self.status

    def __str__(self) -> str:
        return f"[{self.steps_done}/{self.total_steps}] {self.status}"


__all__ = ["MultiStepProgress", "ProgressCallback"]
