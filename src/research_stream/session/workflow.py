"""Coarse execution-progress steps reported out of band."""

from dataclasses import dataclass
from enum import Enum

from research_stream.events.frames import WorkflowStepFrame


class StepPhase(str, Enum):
    PENDING = "pending"
    STARTED = "started"
    COMPLETED = "completed"

    @classmethod
    def from_status(cls, status: str | None) -> "StepPhase":
        if status == "started":
            return cls.STARTED
        if status == "completed":
            return cls.COMPLETED
        return cls.PENDING


@dataclass(frozen=True)
class WorkflowStep:
    step_index: int
    name: str
    phase: StepPhase


class WorkflowTracker:
    """Latest reported phase per step index."""

    def __init__(self):
        self._steps: dict[int, WorkflowStep] = {}

    def apply(self, frame: WorkflowStepFrame) -> WorkflowStep:
        step = WorkflowStep(
            step_index=frame.step,
            name=frame.name or f"Step {frame.step}",
            phase=StepPhase.from_status(frame.status),
        )
        self._steps[frame.step] = step
        return step

    @property
    def steps(self) -> list[WorkflowStep]:
        """Steps ordered by index."""
        return [self._steps[i] for i in sorted(self._steps)]

    def clear(self) -> None:
        self._steps.clear()

    def __len__(self) -> int:
        return len(self._steps)
