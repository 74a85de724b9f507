"""Typed sections decoded from the response buffer.

Sections are immutable values. A derivation builds a fresh set on every
fragment; equality between two derivations is plain value equality.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union


class StepStatus(str, Enum):
    """Status of a narrative step. COMPLETE is terminal."""

    THINKING = "thinking"
    COMPLETE = "complete"

    @property
    def rank(self) -> int:
        return 1 if self is StepStatus.COMPLETE else 0


@dataclass(frozen=True)
class ProgressSection:
    status: str
    time_remaining: str | None = None
    description: str | None = None

    kind: ClassVar[str] = "progress"


@dataclass(frozen=True)
class SearchSection:
    queries: tuple[str, ...]

    kind: ClassVar[str] = "search"


@dataclass(frozen=True)
class ReviewedSource:
    title: str
    domain: str


@dataclass(frozen=True)
class ReviewSection:
    sources: tuple[ReviewedSource, ...]
    count: int

    kind: ClassVar[str] = "review"


@dataclass(frozen=True)
class StepSource:
    url: str


@dataclass(frozen=True)
class StepSection:
    """One numbered step of the agent's narrative."""

    step_number: int
    title: str
    body: str
    status: StepStatus
    sources: tuple[StepSource, ...] | None = None

    kind: ClassVar[str] = "step"

    @property
    def is_complete(self) -> bool:
        return self.status is StepStatus.COMPLETE


@dataclass(frozen=True)
class FinalAnswer:
    text: str

    kind: ClassVar[str] = "final_answer"


@dataclass(frozen=True)
class EditableOutput:
    text: str

    kind: ClassVar[str] = "editable_output"


@dataclass(frozen=True)
class Completion:
    finished: bool
    source_count: int | None = None

    kind: ClassVar[str] = "completion"


Section = Union[
    ProgressSection,
    SearchSection,
    ReviewSection,
    StepSection,
    FinalAnswer,
    EditableOutput,
    Completion,
]
