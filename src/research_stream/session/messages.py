"""Conversation message models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from research_stream.citations.models import CitationRecord
from research_stream.decoder.sections import Section, StepSection
from research_stream.session.workflow import WorkflowStep
from research_stream.transport.models import ConversationTurn


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class UserMessage:
    """A question as the user typed it."""

    content: str
    created_at: datetime = field(default_factory=_now)
    role: Literal["user"] = "user"

    def to_turn(self) -> ConversationTurn:
        return ConversationTurn(role="user", content=self.content)


@dataclass(frozen=True)
class AssistantMessage:
    """
    Immutable snapshot of one finished (or cancelled) response.

    ``citations`` is a deep copy taken when the response was finalized;
    later responses never alter it.
    """

    id: str
    content: str
    sections: tuple[Section, ...] = ()
    workflow_steps: tuple[WorkflowStep, ...] = ()
    final_answer: str | None = None
    editable_output: str | None = None
    finished: bool = False
    source_count: int | None = None
    citations: dict[int, CitationRecord] = field(default_factory=dict)
    cancelled: bool = False
    error: str | None = None
    created_at: datetime = field(default_factory=_now)
    role: Literal["assistant"] = "assistant"

    @property
    def steps(self) -> list[StepSection]:
        return [s for s in self.sections if isinstance(s, StepSection)]

    @property
    def display_text(self) -> str:
        """Text shown as the answer body."""
        return self.final_answer or self.editable_output or ""

    def to_turn(self) -> ConversationTurn:
        return ConversationTurn(role="assistant", content=self.content)


Message = UserMessage | AssistantMessage
