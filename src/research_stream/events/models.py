"""Notification models published while a response streams."""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from research_stream.events.types import EventType


class Event(BaseModel):
    """Base notification model."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    response_id: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class ViewUpdatedEvent(Event):
    """The accumulated view changed."""

    event_type: EventType = EventType.VIEW_UPDATED

    @classmethod
    def create(cls, view: Any, streaming: bool, response_id: str | None = None) -> "ViewUpdatedEvent":
        return cls(response_id=response_id, data={"view": view, "streaming": streaming})


class WorkflowStepEvent(Event):
    event_type: EventType = EventType.WORKFLOW_STEP

    @classmethod
    def create(cls, steps: list[Any], response_id: str | None = None) -> "WorkflowStepEvent":
        return cls(response_id=response_id, data={"steps": steps})


class CitationAddedEvent(Event):
    event_type: EventType = EventType.CITATION_ADDED

    @classmethod
    def create(cls, citation: Any, response_id: str | None = None) -> "CitationAddedEvent":
        return cls(response_id=response_id, data={"citation": citation})


class CitationResolvedEvent(Event):
    event_type: EventType = EventType.CITATION_RESOLVED

    @classmethod
    def create(cls, count: int, response_id: str | None = None) -> "CitationResolvedEvent":
        return cls(response_id=response_id, data={"count": count})


class StreamFinishedEvent(Event):
    event_type: EventType = EventType.STREAM_FINISHED

    @classmethod
    def create(cls, message: Any, response_id: str | None = None) -> "StreamFinishedEvent":
        return cls(response_id=response_id, data={"message": message})


class StreamCancelledEvent(Event):
    event_type: EventType = EventType.STREAM_CANCELLED

    @classmethod
    def create(cls, message: Any, response_id: str | None = None) -> "StreamCancelledEvent":
        return cls(response_id=response_id, data={"message": message})


class StreamErrorEvent(Event):
    """User-visible failure; the partial view stays on screen."""

    event_type: EventType = EventType.STREAM_ERROR

    @classmethod
    def create(
        cls,
        message: str,
        status_code: int | None = None,
        response_id: str | None = None,
    ) -> "StreamErrorEvent":
        return cls(
            response_id=response_id,
            data={"message": message, "status_code": status_code},
        )
