"""Inbound stream frames and outbound notifications."""

from research_stream.events.emitter import EventEmitter
from research_stream.events.frames import (
    CitationFrame,
    ContentFrame,
    DoneFrame,
    ErrorFrame,
    Frame,
    ThinkingFrame,
    WorkflowStepFrame,
    parse_frame,
)
from research_stream.events.models import (
    CitationAddedEvent,
    CitationResolvedEvent,
    Event,
    StreamCancelledEvent,
    StreamErrorEvent,
    StreamFinishedEvent,
    ViewUpdatedEvent,
    WorkflowStepEvent,
)
from research_stream.events.types import EventType, FrameType

__all__ = [
    "EventType",
    "FrameType",
    "EventEmitter",
    # Inbound
    "Frame",
    "ContentFrame",
    "CitationFrame",
    "WorkflowStepFrame",
    "ThinkingFrame",
    "ErrorFrame",
    "DoneFrame",
    "parse_frame",
    # Outbound
    "Event",
    "ViewUpdatedEvent",
    "WorkflowStepEvent",
    "CitationAddedEvent",
    "CitationResolvedEvent",
    "StreamFinishedEvent",
    "StreamCancelledEvent",
    "StreamErrorEvent",
]
