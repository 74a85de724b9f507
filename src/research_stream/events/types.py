"""Event type enumerations."""

from enum import Enum


class FrameType(str, Enum):
    """Frame kinds delivered by the agent stream."""

    CONTENT = "content"              # Text fragment appended to the buffer
    CITATION = "citation"            # Out-of-band citation record
    WORKFLOW_STEP = "workflow_step"  # Coarse execution-progress ticker
    THINKING = "thinking"            # Backend reasoning note, logged only
    ERROR = "error"
    DONE = "done"


class EventType(str, Enum):
    """Notifications published to the rendering side."""

    # Live view
    VIEW_UPDATED = "view.updated"
    WORKFLOW_STEP = "workflow.step"

    # Citations
    CITATION_ADDED = "citation.added"
    CITATION_RESOLVED = "citation.resolved"

    # Stream lifecycle
    STREAM_FINISHED = "stream.finished"
    STREAM_CANCELLED = "stream.cancelled"
    STREAM_ERROR = "stream.error"
