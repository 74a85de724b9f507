"""Inbound frames of the agent stream."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from research_stream.citations.models import CitationRecord
from research_stream.events.types import FrameType
from research_stream.utils.logging import get_logger


logger = get_logger(__name__)


class ContentFrame(BaseModel):
    """Incremental text fragment; ``done`` marks the natural end of the stream."""

    type: Literal["content"] = "content"
    text: str = ""
    done: bool = False


class CitationFrame(BaseModel):
    type: Literal["citation"] = "citation"
    id: int
    source: dict[str, Any]

    def to_record(self) -> CitationRecord:
        return CitationRecord.from_event(self.id, self.source)


class WorkflowStepFrame(BaseModel):
    type: Literal["workflow_step"] = "workflow_step"
    step: int
    name: str | None = None
    status: str = "pending"


class ThinkingFrame(BaseModel):
    type: Literal["thinking"] = "thinking"
    content: str = ""


class ErrorFrame(BaseModel):
    type: Literal["error"] = "error"
    message: str = "An error occurred"


class DoneFrame(BaseModel):
    type: Literal["done"] = "done"


Frame = Annotated[
    Union[ContentFrame, CitationFrame, WorkflowStepFrame, ThinkingFrame, ErrorFrame, DoneFrame],
    Field(discriminator="type"),
]

_frame_adapter: TypeAdapter[Frame] = TypeAdapter(Frame)
_known_types = {t.value for t in FrameType}


def parse_frame(payload: Any) -> Frame | None:
    """
    Validate one decoded JSON payload as a frame.

    OpenAI-style ``choices[0].delta.content`` payloads become content frames.
    Anything else that does not validate is logged and dropped.
    """
    if not isinstance(payload, dict):
        logger.warning("Ignoring non-object frame payload", payload_type=type(payload).__name__)
        return None

    if payload.get("type") in _known_types:
        try:
            return _frame_adapter.validate_python(payload)
        except ValidationError as e:
            logger.warning("Dropping malformed frame", frame_type=payload.get("type"), error=str(e))
            return None

    delta = _openai_delta(payload)
    if delta:
        return ContentFrame(text=delta)

    logger.debug("Ignoring unknown frame", frame_type=payload.get("type"))
    return None


def _openai_delta(payload: dict[str, Any]) -> str | None:
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None
