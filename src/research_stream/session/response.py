"""Processing lifecycle of one streamed response."""

from typing import AsyncIterable
from uuid import uuid4

from pydantic import ValidationError

from research_stream.citations.resolver import CitationResolver
from research_stream.citations.store import CitationStore
from research_stream.decoder.accumulator import AccumulatedView, SectionAccumulator
from research_stream.events.emitter import EventEmitter
from research_stream.events.frames import (
    CitationFrame,
    ContentFrame,
    DoneFrame,
    ErrorFrame,
    Frame,
    ThinkingFrame,
    WorkflowStepFrame,
)
from research_stream.events.models import (
    CitationAddedEvent,
    CitationResolvedEvent,
    StreamCancelledEvent,
    StreamErrorEvent,
    StreamFinishedEvent,
    ViewUpdatedEvent,
    WorkflowStepEvent,
)
from research_stream.session.messages import AssistantMessage
from research_stream.session.workflow import WorkflowStep, WorkflowTracker
from research_stream.utils.logging import get_logger


logger = get_logger(__name__)


class ResponseStream:
    """
    Buffer, section view and citations of one response while it streams.

    Frames are applied strictly in arrival order. A citation frame is stored
    before the next content frame is decoded, so prose that references it
    always renders against a store that already holds it.

    Cancellation is cooperative: ``cancel`` raises a flag that the read loop
    checks between frames, so a frame is never half-applied.
    """

    def __init__(
        self,
        resolver: CitationResolver | None = None,
        emitter: EventEmitter | None = None,
        accumulator: SectionAccumulator | None = None,
        response_id: str | None = None,
    ):
        self.response_id = response_id or str(uuid4())
        self._resolver = resolver
        self._emitter = emitter
        self._accumulator = accumulator if accumulator is not None else SectionAccumulator()
        self._store = CitationStore()
        self._workflow = WorkflowTracker()
        self._buffer = ""
        self._ended = False
        self._cancelled = False
        self._error: str | None = None
        self._message: AssistantMessage | None = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def view(self) -> AccumulatedView:
        return self._accumulator.view

    @property
    def citations(self) -> CitationStore:
        return self._store

    @property
    def workflow_steps(self) -> list[WorkflowStep]:
        return self._workflow.steps

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def error(self) -> str | None:
        return self._error

    # -------------------------------------------------------------------------
    # Frame handling
    # -------------------------------------------------------------------------

    def feed(self, frame: Frame) -> bool:
        """
        Apply one frame.

        Returns:
            False once the stream has ended and no more frames should be read
        """
        if self._ended or self._message is not None:
            return False

        logger.debug("Frame received", frame_type=frame.type)

        if isinstance(frame, ContentFrame):
            if frame.text:
                self._append(frame.text)
            if frame.done:
                self._ended = True
        elif isinstance(frame, CitationFrame):
            self._add_citation(frame)
        elif isinstance(frame, WorkflowStepFrame):
            self._workflow.apply(frame)
            self._emit(WorkflowStepEvent.create(self._workflow.steps, self.response_id))
        elif isinstance(frame, ThinkingFrame):
            logger.debug("Backend thinking", content=frame.content[:200])
        elif isinstance(frame, ErrorFrame):
            logger.warning("Stream reported error", message=frame.message)
            self.fail(frame.message)
        elif isinstance(frame, DoneFrame):
            self._ended = True

        return not self._ended

    async def run(self, frames: AsyncIterable[Frame]) -> None:
        """Read frames until the stream ends or the response is cancelled."""
        async for frame in frames:
            if self._cancelled:
                logger.info("Read loop stopped by cancellation")
                break
            if not self.feed(frame):
                break

    def cancel(self) -> None:
        self._cancelled = True

    def fail(self, message: str, status_code: int | None = None) -> None:
        """Record a user-visible failure. The view accumulated so far stays."""
        self._error = message
        self._ended = True
        self._emit(StreamErrorEvent.create(message, status_code, self.response_id))

    def resolve_citations(self) -> int:
        """Retry file resolution for stored document citations."""
        if self._resolver is None:
            return 0
        changed = self._resolver.resolve_store(self._store)
        if changed:
            self._emit(CitationResolvedEvent.create(changed, self.response_id))
        return changed

    def finalize(self) -> AssistantMessage:
        """
        Freeze the response into a message.

        Safe to call at any point, including straight after cancellation or
        with an empty buffer. Repeated calls return the same message.
        """
        if self._message is not None:
            return self._message

        # A stopped or failed response is never reported as finished unless the
        # backend sent [FINISHED] itself.
        view = self._accumulator.accumulate(
            self._buffer,
            is_streaming=False,
            implicit_completion=not (self._cancelled or self._error),
        )
        self.resolve_citations()
        citations = self._store.snapshot()
        self._store.clear()

        self._message = AssistantMessage(
            id=self.response_id,
            content=self._buffer,
            sections=view.sections,
            workflow_steps=tuple(self._workflow.steps),
            final_answer=view.final_answer,
            editable_output=view.editable_output,
            finished=view.finished,
            source_count=view.source_count,
            citations=citations,
            cancelled=self._cancelled,
            error=self._error,
        )
        logger.info(
            "Response finalized",
            chars=len(self._buffer),
            sections=len(view.sections),
            citations=len(citations),
            finished=view.finished,
            cancelled=self._cancelled,
        )

        self._emit(ViewUpdatedEvent.create(view, streaming=False, response_id=self.response_id))
        if self._cancelled:
            self._emit(StreamCancelledEvent.create(self._message, self.response_id))
        else:
            self._emit(StreamFinishedEvent.create(self._message, self.response_id))
        return self._message

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _append(self, text: str) -> None:
        self._buffer += text
        view = self._accumulator.accumulate(self._buffer, is_streaming=True)
        self._emit(ViewUpdatedEvent.create(view, streaming=True, response_id=self.response_id))

    def _add_citation(self, frame: CitationFrame) -> None:
        try:
            record = frame.to_record()
        except ValidationError as e:
            logger.warning("Dropping invalid citation", citation_id=frame.id, error=str(e))
            return
        if self._resolver is not None:
            record = self._resolver.resolve(record)
        self._store.put(record)
        logger.debug("Citation stored", citation_id=record.id, resolved=record.is_file_backed)
        self._emit(CitationAddedEvent.create(record, self.response_id))

    def _emit(self, event) -> None:
        if self._emitter is not None:
            self._emitter.emit(event)
