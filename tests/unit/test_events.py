"""Tests for frames, notifications and the event emitter."""

import asyncio

import pytest

from research_stream.events.emitter import EventEmitter, pattern_matches
from research_stream.events.frames import (
    CitationFrame,
    ContentFrame,
    DoneFrame,
    ErrorFrame,
    ThinkingFrame,
    WorkflowStepFrame,
    parse_frame,
)
from research_stream.events.models import (
    CitationAddedEvent,
    StreamErrorEvent,
    StreamFinishedEvent,
    ViewUpdatedEvent,
)
from research_stream.events.types import EventType


class TestParseFrame:
    """Tests for frame validation."""

    def test_content_frame(self):
        """Test content frames."""
        frame = parse_frame({"type": "content", "text": "Hello", "done": False})
        assert frame == ContentFrame(text="Hello")

    def test_content_done(self):
        """Test the done flag."""
        assert parse_frame({"type": "content", "text": "", "done": True}).done

    def test_citation_frame(self):
        """Test citation frames."""
        frame = parse_frame({"type": "citation", "id": 2, "source": {"type": "web", "url": "https://x"}})
        assert isinstance(frame, CitationFrame)
        record = frame.to_record()
        assert record.id == 2
        assert record.url == "https://x"

    def test_citation_without_source_dropped(self):
        """Test citation frames need a source."""
        assert parse_frame({"type": "citation", "id": 2}) is None

    def test_workflow_step_frame(self):
        """Test workflow step frames."""
        frame = parse_frame({"type": "workflow_step", "step": 1, "status": "started"})
        assert frame == WorkflowStepFrame(step=1, status="started")

    def test_thinking_error_done(self):
        """Test thinking, error and done frames."""
        assert isinstance(parse_frame({"type": "thinking", "content": "hm"}), ThinkingFrame)
        assert parse_frame({"type": "error", "message": "boom"}) == ErrorFrame(message="boom")
        assert parse_frame({"type": "error"}).message == "An error occurred"
        assert isinstance(parse_frame({"type": "done"}), DoneFrame)

    def test_openai_delta_fallback(self):
        """Test the delta content fallback."""
        frame = parse_frame({"choices": [{"delta": {"content": "Hi"}}]})
        assert frame == ContentFrame(text="Hi")

    def test_unknown_payloads_ignored(self):
        """Test unknown payloads are ignored."""
        assert parse_frame({"type": "mystery"}) is None
        assert parse_frame({"choices": []}) is None
        assert parse_frame(["not", "an", "object"]) is None


class TestEventModels:
    """Tests for notification models."""

    def test_view_updated_event(self):
        """Test ViewUpdatedEvent creation."""
        event = ViewUpdatedEvent.create("view", streaming=True, response_id="resp-1")
        assert event.event_type == EventType.VIEW_UPDATED
        assert event.data == {"view": "view", "streaming": True}
        assert event.response_id == "resp-1"

    def test_stream_error_event(self):
        """Test StreamErrorEvent creation."""
        event = StreamErrorEvent.create("Rate limit exceeded", 429)
        assert event.event_type == EventType.STREAM_ERROR
        assert event.data["status_code"] == 429

    def test_events_have_unique_ids(self):
        """Test event ids are unique."""
        assert StreamFinishedEvent.create(None).id != StreamFinishedEvent.create(None).id


class TestEventEmitter:
    """Tests for the observer emitter."""

    def test_exact_subscription(self):
        """Test exact subscriptions."""
        emitter = EventEmitter()
        received = []
        emitter.subscribe("citation.added", received.append)

        emitter.emit(CitationAddedEvent.create("c"))
        emitter.emit(StreamFinishedEvent.create(None))

        assert [e.event_type for e in received] == [EventType.CITATION_ADDED]

    def test_wildcard_patterns(self):
        """Test wildcard subscriptions."""
        emitter = EventEmitter()
        stream_events, all_events = [], []
        emitter.subscribe("stream.*", stream_events.append)
        emitter.subscribe("*", all_events.append)

        emitter.emit(StreamErrorEvent.create("x"))
        emitter.emit(ViewUpdatedEvent.create(None, streaming=True))

        assert len(stream_events) == 1
        assert len(all_events) == 2

    def test_unsubscribe(self):
        """Test unsubscribing handlers."""
        emitter = EventEmitter()
        received = []
        sub_id = emitter.subscribe("*", received.append)

        assert emitter.unsubscribe(sub_id)
        assert not emitter.unsubscribe(sub_id)
        emitter.emit(StreamFinishedEvent.create(None))
        assert received == []

    def test_handler_error_isolated(self):
        """Test a failing handler does not stop others."""
        emitter = EventEmitter()
        received = []

        def broken(event):
            raise RuntimeError("handler failure")

        emitter.subscribe("*", broken)
        emitter.subscribe("*", received.append)
        emitter.emit(StreamFinishedEvent.create(None))

        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_async_handler_scheduled(self):
        """Test async handlers are scheduled."""
        emitter = EventEmitter()
        received = []

        async def handler(event):
            received.append(event)

        emitter.subscribe("stream.finished", handler)
        emitter.emit(StreamFinishedEvent.create(None))
        await asyncio.sleep(0)

        assert len(received) == 1

    def test_handlers_run_in_subscription_order(self):
        """Test handler order."""
        emitter = EventEmitter()
        order = []
        emitter.subscribe("*", lambda e: order.append("first"))
        emitter.subscribe("stream.finished", lambda e: order.append("second"))
        emitter.subscribe("stream.*", lambda e: order.append("third"))

        assert emitter.emit(StreamFinishedEvent.create(None)) == 3
        assert order == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_emit_async_awaits_handlers(self):
        """Test emit_async awaits handlers."""
        emitter = EventEmitter()
        received = []

        async def handler(event):
            await asyncio.sleep(0)
            received.append(event)

        emitter.subscribe("*", handler)
        assert await emitter.emit_async(StreamFinishedEvent.create(None)) == 1
        assert len(received) == 1


class TestPatternMatches:
    """Tests for subscription patterns."""

    @pytest.mark.parametrize(
        "pattern,event_type,expected",
        [
            ("*", "view.updated", True),
            ("view.updated", "view.updated", True),
            ("stream.*", "stream.error", True),
            ("stream.*", "streamer.error", False),
            ("citation.added", "citation.resolved", False),
        ],
    )
    def test_patterns(self, pattern, event_type, expected):
        """Test pattern matching."""
        assert pattern_matches(pattern, event_type) is expected
