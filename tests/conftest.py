"""Pytest fixtures for testing."""

import json
from typing import Any, AsyncIterator, Iterable

import httpx
import pytest

from research_stream.citations.models import CitationRecord
from research_stream.citations.resolver import CitationResolver
from research_stream.citations.uploads import UploadedFileDescriptor, UploadedFileRegistry
from research_stream.config.settings import Settings
from research_stream.events.emitter import EventEmitter
from research_stream.events.frames import Frame
from research_stream.events.models import Event


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        api_base_url="http://agent.test",
        auth_token="test-token",
        connect_retry_attempts=1,
        log_level="DEBUG",
    )


@pytest.fixture
def emitter() -> EventEmitter:
    return EventEmitter()


@pytest.fixture
def captured(emitter: EventEmitter) -> list[Event]:
    """Every event published on ``emitter``."""
    events: list[Event] = []
    emitter.subscribe("*", events.append)
    return events


@pytest.fixture
def uploads() -> UploadedFileRegistry:
    registry = UploadedFileRegistry()
    registry.register(UploadedFileDescriptor("uploaded-1-Contract.PDF", "Contract.PDF", "application/pdf"))
    registry.register(UploadedFileDescriptor("uploaded-2-summary.docx", "summary.docx"))
    return registry


@pytest.fixture
def resolver(uploads: UploadedFileRegistry) -> CitationResolver:
    return CitationResolver(uploads)


def make_citation(citation_id: int, kind: str = "document", **fields: Any) -> CitationRecord:
    """Build a record the way a citation frame would."""
    return CitationRecord.from_event(citation_id, {"type": kind, **fields})


async def frame_stream(frames: Iterable[Frame]) -> AsyncIterator[Frame]:
    for frame in frames:
        yield frame


def sse_body(payloads: Iterable[Any], done: bool = True) -> bytes:
    """Encode payloads as a server-sent-events body."""
    lines = [": keepalive", ""]
    for payload in payloads:
        data = payload if isinstance(payload, str) else json.dumps(payload)
        lines.append(f"data: {data}")
        lines.append("")
    if done:
        lines.append("data: [DONE]")
        lines.append("")
    return "\n".join(lines).encode()


def sse_transport(payloads: Iterable[Any], status_code: int = 200, seen: list | None = None) -> httpx.MockTransport:
    """MockTransport answering every request with the given SSE payloads."""
    body = sse_body(payloads)

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if status_code != 200:
            return httpx.Response(status_code, json={"error": "nope"})
        return httpx.Response(
            200,
            headers={"content-type": "text/event-stream"},
            content=body,
        )

    return httpx.MockTransport(handler)


@pytest.fixture
def citation():
    """Factory for citation records."""
    return make_citation


@pytest.fixture
def frames():
    """Factory turning a list of frames into an async iterator."""
    return frame_stream


@pytest.fixture
def mock_backend():
    """Factory for a MockTransport serving one SSE response."""
    return sse_transport
