"""A conversation: messages, uploaded files and the source sidebar."""

import asyncio
from typing import Iterable
from uuid import uuid4

from research_stream.citations.models import CitationRecord
from research_stream.citations.resolver import CitationResolver
from research_stream.citations.sources import LogicalSource, SourceIndex
from research_stream.citations.uploads import UploadedFileDescriptor, UploadedFileRegistry
from research_stream.config.settings import Settings, get_settings
from research_stream.core.exceptions import ConversationBusyError, TransportError
from research_stream.decoder.accumulator import SectionAccumulator
from research_stream.events.emitter import EventEmitter
from research_stream.session.followups import suggest_follow_ups
from research_stream.session.messages import AssistantMessage, Message, UserMessage
from research_stream.session.response import ResponseStream
from research_stream.transport.client import AskStreamClient
from research_stream.transport.models import AskRequest
from research_stream.utils.logging import (
    bind_response_context,
    clear_response_context,
    get_logger,
)


logger = get_logger(__name__)


class Conversation:
    """
    One conversation with the research agent.

    At most one response is in flight at a time. Observers subscribe on the
    emitter passed in at construction; every response of this conversation
    publishes there.
    """

    def __init__(
        self,
        client: AskStreamClient | None = None,
        emitter: EventEmitter | None = None,
        settings: Settings | None = None,
        conversation_id: str | None = None,
    ):
        self.id = conversation_id or str(uuid4())
        self._settings = settings or get_settings()
        self._client = client
        self.emitter = emitter if emitter is not None else EventEmitter()
        self.messages: list[Message] = []
        self.uploads = UploadedFileRegistry()
        self.resolver = CitationResolver(self.uploads)
        self._sources = SourceIndex(
            resolver=self.resolver,
            pdf_page_count=self._settings.default_pdf_page_count,
        )
        self._active: ResponseStream | None = None

    @property
    def is_busy(self) -> bool:
        return self._active is not None

    @property
    def active_response(self) -> ResponseStream | None:
        return self._active

    @property
    def assistant_messages(self) -> list[AssistantMessage]:
        return [m for m in self.messages if isinstance(m, AssistantMessage)]

    # -------------------------------------------------------------------------
    # Uploaded files
    # -------------------------------------------------------------------------

    def add_file(self, display_name: str, mime_kind: str = "", text: str = "") -> UploadedFileDescriptor:
        """
        Register an uploaded file.

        Document citations of the in-flight response that arrived before the
        file was registered get another chance to resolve.
        """
        descriptor = self.uploads.add(display_name, mime_kind, text)
        if self._active is not None:
            self._active.resolve_citations()
        return descriptor

    # -------------------------------------------------------------------------
    # Responses
    # -------------------------------------------------------------------------

    async def ask(
        self,
        question: str,
        vault_file_ids: Iterable[str] = (),
        enable_web_search: bool = False,
    ) -> AssistantMessage:
        """
        Send a question and stream the response.

        Transport failures are reported through ``stream.error`` and end the
        response; whatever was accumulated is kept in the returned message.

        Raises:
            ConversationBusyError: If a response is already in flight
        """
        if self._active is not None:
            raise ConversationBusyError(self.id)

        request = AskRequest.build(
            question,
            files=self.uploads,
            vault_file_ids=vault_file_ids,
            history=[m.to_turn() for m in self.messages],
            enable_web_search=enable_web_search,
        )
        self.messages.append(UserMessage(content=question))

        response = ResponseStream(
            resolver=self.resolver,
            emitter=self.emitter,
            accumulator=SectionAccumulator(
                fallback_min_chars=self._settings.fallback_min_chars,
                promote_untagged_text=self._settings.promote_untagged_text,
            ),
        )
        self._active = response
        bind_response_context(response.response_id, self.id)
        logger.info("Asking", question_chars=len(question), files=len(self.uploads))

        try:
            client = self._get_client()
            async with client.stream(request) as frames:
                await response.run(frames)
        except TransportError as e:
            logger.error("Transport failure", error=str(e), status_code=e.status_code)
            response.fail(e.user_message, e.status_code)
        except asyncio.CancelledError:
            response.cancel()
            raise
        finally:
            message = response.finalize()
            self.messages.append(message)
            self._active = None
            self._sources.rebuild([m.citations for m in self.assistant_messages])
            clear_response_context()

        return message

    def stop(self) -> bool:
        """Cancel the in-flight response; returns False when there is none."""
        if self._active is None:
            return False
        logger.info("Stopping response", response_id=self._active.response_id)
        self._active.cancel()
        return True

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()

    def _get_client(self) -> AskStreamClient:
        if self._client is None:
            self._client = AskStreamClient(self._settings)
        return self._client

    # -------------------------------------------------------------------------
    # Sources
    # -------------------------------------------------------------------------

    @property
    def sources(self) -> list[LogicalSource]:
        return self._sources.sources

    def locate_source(self, source_key: str, page_number: int | None = None) -> CitationRecord | None:
        """Citation to hand a viewer when a source (or one of its pages) is clicked."""
        return self._sources.locate(source_key, page_number)

    def follow_ups(self) -> list[str]:
        """Suggestions for the latest answer."""
        answers = self.assistant_messages
        if not answers:
            return []
        last = answers[-1]
        return suggest_follow_ups(last.final_answer or last.content)
