"""Streaming ask endpoint transport."""

from research_stream.transport.client import AskStreamClient
from research_stream.transport.models import (
    AskRequest,
    ConversationTurn,
    SourceConfig,
    build_document_context,
    enhance_drafting_prompt,
    filter_vault_ids,
    is_drafting_request,
)
from research_stream.transport.sse import iter_sse_payloads

__all__ = [
    "AskStreamClient",
    "AskRequest",
    "ConversationTurn",
    "SourceConfig",
    "build_document_context",
    "enhance_drafting_prompt",
    "filter_vault_ids",
    "is_drafting_request",
    "iter_sse_payloads",
]
