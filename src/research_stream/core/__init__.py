"""Core error types and resilience patterns."""

from research_stream.core.exceptions import (
    ConversationBusyError,
    CreditsRequiredError,
    RateLimitedError,
    ResearchStreamError,
    TransportError,
)

__all__ = [
    "ResearchStreamError",
    "TransportError",
    "RateLimitedError",
    "CreditsRequiredError",
    "ConversationBusyError",
]
