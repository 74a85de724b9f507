"""Domain exceptions for the research stream client.

Only transport-level failures are raised out of the core. Malformed tags,
unknown citation ids and unmatched documents are recovered where they occur.
"""


class ResearchStreamError(Exception):
    """Base exception for all research stream errors."""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message)
        self.recoverable = recoverable


class TransportError(ResearchStreamError):
    """The agent stream could not be opened or broke mid-response."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        recoverable: bool = True,
    ):
        super().__init__(message, recoverable)
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        """Text for the user-visible notification."""
        return "Failed to get response. Please try again."


class RateLimitedError(TransportError):
    """Backend answered HTTP 429."""

    def __init__(self, message: str = "Rate limit exceeded"):
        super().__init__(message, status_code=429)

    @property
    def user_message(self) -> str:
        return "Rate limit exceeded. Please try again in a moment."


class CreditsRequiredError(TransportError):
    """Backend answered HTTP 402."""

    def __init__(self, message: str = "Credits required"):
        super().__init__(message, status_code=402, recoverable=False)

    @property
    def user_message(self) -> str:
        return "Credits required. Please add credits to continue using the agent."


class ConversationBusyError(ResearchStreamError):
    """A response is already in flight for this conversation."""

    def __init__(self, conversation_id: str):
        super().__init__(
            f"Conversation {conversation_id} already has a response in flight",
            recoverable=True,
        )
        self.conversation_id = conversation_id
