"""HTTP client for the streaming ask endpoint.

Resilience patterns applied:
- Retry with exponential backoff while opening the stream
- Status classification (429, 402, 5xx) into transport exceptions
- No replay once frames have been read
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from hyx.retry.exceptions import MaxAttemptsExceeded

from research_stream.config.settings import Settings, get_settings
from research_stream.core.exceptions import TransportError
from research_stream.core.resilience import (
    TransientError,
    stream_retry,
    wrap_httpx_errors,
)
from research_stream.events.frames import Frame, parse_frame
from research_stream.transport.models import AskRequest
from research_stream.transport.sse import iter_sse_payloads
from research_stream.utils.logging import get_logger


logger = get_logger(__name__)


class AskStreamClient:
    """
    Async HTTP client for the agent's streaming ask endpoint.

    Features:
    - Bearer authentication when a token is configured
    - Automatic retry of transient failures before the first frame
    - Frames decoded from server-sent events
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Client settings (defaults to the environment)
            transport: Optional httpx transport, e.g. a MockTransport
        """
        self._settings = settings or get_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self._settings.auth_token:
                headers["Authorization"] = f"Bearer {self._settings.auth_token}"
            self._client = httpx.AsyncClient(
                base_url=self._settings.api_base_url.rstrip("/"),
                headers=headers,
                timeout=httpx.Timeout(
                    self._settings.request_timeout_seconds,
                    connect=self._settings.connect_timeout_seconds,
                ),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "AskStreamClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @wrap_httpx_errors
    async def _send(self, request: AskRequest) -> httpx.Response:
        client = await self._get_client()
        http_request = client.build_request(
            "POST",
            self._settings.ask_stream_path,
            json=request.to_wire(),
        )
        response = await client.send(http_request, stream=True)
        if response.is_error:
            await response.aclose()
            response.raise_for_status()
        return response

    async def _open(self, request: AskRequest) -> httpx.Response:
        """
        Open the response stream.

        Resilience: Retry with exponential backoff on transient errors.
        """
        send = stream_retry(self._settings.connect_retry_attempts)(self._send)
        try:
            return await send(request)
        except MaxAttemptsExceeded as e:
            last = e.__context__
            status_code = last.status_code if isinstance(last, TransportError) else None
            logger.warning("Stream open retries exhausted", attempts=self._settings.connect_retry_attempts)
            raise TransientError(
                "Failed to open stream after retries", status_code=status_code
            ) from e
        except TransportError:
            raise
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to start stream: {e}") from e

    @asynccontextmanager
    async def stream(self, request: AskRequest) -> AsyncIterator[AsyncIterator[Frame]]:
        """
        Open a streaming response.

        Args:
            request: The ask request body

        Yields:
            Async iterator of decoded frames

        Raises:
            TransportError: If the stream cannot be opened or breaks
        """
        response = await self._open(request)
        logger.info("Stream opened", status_code=response.status_code)

        async def frames() -> AsyncIterator[Frame]:
            try:
                async for payload in iter_sse_payloads(response.aiter_lines()):
                    frame = parse_frame(payload)
                    if frame is not None:
                        yield frame
            except httpx.HTTPError as e:
                raise TransportError(f"Stream interrupted: {e}") from e

        try:
            yield frames()
        finally:
            await response.aclose()
