"""Server-sent-events framing for the agent stream."""

import json
from typing import Any, AsyncIterable, AsyncIterator

from research_stream.utils.logging import get_logger


logger = get_logger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


async def iter_sse_payloads(lines: AsyncIterable[str]) -> AsyncIterator[Any]:
    """
    Decode ``data:`` lines into JSON payloads.

    Comment lines (``:``) and blank lines are skipped, a ``[DONE]`` payload
    ends iteration, and lines that are not valid JSON are logged and dropped.

    Args:
        lines: Text lines of the response body

    Yields:
        Decoded JSON values in arrival order
    """
    async for line in lines:
        if line.endswith("\r"):
            line = line[:-1]
        if line.startswith(":") or not line.strip():
            continue
        if not line.startswith(DATA_PREFIX):
            continue

        data = line[len(DATA_PREFIX):].strip()
        if data == DONE_SENTINEL:
            return

        try:
            yield json.loads(data)
        except json.JSONDecodeError as e:
            logger.warning("Skipping undecodable stream line", error=str(e), line=data[:200])
