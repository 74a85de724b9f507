"""Split prose into text and ``[n]`` citation markers."""

import re
from dataclasses import dataclass
from typing import Mapping

from research_stream.citations.models import CitationRecord


CITATION_MARKER_RE = re.compile(r"\[(\d+)\]")


@dataclass(frozen=True)
class ProseSegment:
    """
    A run of prose, or one citation marker.

    A marker whose id has a record is interactive; one without a record is
    kept as its literal ``[n]`` text and must render as inert text.
    """

    text: str
    citation_id: int | None = None
    citation: CitationRecord | None = None

    @property
    def is_marker(self) -> bool:
        return self.citation_id is not None

    @property
    def interactive(self) -> bool:
        return self.citation is not None


def split_citation_markers(
    text: str,
    citations: Mapping[int, CitationRecord] | None,
) -> list[ProseSegment]:
    """Split ``text`` at ``[n]`` markers, resolving each against ``citations``."""
    if not citations:
        return [ProseSegment(text)] if text else []

    segments: list[ProseSegment] = []
    last = 0
    for m in CITATION_MARKER_RE.finditer(text):
        if m.start() > last:
            segments.append(ProseSegment(text[last:m.start()]))
        citation_id = int(m.group(1))
        segments.append(ProseSegment(m.group(0), citation_id, citations.get(citation_id)))
        last = m.end()
    if last < len(text):
        segments.append(ProseSegment(text[last:]))
    return segments


def cited_ids(text: str) -> list[int]:
    """Distinct citation ids referenced in ``text``, in order of appearance."""
    seen: dict[int, None] = {}
    for m in CITATION_MARKER_RE.finditer(text):
        seen.setdefault(int(m.group(1)), None)
    return list(seen)
