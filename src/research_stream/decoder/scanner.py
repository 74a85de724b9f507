"""Scanner over the cumulative response buffer.

The scanner is re-run on the whole buffer for every fragment: a later
fragment can complete a tag that was cut off earlier, so matches are never
carried over from a previous scan.
"""

from dataclasses import dataclass, field

from research_stream.decoder import grammar
from research_stream.decoder.grammar import TagKind


@dataclass(frozen=True)
class TagMatch:
    """One recognized tag region of the buffer."""

    kind: TagKind
    start: int
    end: int
    groups: tuple[str | None, ...] = ()
    partial: bool = False   # Still being written at the tail
    trailing: bool = False  # Unclosed step finalized after the stream ended


@dataclass
class ScanResult:
    """Closed matches per kind plus at most one open match per kind."""

    closed: dict[TagKind, list[TagMatch]] = field(default_factory=dict)
    partial: dict[TagKind, TagMatch] = field(default_factory=dict)
    finished_at: int | None = None

    def matches(self, kind: TagKind) -> list[TagMatch]:
        """Closed matches of ``kind`` followed by its partial match, if any."""
        found = list(self.closed.get(kind, []))
        if kind in self.partial:
            found.append(self.partial[kind])
        return found

    @property
    def has_tags(self) -> bool:
        return any(self.closed.values()) or bool(self.partial) or self.finished_at is not None


def scan(buffer: str, streaming: bool) -> ScanResult:
    """
    Recognize every tag in ``buffer``.

    Args:
        buffer: Entire text accumulated so far
        streaming: True while more fragments may arrive

    Returns:
        ScanResult with closed matches; partial matches only when streaming,
        trailing steps and unclosed answer blocks closed at their boundary
        only when not
    """
    result = ScanResult()

    result.closed[TagKind.PROGRESS] = _find_all(TagKind.PROGRESS, grammar.PROGRESS_RE, buffer)
    result.closed[TagKind.SEARCH] = _find_all(TagKind.SEARCH, grammar.SEARCH_RE, buffer)
    result.closed[TagKind.REVIEWING] = _find_all(TagKind.REVIEWING, grammar.REVIEWING_RE, buffer)
    result.closed[TagKind.STEP] = _find_all(TagKind.STEP, grammar.STEP_RE, buffer)
    result.closed[TagKind.FINAL_ANSWER] = _find_first(
        TagKind.FINAL_ANSWER, grammar.FINAL_ANSWER_RE, buffer
    )
    result.closed[TagKind.EDITABLE_OUTPUT] = _find_first(
        TagKind.EDITABLE_OUTPUT, grammar.EDITABLE_OUTPUT_RE, buffer
    )

    finished_at = buffer.find(grammar.FINISHED_MARKER)
    if finished_at >= 0:
        result.finished_at = finished_at
        count = grammar.SOURCE_COUNT_RE.search(buffer, finished_at)
        if count is None:
            count = grammar.SOURCE_COUNT_RE.search(buffer)
        if count is not None:
            result.closed[TagKind.SOURCE_COUNT] = [
                TagMatch(TagKind.SOURCE_COUNT, count.start(), count.end(), count.groups())
            ]

    if streaming:
        _scan_partials(buffer, result)
    else:
        result.closed[TagKind.STEP] = _with_trailing_steps(buffer, result.closed[TagKind.STEP])
        for kind, opener in (
            (TagKind.FINAL_ANSWER, grammar.OPEN_FINAL_ANSWER_RE),
            (TagKind.EDITABLE_OUTPUT, grammar.OPEN_EDITABLE_OUTPUT_RE),
        ):
            if not result.closed[kind]:
                result.closed[kind] = _trailing_block(kind, opener, buffer)

    return result


def _find_all(kind: TagKind, pattern, buffer: str) -> list[TagMatch]:
    return [
        TagMatch(kind, m.start(), m.end(), m.groups())
        for m in pattern.finditer(buffer)
    ]


def _find_first(kind: TagKind, pattern, buffer: str) -> list[TagMatch]:
    m = pattern.search(buffer)
    return [TagMatch(kind, m.start(), m.end(), m.groups())] if m else []


def _scan_partials(buffer: str, result: ScanResult) -> None:
    step = _open_step(buffer, result.closed[TagKind.STEP])
    if step is not None:
        result.partial[TagKind.STEP] = step

    openers = (
        (TagKind.SEARCH, grammar.OPEN_SEARCH_RE),
        (TagKind.REVIEWING, grammar.OPEN_REVIEWING_RE),
        (TagKind.FINAL_ANSWER, grammar.OPEN_FINAL_ANSWER_RE),
        (TagKind.EDITABLE_OUTPUT, grammar.OPEN_EDITABLE_OUTPUT_RE),
    )
    for kind, opener in openers:
        if kind in (TagKind.FINAL_ANSWER, TagKind.EDITABLE_OUTPUT) and result.closed[kind]:
            continue
        match = _open_block(kind, opener, buffer)
        if match is not None:
            result.partial[kind] = match


def _open_block(kind: TagKind, opener, buffer: str) -> TagMatch | None:
    """Last opener of ``kind`` with no closer after it."""
    last = None
    for last in opener.finditer(buffer):
        pass
    if last is None or grammar.CLOSERS[kind] in buffer[last.end():]:
        return None
    body = buffer[last.end():]
    return TagMatch(kind, last.start(), len(buffer), last.groups() + (body,), partial=True)


def _trailing_block(kind: TagKind, opener, buffer: str) -> list[TagMatch]:
    """Unclosed block closed at the next top-level marker or the end of the buffer."""
    match = _open_block(kind, opener, buffer)
    if match is None:
        return []
    body = match.groups[-1]
    boundary = grammar.BLOCK_BOUNDARY_RE.search(body)
    if boundary is not None:
        body = body[:boundary.start()]
    opener_end = match.end - len(match.groups[-1])
    return [TagMatch(
        kind,
        match.start,
        opener_end + len(body),
        match.groups[:-1] + (body,),
        trailing=True,
    )]


def _open_step(buffer: str, closed: list[TagMatch]) -> TagMatch | None:
    """Last step header that does not begin a closed step."""
    closed_starts = {m.start for m in closed}
    closed_numbers = {m.groups[0] for m in closed}
    last = None
    for last in grammar.STEP_HEADER_RE.finditer(buffer):
        pass
    if last is None or last.start() in closed_starts or last.group(1) in closed_numbers:
        return None

    body = buffer[last.end():]
    boundary = grammar.BLOCK_BOUNDARY_RE.search(body)
    if boundary is not None:
        body = body[:boundary.start()]
    return TagMatch(
        TagKind.STEP,
        last.start(),
        last.end() + len(body),
        (last.group(1), last.group(2), body),
        partial=True,
    )


def _with_trailing_steps(buffer: str, closed: list[TagMatch]) -> list[TagMatch]:
    """Finalize unclosed steps, each bounded by the next sibling marker."""
    numbers = {m.groups[0] for m in closed}
    covered = [(m.start, m.end) for m in closed]
    steps = list(closed)
    for m in grammar.TRAILING_STEP_RE.finditer(buffer):
        if m.group(1) in numbers:
            continue
        if any(start <= m.start() < end for start, end in covered):
            continue
        numbers.add(m.group(1))
        steps.append(TagMatch(TagKind.STEP, m.start(), m.end(), m.groups(), trailing=True))
    steps.sort(key=lambda m: m.start)
    return steps
