"""Section accumulator.

Every call re-derives the full view from the cumulative buffer
(``decode`` is a pure function of its inputs). ``SectionAccumulator`` then
merges the derivation into the previous view so that a step once seen as
complete stays complete and a step already shown never disappears.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from research_stream.config.settings import get_settings
from research_stream.decoder import grammar
from research_stream.decoder.grammar import TagKind
from research_stream.decoder.scanner import ScanResult, TagMatch, scan
from research_stream.decoder.sections import (
    Completion,
    EditableOutput,
    FinalAnswer,
    ProgressSection,
    ReviewedSource,
    ReviewSection,
    SearchSection,
    Section,
    StepSection,
    StepSource,
    StepStatus,
)
from research_stream.utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_FALLBACK_MIN_CHARS = 50


@dataclass(frozen=True)
class AccumulatedView:
    """Everything the renderer needs for one response at one instant."""

    sections: tuple[Section, ...] = ()
    offsets: tuple[int, ...] = field(default=(), repr=False)
    final_answer: str | None = None
    editable_output: str | None = None
    finished: bool = False
    source_count: int | None = None
    final_answer_is_fallback: bool = False

    @property
    def steps(self) -> list[StepSection]:
        return [s for s in self.sections if isinstance(s, StepSection)]

    @property
    def progress(self) -> list[ProgressSection]:
        return [s for s in self.sections if isinstance(s, ProgressSection)]

    @property
    def latest_progress(self) -> ProgressSection | None:
        progress = self.progress
        return progress[-1] if progress else None

    @property
    def searches(self) -> list[SearchSection]:
        return [s for s in self.sections if isinstance(s, SearchSection)]

    @property
    def reviews(self) -> list[ReviewSection]:
        return [s for s in self.sections if isinstance(s, ReviewSection)]

    def step(self, step_number: int) -> StepSection | None:
        for s in self.steps:
            if s.step_number == step_number:
                return s
        return None


def decode(
    buffer: str,
    streaming: bool,
    *,
    fallback_min_chars: int = DEFAULT_FALLBACK_MIN_CHARS,
    promote_untagged_text: bool = True,
    implicit_completion: bool = True,
) -> AccumulatedView:
    """
    Derive the view of ``buffer`` from scratch.

    Args:
        buffer: Entire response text accumulated so far
        streaming: True while more fragments may arrive
        fallback_min_chars: Minimum length of leftover prose promoted to the
            final answer when no final-answer block exists
        promote_untagged_text: Whether that promotion happens at all
        implicit_completion: Whether a closed, non-empty buffer counts as
            finished without a [FINISHED] marker

    Returns:
        AccumulatedView; never raises on malformed input
    """
    result = scan(buffer, streaming)
    placed: list[tuple[int, Section]] = []

    for m in result.closed[TagKind.PROGRESS]:
        status, time_remaining, description = m.groups
        placed.append((m.start, ProgressSection(
            status=status.strip(),
            time_remaining=time_remaining.strip() if time_remaining else None,
            description=description.strip() if description else None,
        )))

    for m in result.matches(TagKind.SEARCH):
        section = _search_section(m)
        if section is not None:
            placed.append((m.start, section))

    for m in result.matches(TagKind.REVIEWING):
        placed.append((m.start, _review_section(m)))

    for m in result.matches(TagKind.STEP):
        section = _step_section(m)
        if section is not None:
            placed.append((m.start, section))

    final_answer, fallback = _final_answer(
        buffer, result, fallback_min_chars, promote_untagged_text
    )
    if final_answer:
        answer_match = result.matches(TagKind.FINAL_ANSWER)
        offset = answer_match[0].start if answer_match else len(buffer)
        placed.append((offset, FinalAnswer(final_answer)))

    editable_output = _block_text(result.matches(TagKind.EDITABLE_OUTPUT))
    if editable_output:
        offset = result.matches(TagKind.EDITABLE_OUTPUT)[0].start
        placed.append((offset, EditableOutput(editable_output)))

    source_count = None
    if TagKind.SOURCE_COUNT in result.closed:
        source_count = int(result.closed[TagKind.SOURCE_COUNT][0].groups[0])

    # Backends do not always emit [FINISHED]; a closed, non-empty stream is done.
    finished = result.finished_at is not None or (
        implicit_completion and not streaming and len(buffer) > 0
    )
    if finished:
        offset = result.finished_at if result.finished_at is not None else len(buffer) + 1
        placed.append((offset, Completion(finished=True, source_count=source_count)))

    placed.sort(key=lambda item: item[0])
    return AccumulatedView(
        sections=tuple(section for _, section in placed),
        offsets=tuple(offset for offset, _ in placed),
        final_answer=final_answer or None,
        editable_output=editable_output or None,
        finished=finished,
        source_count=source_count,
        final_answer_is_fallback=fallback,
    )


def merge_views(previous: AccumulatedView, derived: AccumulatedView) -> AccumulatedView:
    """Merge a fresh derivation into the previous view, step by step number.

    The most advanced status wins per step number. Steps present in
    ``previous`` but absent from ``derived`` are kept at their old position.
    """
    earlier: dict[int, tuple[int, StepSection]] = {
        s.step_number: (offset, s)
        for offset, s in zip(previous.offsets, previous.sections)
        if isinstance(s, StepSection)
    }
    placed: list[tuple[int, Section]] = []
    seen: set[int] = set()

    for offset, section in zip(derived.offsets, derived.sections):
        if isinstance(section, StepSection):
            seen.add(section.step_number)
            prior = earlier.get(section.step_number)
            if prior is not None and prior[1].status.rank > section.status.rank:
                logger.debug(
                    "Kept completed step over re-parsed open step",
                    step_number=section.step_number,
                )
                section = prior[1]
        placed.append((offset, section))

    for number, (offset, section) in earlier.items():
        if number not in seen:
            placed.append((offset, section))

    placed.sort(key=lambda item: item[0])
    return AccumulatedView(
        sections=tuple(section for _, section in placed),
        offsets=tuple(offset for offset, _ in placed),
        final_answer=derived.final_answer,
        editable_output=derived.editable_output,
        finished=derived.finished,
        source_count=derived.source_count,
        final_answer_is_fallback=derived.final_answer_is_fallback,
    )


class SectionAccumulator:
    """
    Accumulated section state of one response.

    Owned by a single response's processing lifecycle; call ``reset`` (or
    build a new accumulator) before reusing it for another response.
    """

    def __init__(
        self,
        fallback_min_chars: int | None = None,
        promote_untagged_text: bool | None = None,
    ):
        settings = get_settings()
        self._fallback_min_chars = (
            settings.fallback_min_chars if fallback_min_chars is None else fallback_min_chars
        )
        self._promote_untagged_text = (
            settings.promote_untagged_text
            if promote_untagged_text is None
            else promote_untagged_text
        )
        self._view = AccumulatedView()

    @property
    def view(self) -> AccumulatedView:
        return self._view

    def accumulate(
        self,
        buffer: str,
        is_streaming: bool,
        implicit_completion: bool = True,
    ) -> AccumulatedView:
        """Re-derive the view of ``buffer`` and merge it into the current one."""
        derived = decode(
            buffer,
            is_streaming,
            implicit_completion=implicit_completion,
            fallback_min_chars=self._fallback_min_chars,
            promote_untagged_text=self._promote_untagged_text,
        )
        self._view = merge_views(self._view, derived)
        return self._view

    def reset(self) -> None:
        self._view = AccumulatedView()


# =============================================================================
# MATCH CONVERSION
# =============================================================================


def _lines(text: str) -> list[str]:
    return [line.strip() for line in text.strip().split("\n") if line.strip()]


def _search_section(m: TagMatch) -> SearchSection | None:
    body = m.groups[-1] or ""
    if m.partial:
        body = grammar.strip_partial_tail(body)
    queries = _lines(body)
    return SearchSection(tuple(queries)) if queries else None


def _review_section(m: TagMatch) -> ReviewSection:
    count, body = m.groups[0], m.groups[-1] or ""
    if m.partial:
        body = grammar.strip_partial_tail(body)
    sources = []
    for line in _lines(body):
        parts = [part.strip() for part in line.split("|")]
        title = parts[0] or line
        domain = parts[1] if len(parts) > 1 and parts[1] else "unknown"
        sources.append(ReviewedSource(title=title, domain=domain))
    return ReviewSection(sources=tuple(sources), count=int(count))


def _step_section(m: TagMatch) -> StepSection | None:
    number, title = int(m.groups[0]), m.groups[1].strip()

    if m.partial:
        body = grammar.strip_partial_tail(m.groups[2])
        body = grammar.OPEN_STEP_SOURCES_RE.sub("", body)
        sources = _inline_sources(body)
        body = grammar.STEP_SOURCES_RE.sub("", body, count=1).strip()
        if not body:
            return None
        return StepSection(number, title, body, StepStatus.THINKING, sources or ())

    if m.trailing:
        body = m.groups[2].strip()
        sources = _inline_sources(body)
        if sources is not None:
            body = grammar.STEP_SOURCES_RE.sub("", body, count=1).strip()
        return StepSection(number, title, body, StepStatus.COMPLETE, sources)

    body, raw_sources = m.groups[2], m.groups[3]
    sources = None
    if raw_sources is not None:
        sources = tuple(StepSource(url) for url in grammar.split_pipe_list(raw_sources))
    return StepSection(number, title, body.strip(), StepStatus.COMPLETE, sources)


def _inline_sources(body: str) -> tuple[StepSource, ...] | None:
    found = grammar.STEP_SOURCES_RE.search(body)
    if found is None:
        return None
    return tuple(StepSource(url) for url in grammar.split_pipe_list(found.group(1)))


def _block_text(matches: list[TagMatch]) -> str:
    if not matches:
        return ""
    m = matches[0]
    text = m.groups[-1] or ""
    if m.partial or m.trailing:
        text = grammar.strip_partial_tail(text)
    return grammar.strip_citation_suffix(text).strip()


def _final_answer(
    buffer: str,
    result: ScanResult,
    fallback_min_chars: int,
    promote_untagged_text: bool,
) -> tuple[str, bool]:
    matches = result.matches(TagKind.FINAL_ANSWER)
    if matches:
        return _block_text(matches), False
    if not promote_untagged_text:
        return "", False

    residual = buffer
    for pattern in grammar.STRUCTURAL_BLOCK_RES:
        residual = pattern.sub("", residual)
    residual = grammar.strip_partial_tail(grammar.strip_citation_suffix(residual)).strip()
    if len(residual) > fallback_min_chars:
        logger.debug(
            "Promoted untagged text to final answer",
            chars=len(residual),
            had_tags=result.has_tags,
        )
        return residual, True
    return "", False
