"""Aggregate citations of completed responses into logical sources."""

from dataclasses import dataclass, field
from pathlib import PurePosixPath, PureWindowsPath
from typing import Iterable, Mapping, Sequence

from research_stream.citations.models import CitationKind, CitationRecord
from research_stream.citations.resolver import CitationResolver
from research_stream.config.settings import get_settings
from research_stream.utils.logging import get_logger


logger = get_logger(__name__)

CitationSet = Mapping[int, CitationRecord]


@dataclass
class LogicalSource:
    """One underlying document or web page, with every citation pointing at it."""

    source_key: str
    display_name: str
    kind: CitationKind
    page_count: int | None = None
    cited_pages: set[int] = field(default_factory=set)
    citation_ids: set[int] = field(default_factory=set)

    @property
    def sorted_pages(self) -> list[int]:
        return sorted(self.cited_pages)


def source_key(record: CitationRecord) -> str | None:
    """Identity of the logical source ``record`` points at.

    Documents and vault files: file handle, file path, title. Web: url,
    title. Playbook citations have no logical source.
    """
    if record.kind in (CitationKind.DOCUMENT, CitationKind.VAULT):
        return record.file_handle or record.file_path or record.title or f"source-{record.id}"
    if record.kind is CitationKind.WEB:
        return record.url or record.title or f"web-{record.id}"
    return None


def display_name(record: CitationRecord) -> str:
    if record.kind is CitationKind.WEB:
        return record.title or record.url or f"Web Source {record.id}"
    if record.title:
        return record.title
    if record.file_path:
        # Paths may come from either platform.
        return PureWindowsPath(PurePosixPath(record.file_path).name).name
    return f"Source {record.id}"


def aggregate_sources(
    citation_sets: Iterable[CitationSet],
    pdf_page_count: int = 50,
) -> list[LogicalSource]:
    """
    Fold citations into deduplicated logical sources, in first-seen order.

    Args:
        citation_sets: Citations of each completed response, oldest first
        pdf_page_count: Page count advertised for PDF-backed sources

    Returns:
        New LogicalSource objects; inputs are not modified
    """
    by_key: dict[str, LogicalSource] = {}
    for citations in citation_sets:
        for record in citations.values():
            key = source_key(record)
            if key is None:
                continue
            source = by_key.get(key)
            if source is None:
                source = LogicalSource(
                    source_key=key,
                    display_name=display_name(record),
                    kind=record.kind,
                )
                by_key[key] = source
            if record.is_pdf and source.page_count is None:
                source.page_count = pdf_page_count
            if record.page_number:
                source.cited_pages.add(record.page_number)
            source.citation_ids.add(record.id)
    return list(by_key.values())


class SourceIndex:
    """
    Source list of a conversation, recomputed from its completed responses.

    Nothing is exposed until a completed response has contributed at least
    one citation.
    """

    def __init__(
        self,
        resolver: CitationResolver | None = None,
        pdf_page_count: int | None = None,
    ):
        self._resolver = resolver
        self._pdf_page_count = (
            get_settings().default_pdf_page_count if pdf_page_count is None else pdf_page_count
        )
        self._citation_sets: list[CitationSet] = []
        self._sources: list[LogicalSource] = []

    def rebuild(self, citation_sets: Sequence[CitationSet]) -> list[LogicalSource]:
        """Recompute sources from the citations of every completed response."""
        self._citation_sets = list(citation_sets)
        self._sources = aggregate_sources(self._citation_sets, self._pdf_page_count)
        logger.debug(
            "Rebuilt source index",
            responses=len(self._citation_sets),
            sources=len(self._sources),
        )
        return self.sources

    @property
    def has_sources(self) -> bool:
        return any(len(citations) > 0 for citations in self._citation_sets)

    @property
    def sources(self) -> list[LogicalSource]:
        return list(self._sources) if self.has_sources else []

    def get(self, key: str) -> LogicalSource | None:
        for source in self.sources:
            if source.source_key == key:
                return source
        return None

    def citations_for(self, key: str) -> list[CitationRecord]:
        return [
            record
            for citations in self._citation_sets
            for record in citations.values()
            if self._points_at(record, key)
        ]

    def locate(self, key: str, page_number: int | None = None) -> CitationRecord | None:
        """
        Citation to open when the user clicks ``key`` (optionally a page of it).

        A citation on exactly ``page_number`` wins; otherwise the last
        citation of the source that is on no particular page. When the chosen
        citation names another page the viewer gets a copy on the clicked page.
        """
        found: CitationRecord | None = None
        for citations in self._citation_sets:
            for record in citations.values():
                if not self._points_at(record, key):
                    continue
                if page_number and record.page_number and record.page_number != page_number:
                    continue
                found = record
                if page_number and record.page_number == page_number:
                    break
            if found is not None and (not page_number or found.page_number == page_number):
                break

        if found is None:
            logger.debug("No citation for source click", source_key=key, page=page_number)
            return None
        if page_number and found.page_number != page_number:
            found = found.with_page(page_number)
        if self._resolver is not None:
            found = self._resolver.resolve(found)
        return found

    @staticmethod
    def _points_at(record: CitationRecord, key: str) -> bool:
        return (
            source_key(record) == key
            or record.file_handle == key
            or record.file_path == key
        )
