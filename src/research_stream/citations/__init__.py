"""Citation records, their store, resolution and source aggregation."""

from research_stream.citations.markers import ProseSegment, cited_ids, split_citation_markers
from research_stream.citations.models import CitationKind, CitationRecord, HighlightRegion
from research_stream.citations.resolver import CitationResolver, names_match
from research_stream.citations.sources import (
    LogicalSource,
    SourceIndex,
    aggregate_sources,
    display_name,
    source_key,
)
from research_stream.citations.store import CitationStore
from research_stream.citations.uploads import UploadedFileDescriptor, UploadedFileRegistry

__all__ = [
    "CitationKind",
    "CitationRecord",
    "HighlightRegion",
    "CitationStore",
    "CitationResolver",
    "names_match",
    "UploadedFileDescriptor",
    "UploadedFileRegistry",
    "LogicalSource",
    "SourceIndex",
    "aggregate_sources",
    "source_key",
    "display_name",
    "ProseSegment",
    "split_citation_markers",
    "cited_ids",
]
