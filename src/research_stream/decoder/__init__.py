"""Incremental decoder for the agent's tagged response buffer."""

from research_stream.decoder.accumulator import (
    AccumulatedView,
    SectionAccumulator,
    decode,
    merge_views,
)
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

__all__ = [
    "AccumulatedView",
    "SectionAccumulator",
    "decode",
    "merge_views",
    "scan",
    "ScanResult",
    "TagMatch",
    "TagKind",
    "Section",
    "ProgressSection",
    "SearchSection",
    "ReviewSection",
    "ReviewedSource",
    "StepSection",
    "StepSource",
    "StepStatus",
    "FinalAnswer",
    "EditableOutput",
    "Completion",
]
