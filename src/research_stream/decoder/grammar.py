"""Tag grammar of the agent's response buffer.

Markers are case-sensitive and bracketed::

    [PROGRESS: <status>]\\nTIME: <text>\\nDESC: <text>\\n[/PROGRESS]
    [SEARCH]\\n<query>...\\n[/SEARCH]
    [REVIEWING: <count>]\\n<title>|<domain>...\\n[/REVIEWING]
    [STEP <n>: <title>]\\n<body>[SOURCES: <url>|<url>...]\\n[/STEP]
    [FINAL_ANSWER]<text>[/FINAL_ANSWER]
    [EDITABLE_OUTPUT]<text>[/EDITABLE_OUTPUT]
    [FINISHED]
    [SOURCES: <n>]

Only the ``=== CITATIONS ===`` divider is matched case-insensitively.
"""

import re
from enum import Enum


class TagKind(str, Enum):
    """Kinds of tagged blocks recognized in the buffer."""

    PROGRESS = "progress"
    SEARCH = "search"
    REVIEWING = "reviewing"
    STEP = "step"
    FINAL_ANSWER = "final_answer"
    EDITABLE_OUTPUT = "editable_output"
    FINISHED = "finished"
    SOURCE_COUNT = "source_count"


PROGRESS_RE = re.compile(
    r"\[PROGRESS: ([^\]]+)\]\n(?:TIME: ([^\n]+)\n)?(?:DESC: ([^\n]+)\n)?\[/PROGRESS\]"
)
SEARCH_RE = re.compile(r"\[SEARCH\]([\s\S]*?)\[/SEARCH\]")
REVIEWING_RE = re.compile(r"\[REVIEWING: (\d+)\]([\s\S]*?)\[/REVIEWING\]")

# A closed step body never runs across the header of a sibling step.
STEP_RE = re.compile(
    r"\[STEP (\d+): ([^\]]+)\]\n"
    r"((?:(?!\[STEP \d+: )[\s\S])*?)"
    r"(?:\[SOURCES: ([^\]]*)\])?\n\[/STEP\]"
)
STEP_HEADER_RE = re.compile(r"\[STEP (\d+): ([^\]]+)\]\n")
TRAILING_STEP_RE = re.compile(
    r"\[STEP (\d+): ([^\]]+)\]\n([\s\S]*?)"
    r"(?=\n\[STEP |\n\[FINAL_ANSWER\]|\n\[EDITABLE_OUTPUT\]|\n\[FINISHED\]|\Z)"
)

FINAL_ANSWER_RE = re.compile(r"\[FINAL_ANSWER\]([\s\S]*?)\[/FINAL_ANSWER\]")
EDITABLE_OUTPUT_RE = re.compile(r"\[EDITABLE_OUTPUT\]([\s\S]*?)\[/EDITABLE_OUTPUT\]")
FINISHED_MARKER = "[FINISHED]"
SOURCE_COUNT_RE = re.compile(r"\[SOURCES: (\d+)\]")

# Openers used to locate a block still being written at the tail.
OPEN_SEARCH_RE = re.compile(r"\[SEARCH\]")
OPEN_REVIEWING_RE = re.compile(r"\[REVIEWING: (\d+)\]")
OPEN_FINAL_ANSWER_RE = re.compile(r"\[FINAL_ANSWER\]")
OPEN_EDITABLE_OUTPUT_RE = re.compile(r"\[EDITABLE_OUTPUT\]")

CLOSERS = {
    TagKind.SEARCH: "[/SEARCH]",
    TagKind.REVIEWING: "[/REVIEWING]",
    TagKind.FINAL_ANSWER: "[/FINAL_ANSWER]",
    TagKind.EDITABLE_OUTPUT: "[/EDITABLE_OUTPUT]",
}

# Any top-level opener ends the body of a step that is still open.
BLOCK_BOUNDARY_RE = re.compile(
    r"\n\[(?:STEP \d+: |FINAL_ANSWER\]|EDITABLE_OUTPUT\]|FINISHED\]|PROGRESS: |SEARCH\]|REVIEWING: )"
)

STEP_SOURCES_RE = re.compile(r"\[SOURCES: ([^\]]+)\]")
OPEN_STEP_SOURCES_RE = re.compile(r"\[SOURCES:[^\]]*\Z")

CITATION_SUFFIX_RE = re.compile(r"===\s*CITATIONS\s*===[\s\S]*", re.IGNORECASE)

# "[", "[STE", "[STEP 2: Dra", "[/FINAL_AN" left at the very end of the buffer.
PARTIAL_TAG_TAIL_RE = re.compile(r"\[/?[A-Z_]*(?:[ :][^\]\n]*)?\Z")

# Removed before promoting leftover prose to the final answer.
STRUCTURAL_BLOCK_RES = (
    re.compile(r"\[PROGRESS:[\s\S]*?\[/PROGRESS\]"),
    SEARCH_RE,
    re.compile(r"\[REVIEWING:[\s\S]*?\[/REVIEWING\]"),
    re.compile(r"\[STEP \d+:[\s\S]*?\[/STEP\]"),
    EDITABLE_OUTPUT_RE,
    re.compile(r"\[STEP \d+:[\s\S]*\Z"),
    re.compile(r"\[(?:SEARCH|REVIEWING: \d+|FINAL_ANSWER|EDITABLE_OUTPUT|PROGRESS: [^\]]*)\][\s\S]*\Z"),
    re.compile(r"\[FINISHED\]"),
    SOURCE_COUNT_RE,
)


def strip_citation_suffix(text: str) -> str:
    """Drop the ``=== CITATIONS ===`` divider and everything after it."""
    return CITATION_SUFFIX_RE.sub("", text)


def strip_partial_tail(text: str) -> str:
    """Drop a half-written marker at the end of ``text``."""
    return PARTIAL_TAG_TAIL_RE.sub("", text)


def split_pipe_list(text: str) -> list[str]:
    """Split ``a|b|c`` into trimmed, non-empty items."""
    return [item.strip() for item in text.split("|") if item.strip()]
