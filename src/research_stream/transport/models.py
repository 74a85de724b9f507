"""Outbound request body of the ask endpoint."""

import re
from typing import Iterable, Literal

from pydantic import BaseModel, ConfigDict, Field

from research_stream.citations.uploads import UploadedFileDescriptor


MAX_DOCUMENT_CHARS = 100_000

DRAFTING_KEYWORDS = ("draft", "write", "create", "compose", "generate", "prepare")

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

DRAFTING_INSTRUCTIONS = """IMPORTANT: This is a drafting request. Please format your response as follows:
1. Use [STEP X: Step Title] format to show each step taken (e.g., [STEP 1: Analyzing requirements], [STEP 2: Gathering context], [STEP 3: Drafting content])
2. Wrap the final draft in [EDITABLE_OUTPUT] tags
3. After the draft, include [FINISHED] and [SOURCES: X] where X is the number of sources used

Example format:
[STEP 1: Analyzing requirements]
Analyzing the drafting requirements...

[STEP 2: Gathering context]
Reviewing relevant sources...

[STEP 3: Drafting content]
Creating the draft...

[EDITABLE_OUTPUT]
[Your draft content here]
[/EDITABLE_OUTPUT]

[FINISHED]
[SOURCES: 3]"""


class SourceConfig(BaseModel):
    """Which sources the backend may consult."""

    model_config = ConfigDict(populate_by_name=True)

    include_document: bool = Field(default=False, alias="includeDocument")
    enable_web_search: bool = Field(default=False, alias="enableWebSearch")
    document_context: str | None = Field(default=None, alias="documentContext")
    vault_file_ids: list[str] | None = Field(default=None, alias="vaultFileIds")


class ConversationTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class AskRequest(BaseModel):
    """Body POSTed to the streaming ask endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    question: str
    source_config: SourceConfig = Field(default_factory=SourceConfig, alias="sourceConfig")
    conversation_history: list[ConversationTurn] | None = Field(
        default=None, alias="conversationHistory"
    )

    @classmethod
    def build(
        cls,
        question: str,
        files: Iterable[UploadedFileDescriptor] = (),
        vault_file_ids: Iterable[str] = (),
        history: Iterable[ConversationTurn] = (),
        enable_web_search: bool = False,
    ) -> "AskRequest":
        """
        Assemble a request from the user's question and context.

        Drafting questions are augmented with formatting instructions, file
        texts become the document context and non-UUID vault ids are dropped.
        """
        files = list(files)
        config = SourceConfig(
            include_document=bool(files),
            enable_web_search=enable_web_search,
        )

        context = build_document_context(files)
        if context:
            config.document_context = context
            config.include_document = True

        vault_ids = filter_vault_ids(vault_file_ids)
        if vault_ids:
            config.vault_file_ids = vault_ids

        turns = list(history)
        return cls(
            question=enhance_drafting_prompt(question),
            source_config=config,
            conversation_history=turns or None,
        )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def build_document_context(files: Iterable[UploadedFileDescriptor]) -> str | None:
    """Join extracted file texts into ``=== File: <name> ===`` blocks."""
    blocks = []
    for f in files:
        text = f.text[:MAX_DOCUMENT_CHARS]
        # Bracketed texts are extraction placeholders, not content.
        if not text or text.startswith("["):
            continue
        blocks.append(f"=== File: {f.display_name} ===\n{text}")
    return "\n\n".join(blocks) if blocks else None


def filter_vault_ids(ids: Iterable[str]) -> list[str]:
    return [i for i in ids if _UUID_RE.match(i)]


def is_drafting_request(question: str) -> bool:
    lowered = question.lower()
    return any(keyword in lowered for keyword in DRAFTING_KEYWORDS)


def enhance_drafting_prompt(question: str) -> str:
    if not is_drafting_request(question):
        return question
    return f"{question}\n\n{DRAFTING_INSTRUCTIONS}"
