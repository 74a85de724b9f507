"""Citation data models.

Citation payloads arrive out of band, keyed by the numeric id that prose
refers to with ``[n]``. Wire field names are camelCase; Python attributes
are snake_case and both are accepted on input.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CitationKind(str, Enum):
    """Origin of a cited source."""

    DOCUMENT = "document"   # File uploaded with the question
    VAULT = "vault"         # File stored server-side
    WEB = "web"
    PLAYBOOK = "playbook"


class HighlightRegion(BaseModel):
    """Box to highlight on a rendered page."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    x: float
    y: float
    width: float
    height: float
    page_width: float = Field(..., alias="pageWidth")
    page_height: float = Field(..., alias="pageHeight")
    page_number: int | None = Field(None, alias="pageNumber")


class CitationRecord(BaseModel):
    """
    One numbered source reference.

    Records are immutable; the resolver returns a copy carrying the matched
    file handle instead of mutating the stored record.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: int = Field(..., description="Unique within one response")
    kind: CitationKind = Field(..., alias="type")
    title: str = ""
    snippet: str = ""
    full_content: str | None = Field(None, alias="fullContent")
    url: str | None = None
    file_handle: str | None = Field(None, alias="fileId")
    file_path: str | None = Field(None, alias="filePath")
    is_pdf: bool | None = Field(None, alias="isPDF")
    paragraph_index: int | None = Field(None, alias="paragraphIndex")
    page_number: int | None = Field(None, alias="pageNumber")
    highlight_region: HighlightRegion | None = Field(None, alias="highlightBox")

    @classmethod
    def from_event(cls, citation_id: int, source: dict[str, Any]) -> "CitationRecord":
        """Build a record from a citation frame's ``source`` payload.

        The frame's id wins over any id inside the payload. Document
        citations without full content fall back to their snippet.
        """
        data = {**source, "id": citation_id}
        record = cls.model_validate(data)
        if record.kind is CitationKind.DOCUMENT and not record.full_content and record.snippet:
            record = record.model_copy(update={"full_content": record.snippet})
        return record

    @property
    def is_file_backed(self) -> bool:
        """Whether a viewer can open the underlying file."""
        return bool(self.file_handle or self.file_path)

    @property
    def excerpt(self) -> str:
        """Plain-text excerpt shown when no file view is available."""
        return self.full_content or self.snippet

    def with_file(self, file_handle: str, is_pdf: bool) -> "CitationRecord":
        return self.model_copy(update={"file_handle": file_handle, "is_pdf": is_pdf})

    def with_page(self, page_number: int) -> "CitationRecord":
        return self.model_copy(update={"page_number": page_number})

    def to_wire(self) -> dict[str, Any]:
        """Serialize with wire field names."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
