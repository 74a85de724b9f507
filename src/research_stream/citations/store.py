"""Citation store for the response currently being streamed."""

from typing import Callable, Iterator

from research_stream.citations.models import CitationRecord
from research_stream.utils.logging import get_logger


logger = get_logger(__name__)


class CitationStore:
    """
    Citation records of one in-flight response, keyed by citation id.

    The finished response takes a deep copy with ``snapshot``; the store is
    then cleared for the next response. Rendering reads through the same
    object, so a record put before a fragment is re-rendered is always
    visible to that render.
    """

    def __init__(self):
        self._records: dict[int, CitationRecord] = {}

    def put(self, record: CitationRecord) -> None:
        """Store a record, replacing any earlier record with the same id."""
        if record.id in self._records:
            logger.debug("Replacing citation", citation_id=record.id)
        self._records[record.id] = record

    def get(self, citation_id: int) -> CitationRecord | None:
        return self._records.get(citation_id)

    def snapshot(self) -> dict[int, CitationRecord]:
        """Deep copy of all records in arrival order."""
        return {
            citation_id: record.model_copy(deep=True)
            for citation_id, record in self._records.items()
        }

    def clear(self) -> None:
        self._records.clear()

    def update_where(
        self,
        transform: Callable[[CitationRecord], CitationRecord],
    ) -> int:
        """Replace every record with ``transform(record)``; return how many changed."""
        changed = 0
        for citation_id, record in list(self._records.items()):
            updated = transform(record)
            if updated is not record:
                self._records[citation_id] = updated
                changed += 1
        return changed

    @property
    def ids(self) -> list[int]:
        return list(self._records)

    def __contains__(self, citation_id: object) -> bool:
        return citation_id in self._records

    def __iter__(self) -> Iterator[CitationRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)
