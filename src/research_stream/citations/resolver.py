"""Link document citations to files uploaded with the question."""

from typing import Iterable

from research_stream.citations.models import CitationKind, CitationRecord
from research_stream.citations.store import CitationStore
from research_stream.citations.uploads import UploadedFileDescriptor
from research_stream.utils.logging import get_logger


logger = get_logger(__name__)


def names_match(citation_title: str, display_name: str) -> bool:
    """Case-folded containment in either direction.

    Empty strings never match: "" is contained in every name.
    """
    title = citation_title.casefold().strip()
    name = display_name.casefold().strip()
    if not title or not name:
        return False
    return title == name or title in name or name in title


class CitationResolver:
    """
    Attach uploaded-file handles to document citations by name.

    Resolution is opportunistic: a record that found no file when it arrived
    can be resolved again later, once its file has been registered.
    """

    def __init__(self, files: Iterable[UploadedFileDescriptor]):
        """
        Args:
            files: Live, read-only view of uploaded-file descriptors. It is
                iterated afresh on every resolution attempt.
        """
        self._files = files

    @staticmethod
    def needs_resolution(record: CitationRecord) -> bool:
        return (
            record.kind is CitationKind.DOCUMENT
            and not record.file_path
            and not record.file_handle
        )

    def match(self, title: str) -> UploadedFileDescriptor | None:
        """First uploaded file whose name matches ``title``."""
        for descriptor in self._files:
            if names_match(title, descriptor.display_name):
                return descriptor
        return None

    def resolve(self, record: CitationRecord) -> CitationRecord:
        """
        Return ``record`` with ``file_handle``/``is_pdf`` attached when a file matches.

        The same object comes back when nothing applies, so callers can
        detect a change with an identity check.
        """
        if not self.needs_resolution(record):
            return record
        descriptor = self.match(record.title)
        if descriptor is None:
            logger.debug("Document citation left unresolved", citation_id=record.id)
            return record
        logger.debug(
            "Resolved document citation",
            citation_id=record.id,
            file_handle=descriptor.handle,
        )
        return record.with_file(descriptor.handle, descriptor.is_pdf)

    def resolve_store(self, store: CitationStore) -> int:
        """Re-attempt every unresolved record in ``store``."""
        return store.update_where(self.resolve)
