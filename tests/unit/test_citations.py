"""Tests for citation records, the store, the resolver and prose markers."""

import pytest
from pydantic import ValidationError

from research_stream.citations.markers import cited_ids, split_citation_markers
from research_stream.citations.models import CitationKind, CitationRecord, HighlightRegion
from research_stream.citations.resolver import CitationResolver, names_match
from research_stream.citations.store import CitationStore
from research_stream.citations.uploads import UploadedFileDescriptor, UploadedFileRegistry


class TestCitationRecord:
    """Tests for the citation model."""

    def test_from_event_uses_frame_id(self):
        """Test the frame id wins over the source id."""
        record = CitationRecord.from_event(3, {"id": 99, "type": "web", "title": "T", "url": "https://x"})
        assert record.id == 3
        assert record.kind is CitationKind.WEB

    def test_document_full_content_falls_back_to_snippet(self, citation):
        """Test document full content defaults to the snippet."""
        record = citation(1, title="a.pdf", snippet="quoted text")
        assert record.full_content == "quoted text"
        assert record.excerpt == "quoted text"

    def test_web_full_content_untouched(self, citation):
        """Test web citations keep their full content."""
        record = citation(1, kind="web", snippet="quoted text")
        assert record.full_content is None

    def test_camel_case_wire_fields(self):
        """Test camelCase field aliases."""
        record = CitationRecord.from_event(2, {
            "type": "vault",
            "title": "Lease",
            "fileId": "file-1",
            "filePath": "/vault/lease.pdf",
            "isPDF": True,
            "pageNumber": 4,
            "paragraphIndex": 2,
            "highlightBox": {
                "x": 1, "y": 2, "width": 3, "height": 4,
                "pageWidth": 600, "pageHeight": 800,
            },
        })
        assert record.file_handle == "file-1"
        assert record.file_path == "/vault/lease.pdf"
        assert record.is_pdf is True
        assert record.page_number == 4
        assert record.paragraph_index == 2
        assert record.highlight_region == HighlightRegion(
            x=1, y=2, width=3, height=4, page_width=600, page_height=800
        )

    def test_to_wire_round_names(self, citation):
        """Test wire serialization uses aliases."""
        wire = citation(5, title="a.pdf", snippet="s").with_file("uploaded-1-a.pdf", True).to_wire()
        assert wire["type"] == "document"
        assert wire["fileId"] == "uploaded-1-a.pdf"
        assert wire["isPDF"] is True
        assert "filePath" not in wire

    def test_unknown_kind_rejected(self):
        """Test unknown citation kinds are rejected."""
        with pytest.raises(ValidationError):
            CitationRecord.from_event(1, {"type": "carrier-pigeon"})

    def test_records_are_immutable(self, citation):
        """Test records are frozen."""
        record = citation(1, title="a")
        with pytest.raises(ValidationError):
            record.title = "b"

    def test_with_page_returns_copy(self, citation):
        """Test with_page leaves the original untouched."""
        record = citation(1, title="a", pageNumber=2)
        moved = record.with_page(5)
        assert moved.page_number == 5
        assert record.page_number == 2


class TestCitationStore:
    """Tests for the per-response store."""

    def test_put_and_get(self, citation):
        """Test storing and reading a citation."""
        store = CitationStore()
        store.put(citation(1, title="a"))
        assert 1 in store
        assert store.get(1).title == "a"
        assert store.get(2) is None

    def test_put_replaces_same_id(self, citation):
        """Test a later citation replaces the same id."""
        store = CitationStore()
        store.put(citation(1, title="a"))
        store.put(citation(1, title="b"))
        assert len(store) == 1
        assert store.get(1).title == "b"

    def test_snapshot_is_independent_copy(self, citation):
        """Test snapshots survive clearing the store."""
        store = CitationStore()
        store.put(citation(2, title="b"))
        store.put(citation(1, title="a"))
        snapshot = store.snapshot()
        store.clear()

        assert list(snapshot) == [2, 1]
        assert len(store) == 0
        assert snapshot[1].title == "a"

    def test_update_where_counts_changes(self, citation):
        """Test update_where reports changed records."""
        store = CitationStore()
        store.put(citation(1, title="a"))
        store.put(citation(2, title="b"))

        changed = store.update_where(lambda r: r.with_page(1) if r.id == 2 else r)
        assert changed == 1
        assert store.get(2).page_number == 1


class TestNamesMatch:
    """Tests for fuzzy name matching."""

    def test_case_insensitive_equality(self):
        """Test case-insensitive name matching."""
        assert names_match("contract.pdf", "Contract.PDF")

    def test_containment_either_direction(self):
        """Test containment matches both ways."""
        assert names_match("Contract", "Contract.PDF")
        assert names_match("Signed Contract.pdf (page 3)", "contract.pdf")

    def test_empty_never_matches(self):
        """Test empty names never match."""
        assert not names_match("", "Contract.PDF")
        assert not names_match("  ", "Contract.PDF")

    def test_unrelated(self):
        """Test unrelated names."""
        assert not names_match("contract.pdf", "summary.docx")


class TestCitationResolver:
    """Tests for attaching uploaded files to document citations."""

    def test_resolves_matching_document(self, resolver, citation):
        """Test a document citation resolves to an upload."""
        resolved = resolver.resolve(citation(1, title="contract.pdf"))
        assert resolved.file_handle == "uploaded-1-Contract.PDF"
        assert resolved.is_pdf is True

    def test_does_not_match_other_file(self, citation):
        """Test no resolution to an unrelated upload."""
        resolver = CitationResolver([UploadedFileDescriptor("uploaded-2-summary.docx", "summary.docx")])
        record = citation(1, title="contract.pdf")
        assert resolver.resolve(record) is record

    def test_first_match_wins(self, citation):
        """Test the first registered match wins."""
        resolver = CitationResolver([
            UploadedFileDescriptor("h1", "report.pdf"),
            UploadedFileDescriptor("h2", "report.pdf.bak"),
        ])
        assert resolver.resolve(citation(1, title="report.pdf")).file_handle == "h1"

    def test_skips_non_documents(self, resolver, citation):
        """Test web and playbook citations are left alone."""
        record = citation(1, kind="web", title="contract.pdf")
        assert resolver.resolve(record) is record

    def test_skips_already_located(self, resolver, citation):
        """Test located citations are left alone."""
        record = citation(1, title="contract.pdf", filePath="/srv/contract.pdf")
        assert resolver.resolve(record) is record

    def test_resolution_retried_after_registration(self, citation):
        """Test resolution after a late upload."""
        registry = UploadedFileRegistry()
        resolver = CitationResolver(registry)
        store = CitationStore()
        store.put(citation(1, title="notes.txt"))

        assert resolver.resolve_store(store) == 0
        registry.add("notes.txt", "text/plain")
        assert resolver.resolve_store(store) == 1
        assert store.get(1).file_handle.startswith("uploaded-")
        assert store.get(1).is_pdf is False


class TestUploads:
    """Tests for uploaded-file descriptors."""

    def test_pdf_detection(self):
        """Test PDF detection."""
        assert UploadedFileDescriptor("h", "a.PDF").is_pdf
        assert UploadedFileDescriptor("h", "scan", "application/pdf").is_pdf
        assert not UploadedFileDescriptor("h", "a.txt", "text/plain").is_pdf

    def test_registry_add_and_remove(self):
        """Test registry add and remove."""
        registry = UploadedFileRegistry()
        descriptor = registry.add("a.txt")
        assert descriptor.handle.endswith("-a.txt")
        assert registry.get(descriptor.handle) == descriptor
        assert registry.remove(descriptor.handle)
        assert len(registry) == 0


class TestCitationMarkers:
    """Tests for splitting prose at [n] markers."""

    def test_unresolved_marker_is_inert(self, citation):
        """Test markers without a citation are inert."""
        segments = split_citation_markers("See [1] and [7].", {1: citation(1, title="a")})
        markers = [s for s in segments if s.is_marker]
        assert [(s.text, s.interactive) for s in markers] == [("[1]", True), ("[7]", False)]
        assert "".join(s.text for s in segments) == "See [1] and [7]."

    def test_empty_map_gives_plain_text(self):
        """Test text without citations stays plain."""
        segments = split_citation_markers("See [7].", {})
        assert len(segments) == 1
        assert segments[0].text == "See [7]."
        assert not segments[0].is_marker

    def test_empty_text(self):
        """Test empty text."""
        assert split_citation_markers("", {}) == []

    def test_cited_ids_in_order(self):
        """Test cited ids in first-seen order."""
        assert cited_ids("a [2] b [1] c [2]") == [2, 1]
