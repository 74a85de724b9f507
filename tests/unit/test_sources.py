"""Tests for source aggregation and click resolution."""

from research_stream.citations.models import CitationKind
from research_stream.citations.sources import (
    SourceIndex,
    aggregate_sources,
    display_name,
    source_key,
)


class TestSourceKeys:
    """Tests for logical-source identity and naming."""

    def test_document_key_precedence(self, citation):
        """Test document source keys."""
        assert source_key(citation(1, title="t", fileId="h", filePath="/p")) == "h"
        assert source_key(citation(1, title="t", filePath="/p")) == "/p"
        assert source_key(citation(1, title="t")) == "t"
        assert source_key(citation(4)) == "source-4"

    def test_web_key_precedence(self, citation):
        """Test web source keys."""
        assert source_key(citation(1, kind="web", title="t", url="https://x")) == "https://x"
        assert source_key(citation(1, kind="web", title="t")) == "t"
        assert source_key(citation(6, kind="web")) == "web-6"

    def test_playbook_has_no_source(self, citation):
        """Test playbook citations have no source."""
        assert source_key(citation(1, kind="playbook", title="Checklist")) is None

    def test_display_name(self, citation):
        """Test display names."""
        assert display_name(citation(1, title="Lease")) == "Lease"
        assert display_name(citation(1, filePath="/vault/docs/lease.pdf")) == "lease.pdf"
        assert display_name(citation(1, filePath="C:\\docs\\lease.pdf")) == "lease.pdf"
        assert display_name(citation(3)) == "Source 3"
        assert display_name(citation(8, kind="web", url="https://x")) == "https://x"
        assert display_name(citation(8, kind="web")) == "Web Source 8"


class TestAggregateSources:
    """Tests for folding citations into logical sources."""

    def test_pages_deduplicated_per_file(self, citation):
        """Test pages are deduplicated per file."""
        citations = {
            1: citation(1, title="Contract", fileId="h1", pageNumber=3, isPDF=True),
            2: citation(2, title="Contract", fileId="h1", pageNumber=7, isPDF=True),
            3: citation(3, title="Contract", fileId="h1", pageNumber=3, isPDF=True),
        }
        sources = aggregate_sources([citations], pdf_page_count=50)

        assert len(sources) == 1
        source = sources[0]
        assert source.cited_pages == {3, 7}
        assert source.sorted_pages == [3, 7]
        assert source.citation_ids == {1, 2, 3}
        assert source.page_count == 50
        assert source.kind is CitationKind.DOCUMENT

    def test_sources_across_responses_in_first_seen_order(self, citation):
        """Test sources across responses."""
        first = {1: citation(1, kind="web", url="https://a", title="A")}
        second = {
            1: citation(1, title="Lease", fileId="h2"),
            2: citation(2, kind="web", url="https://a", title="A"),
        }
        sources = aggregate_sources([first, second])
        assert [s.source_key for s in sources] == ["https://a", "h2"]
        assert sources[1].page_count is None

    def test_playbook_skipped(self, citation):
        """Test playbooks are skipped."""
        sources = aggregate_sources([{1: citation(1, kind="playbook", title="P")}])
        assert sources == []


class TestSourceIndex:
    """Tests for the conversation source index."""

    def test_nothing_exposed_without_citations(self):
        """Test no sources without citations."""
        index = SourceIndex(pdf_page_count=50)
        index.rebuild([{}, {}])
        assert not index.has_sources
        assert index.sources == []

    def test_rebuild_exposes_sources(self, citation):
        """Test rebuild exposes sources."""
        index = SourceIndex(pdf_page_count=50)
        index.rebuild([{1: citation(1, title="Lease", fileId="h1")}])
        assert index.has_sources
        assert index.get("h1").display_name == "Lease"
        assert [r.id for r in index.citations_for("h1")] == [1]

    def test_locate_exact_page(self, citation):
        """Test locating an exact page."""
        index = SourceIndex(pdf_page_count=50)
        index.rebuild([{
            1: citation(1, title="C", fileId="h1", pageNumber=3),
            2: citation(2, title="C", fileId="h1", pageNumber=7),
        }])
        assert index.locate("h1", 7).id == 2

    def test_locate_page_agnostic_fallback_moved_to_clicked_page(self, citation):
        """Test the page-agnostic fallback moves to the clicked page."""
        index = SourceIndex(pdf_page_count=50)
        index.rebuild([{
            1: citation(1, title="C", fileId="h1"),
            2: citation(2, title="C", fileId="h1", pageNumber=7),
        }])
        found = index.locate("h1", 4)
        assert found.id == 1
        assert found.page_number == 4

    def test_locate_without_page(self, citation):
        """Test locating without a page."""
        index = SourceIndex(pdf_page_count=50)
        index.rebuild([{1: citation(1, title="C", fileId="h1", pageNumber=3)}])
        found = index.locate("h1")
        assert found.id == 1
        assert found.page_number == 3

    def test_locate_by_file_path(self, citation):
        """Test locating by file path."""
        index = SourceIndex(pdf_page_count=50)
        index.rebuild([{1: citation(1, title="C", fileId="h1", filePath="/srv/c.pdf")}])
        assert index.locate("/srv/c.pdf").id == 1

    def test_locate_unknown_source(self, citation):
        """Test locating an unknown source."""
        index = SourceIndex(pdf_page_count=50)
        index.rebuild([{1: citation(1, title="C", fileId="h1")}])
        assert index.locate("nope") is None

    def test_locate_applies_resolver(self, resolver, citation):
        """Test locating applies the resolver."""
        index = SourceIndex(resolver=resolver, pdf_page_count=50)
        index.rebuild([{1: citation(1, title="Contract.pdf")}])
        found = index.locate("Contract.pdf")
        assert found.file_handle == "uploaded-1-Contract.PDF"
