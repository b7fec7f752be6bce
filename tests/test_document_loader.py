"""Unit tests for DocumentLoader and FAQ ingestion."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import fitz  # PyMuPDF
import pytest
from unittest.mock import MagicMock, patch
from services.document_loader import DocumentLoader
from services.faq_store import InMemoryFaqStore
from ingest_faqs import ingest


def make_pdf(text: str) -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


class TestExtractText:
    """Test suite for upload text extraction."""

    @pytest.fixture
    def loader(self):
        return DocumentLoader()

    def test_plain_text_round_trip(self, loader):
        assert loader.extract_text("hello.txt", "text/plain", b"Hello world") == "Hello world"

    def test_other_text_types_decoded(self, loader):
        assert loader.extract_text("notes.md", "text/markdown", "# Título".encode("utf-8")) == "# Título"

    def test_undecodable_text_becomes_placeholder(self, loader):
        content = loader.extract_text("bad.txt", "text/plain", b"\xff\xfe\xfa")
        assert content.startswith("[Failed to decode text file:")

    def test_unknown_type_described(self, loader):
        content = loader.extract_text("logo.png", "image/png", b"abc")
        assert content == "[File uploaded: logo.png, Type: image/png, Size: 3 bytes]"

    def test_missing_mimetype_described(self, loader):
        content = loader.extract_text("blob", None, b"")
        assert content == "[File uploaded: blob, Type: application/octet-stream, Size: 0 bytes]"

    def test_pdf_text_extracted(self, loader):
        content = loader.extract_text("policy.pdf", "application/pdf", make_pdf("Refund policy"))
        assert "Refund policy" in content

    @patch('services.document_loader.fitz')
    def test_pdf_pages_joined_and_closed(self, mock_fitz, loader):
        pages = [MagicMock(), MagicMock()]
        pages[0].get_text.return_value = "page one"
        pages[1].get_text.return_value = "page two"
        pdf_document = MagicMock()
        pdf_document.__iter__.return_value = iter(pages)
        mock_fitz.open.return_value = pdf_document

        content = loader.extract_text("doc.pdf", "application/pdf", b"%PDF")

        assert content == "page one\npage two"
        mock_fitz.open.assert_called_once_with(stream=b"%PDF", filetype="pdf")
        pdf_document.close.assert_called_once()

    def test_broken_pdf_becomes_placeholder(self, loader):
        content = loader.extract_text("broken.pdf", "application/pdf", b"definitely not a pdf")
        assert content.startswith("[Failed to extract text from PDF:")


class TestLoadDocuments:
    """Test suite for directory loading and ingestion."""

    def test_missing_directory(self, tmp_path):
        assert DocumentLoader(docs_directory=str(tmp_path / "absent")).load_documents() == []

    def test_loads_supported_files_sorted(self, tmp_path):
        (tmp_path / "b_shipping.txt").write_text("Ships in 2 days", encoding="utf-8")
        (tmp_path / "a_refunds.md").write_text("30 day refunds", encoding="utf-8")
        (tmp_path / "image.png").write_bytes(b"\x89PNG")
        (tmp_path / "policy.pdf").write_bytes(make_pdf("Warranty terms"))

        docs = DocumentLoader(docs_directory=str(tmp_path)).load_documents()

        assert [d.title for d in docs] == ["a_refunds", "b_shipping", "policy"]
        assert docs[0].content == "30 day refunds"
        assert "Warranty terms" in docs[2].content

    def test_ingest_creates_one_faq_per_file(self, tmp_path):
        (tmp_path / "Refund Policy.txt").write_text("We refund within 30 days", encoding="utf-8")
        (tmp_path / "Shipping.txt").write_text("Two days", encoding="utf-8")
        store = InMemoryFaqStore()

        created = ingest(DocumentLoader(docs_directory=str(tmp_path)), store)

        assert created == 2
        assert [(f.title, f.content) for f in store.find_all()] == [
            ("Refund Policy", "We refund within 30 days"),
            ("Shipping", "Two days"),
        ]
