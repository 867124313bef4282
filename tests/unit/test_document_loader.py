"""
Unit Tests for Document Loader

Tests the document loading functionality including:
- File format support
- Ordering and filtering
- Strict and lenient error handling
"""

import pytest
from pathlib import Path
from unittest.mock import patch, Mock

import docx

from concept_mapper.core import DocumentLoader, load_documents
from concept_mapper.exceptions import IngestionError


@pytest.fixture
def loader():
    return DocumentLoader()


class TestDocumentLoader:
    """Test cases for DocumentLoader class."""

    def test_load_text_files_sorted_by_name(self, documents_dir, loader):
        documents = loader.load_documents(documents_dir)

        assert [Path(doc.source_path).name for doc in documents] == [
            "biology_ch6.txt",
            "physics_ch9.txt",
        ]
        assert "inertia" in documents[1].text
        assert all(doc.page_count is None for doc in documents)

    def test_unsupported_files_are_ignored(self, documents_dir, loader):
        (documents_dir / "notes.csv").write_text("a,b,c", encoding="utf-8")
        (documents_dir / "subdir.txt").mkdir()

        documents = loader.load_documents(documents_dir)

        assert len(documents) == 2

    def test_markdown_file(self, tmp_path, loader):
        (tmp_path / "chapter.md").write_text("# Motion\nObjects move.", encoding="utf-8")

        documents = loader.load_documents(tmp_path)

        assert documents[0].text == "# Motion\nObjects move."

    def test_missing_directory(self, tmp_path, loader):
        with pytest.raises(IngestionError, match="not found"):
            loader.load_documents(tmp_path / "missing")

    def test_directory_without_documents(self, tmp_path, loader):
        (tmp_path / "image.png").write_bytes(b"\x89PNG")

        with pytest.raises(IngestionError, match="No documents"):
            loader.load_documents(tmp_path)

    def test_whitespace_document_is_kept(self, tmp_path, loader):
        (tmp_path / "blank.txt").write_text("  \n ", encoding="utf-8")

        documents = loader.load_documents(tmp_path)

        assert len(documents) == 1

    def test_strict_mode_fails_on_unreadable_file(self, documents_dir, loader):
        (documents_dir / "corrupt.txt").write_bytes(b"\xff\xfe\xfa not utf-8")

        with pytest.raises(IngestionError) as exc_info:
            loader.load_documents(documents_dir)

        assert exc_info.value.source.endswith("corrupt.txt")

    def test_lenient_mode_skips_unreadable_file(self, documents_dir):
        (documents_dir / "corrupt.txt").write_bytes(b"\xff\xfe\xfa not utf-8")

        documents = DocumentLoader(strict=False).load_documents(documents_dir)

        assert len(documents) == 2

    def test_lenient_mode_with_nothing_readable(self, tmp_path):
        (tmp_path / "corrupt.txt").write_bytes(b"\xff\xfe\xfa")

        with pytest.raises(IngestionError, match="No readable documents"):
            DocumentLoader(strict=False).load_documents(tmp_path)

    def test_custom_extensions(self, documents_dir):
        (documents_dir / "extra.md").write_text("Light", encoding="utf-8")

        documents = DocumentLoader(extensions=[".MD"]).load_documents(documents_dir)

        assert [Path(doc.source_path).name for doc in documents] == ["extra.md"]

    def test_load_file_not_found(self, loader):
        with pytest.raises(FileNotFoundError):
            loader.load_file(Path("nonexistent.txt"))

    def test_load_file_unsupported_format(self, loader):
        with patch("pathlib.Path.exists", return_value=True):
            with pytest.raises(ValueError, match="Unsupported file format"):
                loader.load_file(Path("test.xyz"))

    @patch("concept_mapper.core.document_loader.PyPDF2.PdfReader")
    def test_pdf_pages_joined_and_counted(self, mock_reader, tmp_path, loader):
        pdf_path = tmp_path / "science.pdf"
        pdf_path.write_bytes(b"%PDF-1.4 placeholder")

        broken_page = Mock()
        broken_page.extract_text.side_effect = RuntimeError("bad font")
        mock_reader.return_value.pages = [
            Mock(extract_text=Mock(return_value="Chapter 9 Force")),
            broken_page,
            Mock(extract_text=Mock(return_value="Inertia")),
        ]

        document = loader.load_file(pdf_path)

        assert document.text == "Chapter 9 Force\n\nInertia"
        assert document.page_count == 3
        assert document.source_path == str(pdf_path)

    def test_docx_paragraphs(self, tmp_path, loader):
        docx_path = tmp_path / "chapter.docx"
        document = docx.Document()
        document.add_paragraph("Life Processes")
        document.add_paragraph("")
        document.add_paragraph("Photosynthesis needs light.")
        document.save(str(docx_path))

        loaded = loader.load_file(docx_path)

        assert loaded.text == "Life Processes\nPhotosynthesis needs light."
        assert loaded.page_count is None

    def test_module_level_helper(self, documents_dir):
        documents = load_documents(documents_dir, strict=False)
        assert len(documents) == 2
