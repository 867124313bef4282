"""
Document Loader - Read a directory of textbook files into raw text blocks

Part of the Concept Mapper implementation.
Ingestion: Document loading

License: MIT
"""

from typing import List, Optional, Sequence
from pathlib import Path
import logging

import PyPDF2
import docx

from .models import RawDocument
from ..exceptions import IngestionError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".pdf", ".docx", ".txt", ".md")


class DocumentLoader:
    """
    Multi-format document loader for the ingestion pipeline.

    Each supported file in a directory becomes one RawDocument tagged with
    its source path and, for PDFs, its page count.
    """

    def __init__(self, extensions: Sequence[str] = DEFAULT_EXTENSIONS, strict: bool = True):
        """
        Initialize the document loader.

        Args:
            extensions: File extensions to pick up (case-insensitive)
            strict: Fail the whole load on the first unreadable file when True,
                otherwise log and skip it
        """
        self.extensions = tuple(ext.lower() for ext in extensions)
        self.strict = strict

    def load_documents(self, directory: Path) -> List[RawDocument]:
        """
        Load every supported document in a directory.

        Args:
            directory: Directory holding the source documents

        Returns:
            List of raw documents, ordered by file name

        Raises:
            IngestionError: If the directory is missing, holds no supported
                files, or (in strict mode) a file cannot be read
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise IngestionError(f"Documents directory not found: {directory}", source=str(directory))

        files = sorted(
            path
            for path in directory.iterdir()
            if path.is_file() and path.suffix.lower() in self.extensions
        )
        if not files:
            raise IngestionError(
                f"No documents with extensions {', '.join(self.extensions)} found in {directory}",
                source=str(directory),
            )

        documents = []
        for file_path in files:
            logger.info(f"Loading document: {file_path.name}")
            try:
                documents.append(self.load_file(file_path))
            except Exception as e:
                if self.strict:
                    raise IngestionError(
                        f"Failed to load {file_path}: {str(e)}", source=str(file_path)
                    ) from e
                logger.warning(f"Skipping unreadable document {file_path}: {str(e)}")

        if not documents:
            raise IngestionError(f"No readable documents in {directory}", source=str(directory))

        logger.info(f"Loaded {len(documents)} documents from {directory}")
        return documents

    def load_file(self, file_path: Path) -> RawDocument:
        """
        Extract the text of a single document.

        Args:
            file_path: Path to the document file

        Returns:
            RawDocument with text and provenance metadata

        Raises:
            ValueError: If file format is not supported
            FileNotFoundError: If file doesn't exist
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        file_ext = file_path.suffix.lower()
        page_count: Optional[int] = None

        if file_ext == ".pdf":
            text, page_count = self.parse_pdf(file_path)
        elif file_ext == ".docx":
            text = self.parse_docx(file_path)
        elif file_ext in (".txt", ".md"):
            text = file_path.read_text(encoding="utf-8")
        else:
            raise ValueError(f"Unsupported file format: {file_ext}")

        logger.debug(f"Extracted {len(text)} characters from {file_path}")
        return RawDocument(text=text, source_path=str(file_path), page_count=page_count)

    def parse_pdf(self, file_path: Path):
        """
        Extract text from PDF file.

        Returns:
            Tuple of (text, page_count)
        """
        with open(file_path, "rb") as file:
            pdf_reader = PyPDF2.PdfReader(file)
            pages = []

            for page_num, page in enumerate(pdf_reader.pages):
                try:
                    pages.append(page.extract_text() or "")
                except Exception as e:
                    logger.warning(f"Error extracting page {page_num} from {file_path}: {str(e)}")
                    pages.append("")

            return "\n".join(pages).strip(), len(pdf_reader.pages)

    def parse_docx(self, file_path: Path) -> str:
        """Extract text from DOCX file, one line per non-empty paragraph."""
        document = docx.Document(str(file_path))
        return "\n".join(p.text for p in document.paragraphs if p.text.strip())


def load_documents(directory: Path, **kwargs) -> List[RawDocument]:
    """Load a documents directory with a default loader."""
    return DocumentLoader(**kwargs).load_documents(directory)
