"""Text extraction for uploaded FAQ files."""
import logging
import mimetypes
import os
from dataclasses import dataclass
from typing import List, Optional
import fitz  # PyMuPDF

logger = logging.getLogger(__name__)

PDF_MIMETYPE = "application/pdf"


class ExtractionError(Exception):
    """Raised when a file's text cannot be extracted."""


@dataclass
class LoadedFile:
    """A file on disk turned into FAQ title/content."""
    title: str
    content: str
    filename: str


class DocumentLoader:
    """Extracts text from PDF and plain text files."""

    def __init__(self, docs_directory: str = "faq_docs"):
        """
        Initialize DocumentLoader.

        Args:
            docs_directory: Path to directory scanned by load_documents()
        """
        self.docs_directory = docs_directory

    def extract_text(self, filename: str, mimetype: Optional[str], data: bytes) -> str:
        """
        Turn an uploaded file into FAQ content.

        PDFs are text-extracted, text/* files are decoded as UTF-8, and
        anything else is stored as a bracketed description. Extraction
        failures are stored as a bracketed placeholder instead of raising.

        Args:
            filename: Original file name
            mimetype: Declared content type (may be None)
            data: Raw file bytes

        Returns:
            Text to store as the FAQ content
        """
        mimetype = mimetype or "application/octet-stream"

        if mimetype == PDF_MIMETYPE:
            try:
                text = self._extract_pdf(data)
                logger.info(f"Text extracted from PDF {filename}")
                return text
            except ExtractionError as e:
                logger.warning(f"Could not extract text from PDF {filename}: {e}")
                return f"[Failed to extract text from PDF: {e}]"

        if mimetype.startswith("text/"):
            try:
                text = data.decode("utf-8")
            except UnicodeDecodeError as e:
                logger.warning(f"Could not decode text file {filename}: {e}")
                return f"[Failed to decode text file: {e.reason}]"
            logger.info(f"Text extracted from plain text file {filename}")
            return text

        logger.info(f"No text extraction for mimetype {mimetype}; storing file description")
        return f"[File uploaded: {filename}, Type: {mimetype}, Size: {len(data)} bytes]"

    def _extract_pdf(self, data: bytes) -> str:
        """
        Extract text from PDF bytes page by page.

        Raises:
            ExtractionError: If the bytes cannot be parsed as a PDF
        """
        try:
            pdf_document = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise ExtractionError(str(e)) from e

        try:
            pages = [page.get_text() for page in pdf_document]
        except Exception as e:
            raise ExtractionError(str(e)) from e
        finally:
            pdf_document.close()

        return "\n".join(pages)

    def load_documents(self) -> List[LoadedFile]:
        """
        Load every supported file from the documents directory.

        Returns:
            One LoadedFile per file, titled by file name without extension
        """
        documents: List[LoadedFile] = []

        if not os.path.exists(self.docs_directory):
            logger.error(f"Documents directory not found: {self.docs_directory}")
            return documents

        files = sorted(
            f for f in os.listdir(self.docs_directory)
            if os.path.isfile(os.path.join(self.docs_directory, f))
        )
        logger.info(f"Found {len(files)} files in {self.docs_directory}")

        for filename in files:
            filepath = os.path.join(self.docs_directory, filename)
            mimetype, _ = mimetypes.guess_type(filename)
            if mimetype is None and filename.endswith(".md"):
                mimetype = "text/markdown"

            if mimetype != PDF_MIMETYPE and not (mimetype or "").startswith("text/"):
                logger.info(f"Skipping unsupported file {filename} ({mimetype})")
                continue

            try:
                with open(filepath, "rb") as f:
                    data = f.read()
            except OSError as e:
                logger.error(f"Error reading {filename}: {str(e)}", exc_info=True)
                continue

            documents.append(LoadedFile(
                title=os.path.splitext(filename)[0],
                content=self.extract_text(filename, mimetype, data),
                filename=filename
            ))

        logger.info(f"Successfully loaded {len(documents)} documents")
        return documents
