"""Document text extraction for uploaded files.

Supports: PDF, DOC/DOCX, TXT
"""

import codecs
import logging
import re
from abc import ABC, abstractmethod
from io import BytesIO
from pathlib import Path

from docx import Document
from pypdf import PdfReader

from src.core.exceptions import ExtractionError, UnsupportedTypeError

logger = logging.getLogger(__name__)

PDF_TYPE = "application/pdf"
DOC_TYPE = "application/msword"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_TYPE = "text/plain"


class TextExtractor(ABC):
    """Base class for text extractors."""

    @abstractmethod
    def extract(self, content: bytes) -> str:
        """Extract text from document content."""

    @abstractmethod
    def supported_types(self) -> list[str]:
        """Return list of supported MIME types."""


class PlainTextExtractor(TextExtractor):
    """Extract text from plain text files."""

    def extract(self, content: bytes) -> str:
        """Decode bytes to text.

        UTF-16 is only used when the content carries a byte order mark;
        otherwise UTF-8 is tried first, then Windows-1252 and Latin-1.
        """
        if content.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
            return content.decode("utf-16")

        for encoding in ["utf-8", "cp1252"]:
            try:
                return content.decode(encoding)
            except UnicodeDecodeError:
                continue

        # Latin-1 maps every byte
        return content.decode("latin-1")

    def supported_types(self) -> list[str]:
        return [TEXT_TYPE]


class PDFExtractor(TextExtractor):
    """Extract text from PDF files using pypdf."""

    def extract(self, content: bytes) -> str:
        """Extract text from all pages of a PDF.

        Pages without a text layer are skipped, so a scanned PDF yields an
        empty string rather than an error.
        """
        try:
            reader = PdfReader(BytesIO(content))

            text_parts = []
            for page_num, page in enumerate(reader.pages, 1):
                page_text = page.extract_text()
                if page_text and page_text.strip():
                    text_parts.append(f"[Page {page_num}]\n{page_text}")

            return "\n\n".join(text_parts)

        except Exception as e:
            raise ExtractionError(f"Failed to extract text from PDF: {e}") from e

    def supported_types(self) -> list[str]:
        return [PDF_TYPE]


class WordExtractor(TextExtractor):
    """Extract text from Word documents using python-docx."""

    def extract(self, content: bytes) -> str:
        """Extract text from a Word document, preserving paragraph structure."""
        try:
            doc = Document(BytesIO(content))

            text_parts = []

            for para in doc.paragraphs:
                text = para.text.strip()
                if not text:
                    continue
                style_name = para.style.name if para.style is not None else ""
                if style_name.startswith("Heading"):
                    level = style_name.replace("Heading ", "")
                    prefix = "#" * int(level) + " " if level.isdigit() else "# "
                    text_parts.append(f"{prefix}{text}")
                else:
                    text_parts.append(text)

            for table_idx, table in enumerate(doc.tables, 1):
                table_text = [f"\n[Table {table_idx}]"]
                for row in table.rows:
                    row_text = " | ".join(cell.text.strip() for cell in row.cells)
                    if row_text.replace("|", "").strip():
                        table_text.append(row_text)
                if len(table_text) > 1:
                    text_parts.extend(table_text)

            return "\n\n".join(text_parts)

        except Exception as e:
            raise ExtractionError(f"Failed to extract text from Word document: {e}") from e

    def supported_types(self) -> list[str]:
        # Legacy .doc is routed here too; python-docx rejects the binary format
        # and the failure surfaces as an ExtractionError.
        return [DOCX_TYPE, DOC_TYPE]


class DocumentExtractor:
    """Unified document extractor that delegates to specific extractors."""

    def __init__(self):
        self.extractors: list[TextExtractor] = [
            PlainTextExtractor(),
            PDFExtractor(),
            WordExtractor(),
        ]

        self._mime_map: dict[str, TextExtractor] = {}
        for extractor in self.extractors:
            for mime_type in extractor.supported_types():
                self._mime_map[mime_type] = extractor

    def supports(self, mime_type: str | None) -> bool:
        """Check if a MIME type is supported."""
        return mime_type in self._mime_map

    def supported_types(self) -> list[str]:
        """Get all supported MIME types."""
        return list(self._mime_map.keys())

    def extract(self, path: str | Path, mime_type: str) -> str:
        """Extract text from a file on disk based on its declared MIME type.

        Args:
            path: Path to the uploaded file
            mime_type: Declared document MIME type

        Returns:
            Extracted, normalized text

        Raises:
            UnsupportedTypeError: If the MIME type is not supported
            ExtractionError: If the parser fails
        """
        extractor = self._mime_map.get(mime_type)

        if not extractor:
            raise UnsupportedTypeError(mime_type, self.supported_types())

        path = Path(path)
        logger.info(f"[Extractor] Extracting text from {path.name} ({mime_type})")
        content = path.read_bytes()

        text = self._clean_text(extractor.extract(content))
        logger.info(f"[Extractor] Extracted {len(text)} characters from {path.name}")
        return text

    def _clean_text(self, text: str) -> str:
        """Clean and normalize extracted text."""
        text = text.replace("\r\n", "\n").replace("\r", "\n")

        # Remove excessive whitespace
        text = re.sub(r"[ \t]+", " ", text)

        # Remove excessive newlines (more than 2)
        text = re.sub(r"\n{3,}", "\n\n", text)

        lines = [line.strip() for line in text.split("\n")]
        text = "\n".join(lines)

        return text.strip()


# Singleton instance
_extractor: DocumentExtractor | None = None


def get_extractor() -> DocumentExtractor:
    """Get or create the global DocumentExtractor instance."""
    global _extractor
    if _extractor is None:
        _extractor = DocumentExtractor()
    return _extractor
