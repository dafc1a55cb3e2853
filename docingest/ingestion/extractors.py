"""
Format-specific text extractors.

Each supported format is a member of :class:`FileType` bound to one
implementation of the :class:`TextExtractor` protocol. Extractors read a file
and return its full text plus format metadata; any failure is re-raised as an
:class:`~docingest.utils.exceptions.ExtractionError` tagged with the format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Protocol

import docx
import fitz  # PyMuPDF
from docx.table import Table
from docx.text.paragraph import Paragraph

from docingest.utils.exceptions import ExtractionError, UnsupportedFileTypeError
from docingest.utils.logging import LoggerMixin


class FileType(str, Enum):
    """
    Supported document formats.

    Attributes:
        PDF: Portable Document Format (.pdf)
        DOCX: Word documents (.docx, .doc)
        TEXT: Plain text and Markdown (.txt, .md, .markdown)
    """
    PDF = "pdf"
    DOCX = "docx"
    TEXT = "text"

    @property
    def label(self) -> str:
        """Format name used in error messages."""
        return {"pdf": "PDF", "docx": "DOCX", "text": "Text"}[self.value]

    @classmethod
    def from_extension(cls, extension: str) -> "FileType":
        """
        Resolve a file extension to its format.

        Args:
            extension: Extension with or without the leading dot, any case.

        Raises:
            UnsupportedFileTypeError: If no format handles the extension.
        """
        ext = extension.lower()
        if ext and not ext.startswith("."):
            ext = f".{ext}"
        try:
            return EXTENSION_MAP[ext]
        except KeyError:
            raise UnsupportedFileTypeError(ext) from None


EXTENSION_MAP: Dict[str, FileType] = {
    ".pdf": FileType.PDF,
    ".docx": FileType.DOCX,
    ".doc": FileType.DOCX,
    ".txt": FileType.TEXT,
    ".md": FileType.TEXT,
    ".markdown": FileType.TEXT,
}


@dataclass
class ExtractedText:
    """Text and format metadata returned by an extractor."""
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class TextExtractor(Protocol):
    """Capability shared by every format extractor."""

    def extract_text(self, file_path: Path) -> ExtractedText:
        """Read ``file_path`` and return its text and metadata."""
        ...


class PDFExtractor(LoggerMixin):
    """
    Extract text from PDF files using PyMuPDF.

    Page texts are joined with a blank line. Metadata comes from the
    document's info dictionary; absent fields are ``None``.
    """

    INFO_FIELDS = {
        "title": "title",
        "author": "author",
        "subject": "subject",
        "creator": "creator",
        "producer": "producer",
        "creation_date": "creationDate",
        "modification_date": "modDate",
    }

    def extract_text(self, file_path: Path) -> ExtractedText:
        try:
            with fitz.open(file_path) as pdf:
                text = "\n\n".join(page.get_text() for page in pdf)
                info = pdf.metadata or {}
                num_pages = pdf.page_count
        except Exception as e:
            self.logger.error("PDF processing failed", file_path=str(file_path), error=str(e))
            raise ExtractionError(
                f"PDF processing failed: {e}", file_format=FileType.PDF.value, cause=e
            ) from e

        metadata: Dict[str, Any] = {"num_pages": num_pages}
        for key, info_key in self.INFO_FIELDS.items():
            metadata[key] = info.get(info_key) or None
        metadata["text_length"] = len(text)

        self.logger.info("PDF processed", num_pages=num_pages, text_length=len(text))

        return ExtractedText(text=text, metadata=metadata)


class DocxExtractor(LoggerMixin):
    """
    Extract raw text from Word documents using python-docx.

    Paragraphs and table rows are emitted in body order, separated by a blank
    line; table cells are tab-separated. Content that cannot be represented as
    text (inline images) is reported in ``messages``. Legacy binary ``.doc``
    files are not zip packages and fail extraction.
    """

    def extract_text(self, file_path: Path) -> ExtractedText:
        try:
            document = docx.Document(str(file_path))
            blocks = []
            for item in document.iter_inner_content():
                if isinstance(item, Paragraph):
                    blocks.append(item.text)
                elif isinstance(item, Table):
                    for row in item.rows:
                        blocks.append("\t".join(cell.text for cell in row.cells))
            num_images = len(document.inline_shapes)
        except Exception as e:
            self.logger.error("DOCX processing failed", file_path=str(file_path), error=str(e))
            raise ExtractionError(
                f"DOCX processing failed: {e}", file_format=FileType.DOCX.value, cause=e
            ) from e

        text = "\n\n".join(block for block in blocks if block.strip())

        messages = []
        if num_images:
            messages.append(f"{num_images} inline image(s) skipped")

        self.logger.info("DOCX processed", text_length=len(text), num_messages=len(messages))

        return ExtractedText(
            text=text,
            metadata={"text_length": len(text), "messages": messages},
        )


class PlainTextExtractor(LoggerMixin):
    """
    Read plain text and Markdown files as UTF-8.

    Invalid byte sequences are replaced with U+FFFD rather than failing the file.
    Markdown is kept raw so that its structure reaches the chunker untouched.
    """

    ENCODING = "utf-8"

    def extract_text(self, file_path: Path) -> ExtractedText:
        try:
            text = Path(file_path).read_bytes().decode(self.ENCODING, errors="replace")
        except OSError as e:
            self.logger.error("Text processing failed", file_path=str(file_path), error=str(e))
            raise ExtractionError(
                f"Text processing failed: {e}", file_format=FileType.TEXT.value, cause=e
            ) from e

        self.logger.info("Text file processed", text_length=len(text))

        return ExtractedText(
            text=text,
            metadata={"text_length": len(text), "encoding": self.ENCODING},
        )


_EXTRACTORS: Dict[FileType, type] = {
    FileType.PDF: PDFExtractor,
    FileType.DOCX: DocxExtractor,
    FileType.TEXT: PlainTextExtractor,
}


def get_extractor(file_type: FileType) -> TextExtractor:
    """Create the extractor bound to ``file_type``."""
    return _EXTRACTORS[file_type]()
