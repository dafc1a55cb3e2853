"""
Document processor: dispatch a file to its format extractor.

The processor is the boundary between raw files and the ingestion pipeline.
It never raises; every failure is returned as a :class:`ProcessingResult` with
``success=False``, a human-readable ``error`` and enough metadata for the
caller to record a failed-document entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List

from docingest.ingestion.extractors import EXTENSION_MAP, FileType, get_extractor
from docingest.utils.exceptions import (
    ExtractionError,
    UnsupportedFileTypeError,
)
from docingest.utils.logging import LoggerMixin


class FailureKind(str, Enum):
    """Why a file could not be processed."""
    UNSUPPORTED_FILE_TYPE = "UnsupportedFileType"
    EXTRACTION_FAILURE = "ExtractionFailure"
    FILE_NOT_FOUND = "FileNotFound"
    FILE_TOO_LARGE = "FileTooLarge"


@dataclass
class ProcessingResult:
    """
    Outcome of processing one file.

    Attributes:
        success: Whether text was extracted.
        text: Extracted text (empty on failure).
        metadata: File metadata merged with extractor metadata, or partial
            metadata (path, name, error) on failure.
        error: Error message if processing failed (None if successful).
        error_kind: Failure category if processing failed.
    """
    success: bool
    text: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    error_kind: FailureKind | None = None

    def __str__(self) -> str:
        """Human-readable string representation."""
        name = self.metadata.get("file_name", "?")
        if self.success:
            return f"✓ {name}: {len(self.text)} characters"
        return f"✗ {name}: {self.error}"


class DocumentProcessor(LoggerMixin):
    """
    Extract text from PDF, Word and plain text/Markdown files.

    Args:
        max_file_size: Optional size limit in bytes; larger files fail.

    Example:
        >>> processor = DocumentProcessor()
        >>> result = processor.process_document("notes.xyz")
        >>> result.success, result.error
        (False, 'Unsupported file type: .xyz')
    """

    def __init__(self, max_file_size: int | None = None) -> None:
        super().__init__()
        self.max_file_size = max_file_size

    @property
    def supported_extensions(self) -> List[str]:
        """Extensions (lower-case, with dot) that have an extractor."""
        return list(EXTENSION_MAP)

    def is_supported(self, file_path: str | Path) -> bool:
        """
        Check whether a path or bare extension has an extractor.

        Example:
            >>> processor = DocumentProcessor()
            >>> processor.is_supported("REPORT.PDF"), processor.is_supported("md")
            (True, True)
        """
        value = str(file_path)
        suffix = Path(value).suffix
        if not suffix:
            suffix = value if value.startswith(".") else f".{value}"
        return suffix.lower() in EXTENSION_MAP

    def process_document(self, file_path: str | Path) -> ProcessingResult:
        """
        Process a document file and extract its text.

        Args:
            file_path: Path to the document file.

        Returns:
            ProcessingResult; never raises.
        """
        path = Path(file_path)
        extension = path.suffix.lower()

        self.logger.info("Processing document", file_path=str(path), extension=extension)

        try:
            file_type = FileType.from_extension(extension)
            stat = path.stat()

            if self.max_file_size is not None and stat.st_size > self.max_file_size:
                return self._failure(
                    path,
                    f"File too large: {stat.st_size} bytes exceeds limit of {self.max_file_size} bytes",
                    FailureKind.FILE_TOO_LARGE,
                )

            metadata: Dict[str, Any] = {
                "file_path": str(path),
                "file_name": path.name,
                "file_extension": extension,
                "file_size": stat.st_size,
                "modified_at": _isoformat(stat.st_mtime),
                "created_at": _isoformat(getattr(stat, "st_birthtime", stat.st_ctime)),
            }

            extracted = get_extractor(file_type).extract_text(path)

        except UnsupportedFileTypeError as e:
            return self._failure(path, str(e), FailureKind.UNSUPPORTED_FILE_TYPE)
        except FileNotFoundError as e:
            return self._failure(path, f"File not found: {e.filename or path}", FailureKind.FILE_NOT_FOUND)
        except ExtractionError as e:
            return self._failure(path, str(e), FailureKind.EXTRACTION_FAILURE)
        except Exception as e:
            return self._failure(path, str(e), FailureKind.EXTRACTION_FAILURE)

        metadata.update(extracted.metadata)

        self.logger.info(
            "Document processed",
            file_path=str(path),
            file_type=file_type.value,
            text_length=len(extracted.text),
        )

        return ProcessingResult(success=True, text=extracted.text, metadata=metadata)

    def _failure(self, path: Path, error: str, kind: FailureKind) -> ProcessingResult:
        """Build a failed result carrying partial metadata."""
        self.logger.error(
            "Failed to process document",
            file_path=str(path),
            error=error,
            error_kind=kind.value,
        )
        return ProcessingResult(
            success=False,
            metadata={
                "file_path": str(path),
                "file_name": path.name,
                "error": error,
            },
            error=error,
            error_kind=kind,
        )


def _isoformat(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()
