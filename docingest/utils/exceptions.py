"""
Custom exception hierarchy for the document ingestion service.

This module defines the error taxonomy of the ingestion pipeline. Every
exception raised by an ingestion stage carries a ``stage`` tag so that the
caller can tell where an attempt failed without parsing messages.
"""

from typing import Any, Dict, Optional


class DocIngestError(Exception):
    """
    Base exception for all ingestion service errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
        cause: Optional underlying exception that caused this error
        stage: Pipeline stage the error belongs to (None when not stage-bound)
    """

    stage: Optional[str] = None

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """Return string representation of the exception."""
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message

    def __repr__(self) -> str:
        """Return detailed string representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"cause={self.cause!r})"
        )


# =============================================================================
# Document Ingestion Errors
# =============================================================================

class DocumentIngestionError(DocIngestError):
    """Error while turning a file into chunks."""
    pass


class UnsupportedFileTypeError(DocumentIngestionError):
    """
    No extractor is registered for the file extension.

    Attributes:
        extension: The rejected extension, lower-cased and including the dot.
    """

    stage = "extract"

    def __init__(self, extension: str, cause: Optional[Exception] = None):
        super().__init__(f"Unsupported file type: {extension}", cause=cause)
        self.extension = extension


class ExtractionError(DocumentIngestionError):
    """
    A format-specific extractor failed.

    The message is tagged with the format, e.g.
    ``PDF processing failed: cannot open broken document``.
    """

    stage = "extract"

    def __init__(
        self,
        message: str,
        file_format: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, details=details, cause=cause)
        self.file_format = file_format


class ChunkingError(DocumentIngestionError):
    """Error while splitting extracted text into chunks."""

    stage = "chunk"


# =============================================================================
# Storage Errors
# =============================================================================

class StorageError(DocIngestError):
    """Error with document or chunk persistence."""

    stage = "persist"


class StorageConnectionError(StorageError):
    """
    The storage handle is not connected or the database is unreachable.
    """
    pass


class PersistenceError(StorageError):
    """
    A write failed and its transaction was rolled back.

    Raised by the chunk store when replacing a document's chunk set fails;
    the previously committed chunk set is left intact.
    """
    pass


class StatusUpdateError(StorageError):
    """A document status transition could not be recorded."""

    stage = "status"


class DocumentNotFoundError(StorageError):
    """The requested document row does not exist."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(DocIngestError):
    """Invalid, missing or inconsistent configuration."""
    pass


# =============================================================================
# Utility Functions
# =============================================================================

def get_exit_code(exception: BaseException) -> int:
    """
    Map an exception to a process exit code for the CLI.

    Codes follow the BSD ``sysexits`` conventions.

    Args:
        exception: Exception instance

    Returns:
        Non-zero exit code
    """
    # First match wins, so subclasses come before their parents
    exit_map = {
        UnsupportedFileTypeError: 65,  # EX_DATAERR
        ExtractionError: 65,
        ChunkingError: 65,
        DocumentNotFoundError: 66,  # EX_NOINPUT
        FileNotFoundError: 66,
        StorageConnectionError: 69,  # EX_UNAVAILABLE
        PersistenceError: 74,  # EX_IOERR
        StatusUpdateError: 74,
        StorageError: 74,
        ConfigurationError: 78,  # EX_CONFIG
        DocumentIngestionError: 65,
        DocIngestError: 1,
    }

    for exc_type, code in exit_map.items():
        if isinstance(exception, exc_type):
            return code

    return 1


__all__ = [
    "DocIngestError",
    # Document ingestion
    "DocumentIngestionError",
    "UnsupportedFileTypeError",
    "ExtractionError",
    "ChunkingError",
    # Storage
    "StorageError",
    "StorageConnectionError",
    "PersistenceError",
    "StatusUpdateError",
    "DocumentNotFoundError",
    # Configuration
    "ConfigurationError",
    # Utilities
    "get_exit_code",
]
