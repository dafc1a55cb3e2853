"""
Tests for custom exception classes and exception handling utilities.

This module tests the exception hierarchy, exception initialization,
string representations, stage tags and CLI exit code mappings.
"""

import pytest

from docingest.utils.exceptions import (
    ChunkingError,
    ConfigurationError,
    DocIngestError,
    DocumentIngestionError,
    DocumentNotFoundError,
    ExtractionError,
    PersistenceError,
    StatusUpdateError,
    StorageConnectionError,
    StorageError,
    UnsupportedFileTypeError,
    get_exit_code,
)


class TestDocIngestError:
    """Tests for the base exception."""

    def test_message_only(self):
        exc = DocIngestError("Something failed")

        assert exc.message == "Something failed"
        assert exc.details == {}
        assert exc.cause is None
        assert str(exc) == "Something failed"

    def test_with_details_and_cause(self):
        cause = OSError("disk full")
        exc = DocIngestError("Write failed", details={"document_id": 3}, cause=cause)

        assert exc.cause is cause
        assert str(exc) == "Write failed (details: {'document_id': 3})"

    def test_repr(self):
        exc = DocIngestError("x", details={"a": 1})

        assert repr(exc) == "DocIngestError(message='x', details={'a': 1}, cause=None)"


class TestHierarchy:
    """Tests for the exception hierarchy and stage tags."""

    @pytest.mark.parametrize(
        "exc_class,parent",
        [
            (UnsupportedFileTypeError, DocumentIngestionError),
            (ExtractionError, DocumentIngestionError),
            (ChunkingError, DocumentIngestionError),
            (StorageConnectionError, StorageError),
            (PersistenceError, StorageError),
            (StatusUpdateError, StorageError),
            (DocumentNotFoundError, StorageError),
            (ConfigurationError, DocIngestError),
            (StorageError, DocIngestError),
            (DocumentIngestionError, DocIngestError),
        ],
    )
    def test_inheritance(self, exc_class, parent):
        assert issubclass(exc_class, parent)

    def test_unsupported_file_type(self):
        exc = UnsupportedFileTypeError(".xyz")

        assert exc.extension == ".xyz"
        assert str(exc) == "Unsupported file type: .xyz"
        assert exc.stage == "extract"

    def test_extraction_error_format(self):
        exc = ExtractionError("DOCX processing failed: bad zip", file_format="docx")

        assert exc.file_format == "docx"
        assert exc.stage == "extract"

    @pytest.mark.parametrize(
        "exc,stage",
        [
            (ChunkingError("x"), "chunk"),
            (PersistenceError("x"), "persist"),
            (StorageConnectionError("x"), "persist"),
            (StatusUpdateError("x"), "status"),
            (ConfigurationError("x"), None),
        ],
    )
    def test_stage_tags(self, exc, stage):
        assert exc.stage == stage


class TestExitCodes:
    """Tests for get_exit_code."""

    @pytest.mark.parametrize(
        "exc,code",
        [
            (UnsupportedFileTypeError(".xyz"), 65),
            (ExtractionError("PDF processing failed: x"), 65),
            (ChunkingError("x"), 65),
            (DocumentNotFoundError("x"), 66),
            (FileNotFoundError("x"), 66),
            (StorageConnectionError("x"), 69),
            (PersistenceError("x"), 74),
            (StatusUpdateError("x"), 74),
            (StorageError("x"), 74),
            (ConfigurationError("x"), 78),
            (DocIngestError("x"), 1),
            (ValueError("x"), 1),
        ],
    )
    def test_exit_codes(self, exc, code):
        assert get_exit_code(exc) == code
