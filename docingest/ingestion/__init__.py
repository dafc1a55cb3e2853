"""
Ingestion module for the document store.

This module provides document ingestion functionality including:
- Text extraction from PDF, Word and plain text/Markdown files
- Sentence and paragraph chunking with overlap
- The ingestion state machine (pending, processing, completed, error)
"""

from docingest.ingestion.chunker import TextChunker
from docingest.ingestion.extractors import FileType, get_extractor
from docingest.ingestion.pipeline import (
    DirectoryIngestionReport,
    DocumentStatusReport,
    IngestionCoordinator,
    IngestionResult,
    extraction_error,
    find_files,
)
from docingest.ingestion.processor import DocumentProcessor, ProcessingResult

__all__ = [
    "DocumentProcessor",
    "ProcessingResult",
    "FileType",
    "get_extractor",
    "TextChunker",
    "IngestionCoordinator",
    "IngestionResult",
    "DirectoryIngestionReport",
    "DocumentStatusReport",
    "find_files",
    "extraction_error",
]
