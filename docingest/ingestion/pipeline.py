"""
Ingestion pipeline for the document store.

This module orchestrates the ingestion of one file:
1. Skip files that already have a document row
2. Extract text with the document processor
3. Create the document row (``pending``) and mark it ``processing``
4. Chunk the extracted text
5. Replace the document's chunk set in one transaction
6. Mark the document ``completed``

A failure after the row exists moves it to ``error`` with the failure message
and is then re-raised. Directory ingestion runs the same steps file by file
and keeps going past failures.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal

from docingest.config.settings import Settings
from docingest.ingestion.chunker import TextChunker
from docingest.ingestion.extractors import EXTENSION_MAP
from docingest.ingestion.processor import DocumentProcessor, FailureKind, ProcessingResult
from docingest.storage.documents import DocumentManager
from docingest.storage.models import DocumentRecord, ProcessingStatus
from docingest.utils.exceptions import (
    ChunkingError,
    ExtractionError,
    StorageError,
    UnsupportedFileTypeError,
)
from docingest.utils.logging import LoggerMixin

ChunkingMode = Literal["sentence", "paragraph"]


@dataclass
class IngestionResult:
    """
    Result of ingesting one file.

    Attributes:
        file_path: Absolute path of the file.
        success: Whether the file is stored (or was already stored).
        document_id: Id of the document row, if one exists.
        status: Status of the document row after this call.
        chunk_count: Number of chunks stored for the document.
        text_length: Characters extracted (0 when nothing was extracted).
        already_ingested: True when an existing row short-circuited the call.
        error: Error message if ingestion failed (None if successful).
        stage: Stage that failed (``extract``, ``chunk``, ``persist``, ``status``).
    """
    file_path: str
    success: bool = True
    document_id: int | None = None
    status: ProcessingStatus | None = None
    chunk_count: int = 0
    text_length: int = 0
    already_ingested: bool = False
    error: str | None = None
    stage: str | None = None

    def __str__(self) -> str:
        """Human-readable string representation."""
        if not self.success:
            return f"✗ {self.file_path}: {self.error}"
        if self.already_ingested:
            return f"• {self.file_path}: already ingested ({self.status.value if self.status else 'unknown'})"
        return (
            f"✓ {self.file_path}: "
            f"{self.text_length} characters → "
            f"{self.chunk_count} chunks"
        )


@dataclass
class DirectoryIngestionReport:
    """Per-file outcome of a directory ingestion."""
    directory: str
    results: List[IngestionResult] = field(default_factory=list)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success and not r.already_ingested)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.already_ingested)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def total_chunks(self) -> int:
        return sum(r.chunk_count for r in self.results if r.success and not r.already_ingested)

    def __str__(self) -> str:
        return (
            f"{self.directory}: {len(self.results)} files, "
            f"{self.successful} ingested, {self.skipped} skipped, {self.failed} failed"
        )


@dataclass
class DocumentStatusReport:
    """Stored state of one document."""
    document: DocumentRecord
    chunk_count: int

    @property
    def status(self) -> ProcessingStatus:
        return self.document.processing_status

    @property
    def error_message(self) -> str | None:
        return self.document.error_message


def find_files(directory: str | Path, recursive: bool = False) -> List[Path]:
    """
    List the supported files of a directory in a stable order.

    Args:
        directory: Directory to walk.
        recursive: Whether to descend into subdirectories.

    Returns:
        Sorted paths of regular files whose extension has an extractor.
    """
    root = Path(directory)
    candidates = root.rglob("*") if recursive else root.glob("*")
    return sorted(
        path for path in candidates
        if path.is_file() and path.suffix.lower() in EXTENSION_MAP
    )


def extraction_error(path: Path, result: ProcessingResult) -> Exception:
    """Turn a failed processing result into the exception raised to the caller."""
    if result.error_kind is FailureKind.UNSUPPORTED_FILE_TYPE:
        return UnsupportedFileTypeError(path.suffix.lower())
    if result.error_kind is FailureKind.FILE_NOT_FOUND:
        return FileNotFoundError(result.error)
    return ExtractionError(f"Document processing failed: {result.error}")


class IngestionCoordinator(LoggerMixin):
    """
    Drive files through extraction, chunking and storage.

    Args:
        document_manager: Storage operations for documents and chunks.
        processor: Document processor (defaults to one without a size limit).
        chunker: Text chunker holding the default chunk sizes.
        default_project: Project label used when none is given.
        chunking_mode: Default accumulation unit, ``sentence`` or ``paragraph``.

    Example:
        >>> database = Database("sqlite+aiosqlite:///./documents.db")
        >>> await database.connect()
        >>> coordinator = IngestionCoordinator(DocumentManager(database))
        >>> result = await coordinator.ingest_file("notes/meeting.md", project="team")
        >>> print(result)
        ✓ /home/me/notes/meeting.md: 5120 characters → 7 chunks
    """

    def __init__(
        self,
        document_manager: DocumentManager,
        processor: DocumentProcessor | None = None,
        chunker: TextChunker | None = None,
        default_project: str = "manual",
        chunking_mode: ChunkingMode = "sentence",
    ) -> None:
        super().__init__()

        self.documents = document_manager
        self.processor = processor or DocumentProcessor()
        self.chunker = chunker or TextChunker()
        self.default_project = default_project
        self.chunking_mode = chunking_mode

        self.logger.info(
            "IngestionCoordinator initialized",
            chunk_size=self.chunker.chunk_size,
            chunk_overlap=self.chunker.chunk_overlap,
            min_chunk_size=self.chunker.min_chunk_size,
            chunking_mode=chunking_mode,
            default_project=default_project,
        )

    @classmethod
    def from_settings(cls, document_manager: DocumentManager, settings: Settings) -> "IngestionCoordinator":
        """Build a coordinator from application settings."""
        return cls(
            document_manager,
            processor=DocumentProcessor(max_file_size=settings.ingestion.max_file_size_bytes),
            chunker=TextChunker(
                chunk_size=settings.chunking.chunk_size,
                chunk_overlap=settings.chunking.chunk_overlap,
                min_chunk_size=settings.chunking.min_chunk_size,
            ),
            default_project=settings.ingestion.default_project,
            chunking_mode=settings.chunking.chunking_mode,
        )

    async def ingest_file(
        self,
        file_path: str | Path,
        project: str | None = None,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
        mode: ChunkingMode | None = None,
    ) -> IngestionResult:
        """
        Ingest a single file.

        Args:
            file_path: Path to the file; stored as an absolute path.
            project: Project label (defaults to ``default_project``).
            chunk_size: Override of the chunker's chunk size.
            chunk_overlap: Override of the chunker's overlap.
            mode: Override of the chunking mode.

        Returns:
            IngestionResult. If the path already has a document row the result
            has ``already_ingested=True`` and nothing was read or written.

        Raises:
            FileNotFoundError: If the file does not exist and has no document row.
            UnsupportedFileTypeError: If no extractor handles the extension.
            ExtractionError: If text extraction failed; no row is created.
            ChunkingError: If chunking failed; the row is marked ``error``.
            StorageError: If a write failed; the row is marked ``error``
                when it exists.
        """
        path = Path(file_path).resolve()
        path_str = str(path)
        project = project or self.default_project
        mode = mode or self.chunking_mode

        self.logger.info("Starting file ingestion", file_path=path_str, project=project)

        existing = await self.documents.get_document_by_path(path_str)
        if existing is not None:
            chunk_count = await self.documents.count_chunks(existing.id)
            self.logger.info(
                "Document already ingested",
                file_path=path_str,
                document_id=existing.id,
                status=existing.processing_status.value,
            )
            return IngestionResult(
                file_path=path_str,
                document_id=existing.id,
                status=existing.processing_status,
                chunk_count=chunk_count,
                already_ingested=True,
            )

        if not path.is_file():
            self.logger.error("File not found", file_path=path_str)
            raise FileNotFoundError(f"File not found: {path_str}")

        chunker = self._chunker_for(chunk_size, chunk_overlap)

        result = self.processor.process_document(path)
        if not result.success:
            raise extraction_error(path, result)

        document = await self.documents.create_document(
            file_path=path_str,
            file_name=path.name,
            file_type=path.suffix.lower(),
            file_size=result.metadata.get("file_size", 0),
            project_folder=project,
        )

        try:
            await self.documents.update_document_status(document.id, ProcessingStatus.PROCESSING)

            chunk_metadata: Dict[str, Any] = {
                "file_type": document.file_type,
                "project_folder": project,
                **result.metadata,
            }
            try:
                chunks = chunker.chunk(result.text, chunk_metadata, mode=mode)
            except ValueError as e:
                raise ChunkingError(f"Chunking failed: {e}", cause=e) from e

            if not chunks:
                self.logger.warning(
                    "No chunks created from document",
                    file_path=path_str,
                    text_length=len(result.text),
                )

            stored = await self.documents.replace_chunks(document.id, chunks)
            await self.documents.update_document_status(document.id, ProcessingStatus.COMPLETED)

        except Exception as e:
            self.logger.error(
                "File ingestion failed",
                file_path=path_str,
                document_id=document.id,
                error=str(e),
                stage=getattr(e, "stage", None),
            )
            await self._record_failure(document.id, e)
            raise

        self.logger.info(
            "File ingestion complete",
            file_path=path_str,
            document_id=document.id,
            text_length=len(result.text),
            num_chunks=stored,
        )

        return IngestionResult(
            file_path=path_str,
            document_id=document.id,
            status=ProcessingStatus.COMPLETED,
            chunk_count=stored,
            text_length=len(result.text),
        )

    async def ingest_directory(
        self,
        directory_path: str | Path,
        recursive: bool = False,
        project: str | None = None,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
        mode: ChunkingMode | None = None,
    ) -> DirectoryIngestionReport:
        """
        Ingest all supported files from a directory.

        Files are processed one at a time in sorted order. A failing file is
        recorded in the report and the walk continues with the next one.

        Raises:
            FileNotFoundError: If the directory does not exist.
            ValueError: If the path is not a directory.
        """
        directory = Path(directory_path)

        if not directory.exists():
            self.logger.error("Directory not found", directory=str(directory))
            raise FileNotFoundError(f"Directory not found: {directory}")

        if not directory.is_dir():
            self.logger.error("Path is not a directory", path=str(directory))
            raise ValueError(f"Path is not a directory: {directory}")

        files = find_files(directory, recursive=recursive)

        self.logger.info(
            "Starting directory ingestion",
            directory=str(directory),
            recursive=recursive,
            supported_files=len(files),
        )

        report = DirectoryIngestionReport(directory=str(directory))
        for file_path in files:
            try:
                result = await self.ingest_file(
                    file_path,
                    project=project,
                    chunk_size=chunk_size,
                    chunk_overlap=chunk_overlap,
                    mode=mode,
                )
            except Exception as e:
                self.logger.error(
                    "Failed to ingest file in directory",
                    file_path=str(file_path),
                    error=str(e),
                    exc_info=True,
                )
                result = IngestionResult(
                    file_path=str(file_path.resolve()),
                    success=False,
                    error=str(e),
                    stage=getattr(e, "stage", None),
                )
            report.results.append(result)

        self.logger.info(
            "Directory ingestion complete",
            directory=str(directory),
            total_files=len(report.results),
            successful=report.successful,
            skipped=report.skipped,
            failed=report.failed,
            total_chunks_stored=report.total_chunks,
        )

        return report

    async def get_status(self, file_path: str | Path) -> DocumentStatusReport | None:
        """Return the stored state of a file, or None if it was never ingested."""
        path_str = str(Path(file_path).resolve())
        document = await self.documents.get_document_by_path(path_str)
        if document is None:
            return None
        chunk_count = await self.documents.count_chunks(document.id)
        return DocumentStatusReport(document=document, chunk_count=chunk_count)

    def _chunker_for(self, chunk_size: int | None, chunk_overlap: int | None) -> TextChunker:
        if chunk_size is None and chunk_overlap is None:
            return self.chunker
        return TextChunker(
            chunk_size=chunk_size if chunk_size is not None else self.chunker.chunk_size,
            chunk_overlap=chunk_overlap if chunk_overlap is not None else self.chunker.chunk_overlap,
            min_chunk_size=self.chunker.min_chunk_size,
        )

    async def _record_failure(self, document_id: int, error: Exception) -> None:
        """Best-effort move to ``error``; a failure here never masks ``error``."""
        try:
            await self.documents.update_document_status(
                document_id, ProcessingStatus.ERROR, error_message=str(error)
            )
        except StorageError as status_error:
            self.logger.error(
                "Failed to record error status",
                document_id=document_id,
                original_error=str(error),
                error=str(status_error),
            )
