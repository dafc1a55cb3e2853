"""
Document manager: document rows, status transitions and chunk sets.

All statements go through the shared :class:`~docingest.storage.database.Database`
handle. Reads and single-row writes borrow one pooled connection; replacing a
document's chunks borrows a dedicated connection for one transaction so that
readers only ever see the old chunk set or the complete new one.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from langchain_core.documents import Document
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from docingest.storage.database import Database
from docingest.storage.models import ChunkRecord, DocumentRecord, ProcessingStatus
from docingest.storage.schema import document_chunks, documents
from docingest.utils.exceptions import (
    DocumentNotFoundError,
    PersistenceError,
    StatusUpdateError,
    StorageError,
)
from docingest.utils.logging import LoggerMixin


class DocumentManager(LoggerMixin):
    """
    Persistence operations for documents and their chunks.

    Args:
        database: Connected process-scoped database handle.
    """

    def __init__(self, database: Database) -> None:
        super().__init__()
        self.db = database

    async def create_document(
        self,
        file_path: str,
        file_name: str,
        file_type: str,
        file_size: int,
        project_folder: str | None = None,
        processing_status: ProcessingStatus = ProcessingStatus.PENDING,
    ) -> DocumentRecord:
        """
        Insert a document row.

        Raises:
            PersistenceError: If the row cannot be written, including when a
                document with the same path already exists.
        """
        stmt = (
            insert(documents)
            .values(
                file_path=file_path,
                file_name=file_name,
                file_type=file_type,
                file_size=file_size,
                project_folder=project_folder,
                processing_status=processing_status.value,
            )
            .returning(*documents.c)
        )

        try:
            async with self.db.connection() as conn:
                row = (await conn.execute(stmt)).one()
        except IntegrityError as e:
            self.logger.error("Document already exists", file_path=file_path)
            raise PersistenceError(
                f"Document already exists for path: {file_path}", cause=e
            ) from e
        except SQLAlchemyError as e:
            self.logger.error("Failed to create document", file_name=file_name, error=str(e))
            raise PersistenceError(f"Failed to create document {file_name}: {e}", cause=e) from e

        document = _to_document(row)
        self.logger.info("Document created", file_name=file_name, document_id=document.id)
        return document

    async def update_document_status(
        self,
        document_id: int,
        status: ProcessingStatus,
        error_message: str | None = None,
    ) -> DocumentRecord:
        """
        Record a status transition.

        ``updated_at`` is always refreshed and ``error_message`` always
        overwritten; ``processed_at`` is stamped only when entering
        ``completed`` and left untouched otherwise.

        Raises:
            DocumentNotFoundError: If the document does not exist.
            StatusUpdateError: If the update fails.
        """
        values: Dict[str, Any] = {
            "processing_status": status.value,
            "error_message": error_message,
            "updated_at": func.now(),
        }
        if status is ProcessingStatus.COMPLETED:
            values["processed_at"] = func.now()

        stmt = (
            update(documents)
            .where(documents.c.id == document_id)
            .values(**values)
            .returning(*documents.c)
        )

        try:
            async with self.db.connection() as conn:
                row = (await conn.execute(stmt)).one_or_none()
        except SQLAlchemyError as e:
            self.logger.error(
                "Failed to update document status",
                document_id=document_id,
                status=status.value,
                error=str(e),
            )
            raise StatusUpdateError(
                f"Failed to update document {document_id} status: {e}", cause=e
            ) from e

        if row is None:
            raise DocumentNotFoundError(f"Document not found: {document_id}")

        self.logger.info("Document status updated", document_id=document_id, status=status.value)
        return _to_document(row)

    async def replace_chunks(self, document_id: int, chunks: Sequence[Document]) -> int:
        """
        Atomically replace the chunk set of a document.

        Deletes every existing chunk of the document and inserts ``chunks`` in
        order, with ``chunk_index`` equal to the position in the sequence, all
        in one transaction. If any statement fails the transaction is rolled
        back and the previously committed chunk set stays visible.

        Returns:
            Number of chunks written.

        Raises:
            PersistenceError: If the transaction was rolled back.
        """
        try:
            async with self.db.transaction() as conn:
                await conn.execute(
                    delete(document_chunks).where(document_chunks.c.document_id == document_id)
                )
                for index, chunk in enumerate(chunks):
                    await conn.execute(
                        insert(document_chunks).values(
                            document_id=document_id,
                            chunk_index=index,
                            chunk_text=chunk.page_content,
                            metadata=chunk.metadata or {},
                        )
                    )
        except Exception as e:
            self.logger.error(
                "Chunk replacement rolled back",
                document_id=document_id,
                num_chunks=len(chunks),
                error=str(e),
            )
            raise PersistenceError(
                f"Failed to store chunks for document {document_id}: {e}", cause=e
            ) from e

        self.logger.info("Chunks stored", document_id=document_id, num_chunks=len(chunks))
        return len(chunks)

    async def get_document_by_path(self, file_path: str) -> Optional[DocumentRecord]:
        """Fetch the document for ``file_path``, or None."""
        stmt = select(documents).where(documents.c.file_path == file_path)
        row = await self._fetch_one(stmt, "Failed to get document by path", file_path=file_path)
        return _to_document(row) if row is not None else None

    async def get_document(self, document_id: int) -> DocumentRecord:
        """
        Fetch a document by id.

        Raises:
            DocumentNotFoundError: If no such document exists.
        """
        stmt = select(documents).where(documents.c.id == document_id)
        row = await self._fetch_one(stmt, "Failed to get document", document_id=document_id)
        if row is None:
            raise DocumentNotFoundError(f"Document not found: {document_id}")
        return _to_document(row)

    async def get_document_chunks(self, document_id: int) -> List[ChunkRecord]:
        """Fetch the chunks of a document ordered by index."""
        stmt = (
            select(document_chunks)
            .where(document_chunks.c.document_id == document_id)
            .order_by(document_chunks.c.chunk_index)
        )
        try:
            async with self.db.connection() as conn:
                rows = (await conn.execute(stmt)).all()
        except SQLAlchemyError as e:
            self.logger.error("Failed to get chunks", document_id=document_id, error=str(e))
            raise StorageError(f"Failed to get chunks for document {document_id}: {e}", cause=e) from e

        return [ChunkRecord.model_validate(dict(row._mapping)) for row in rows]

    async def count_chunks(self, document_id: int) -> int:
        """Count the stored chunks of a document."""
        stmt = (
            select(func.count())
            .select_from(document_chunks)
            .where(document_chunks.c.document_id == document_id)
        )
        row = await self._fetch_one(stmt, "Failed to count chunks", document_id=document_id)
        return int(row[0])

    async def list_documents(
        self,
        project_folder: str | None = None,
        status: ProcessingStatus | None = None,
        limit: int = 50,
    ) -> List[DocumentRecord]:
        """List documents, newest first, optionally filtered by project and status."""
        stmt = select(documents).order_by(documents.c.created_at.desc(), documents.c.id.desc())
        if project_folder is not None:
            stmt = stmt.where(documents.c.project_folder == project_folder)
        if status is not None:
            stmt = stmt.where(documents.c.processing_status == status.value)
        stmt = stmt.limit(limit)

        try:
            async with self.db.connection() as conn:
                rows = (await conn.execute(stmt)).all()
        except SQLAlchemyError as e:
            self.logger.error("Failed to list documents", error=str(e))
            raise StorageError(f"Failed to list documents: {e}", cause=e) from e

        return [_to_document(row) for row in rows]

    async def delete_document(self, document_id: int) -> int:
        """
        Delete a document and all of its chunks in one transaction.

        This is a maintenance operation; ingestion never deletes documents.

        Returns:
            Number of chunks removed.

        Raises:
            DocumentNotFoundError: If no such document exists.
            PersistenceError: If the transaction was rolled back.
        """
        try:
            async with self.db.transaction() as conn:
                removed = await conn.execute(
                    delete(document_chunks).where(document_chunks.c.document_id == document_id)
                )
                result = await conn.execute(delete(documents).where(documents.c.id == document_id))
                if result.rowcount == 0:
                    raise DocumentNotFoundError(f"Document not found: {document_id}")
        except DocumentNotFoundError:
            raise
        except SQLAlchemyError as e:
            self.logger.error("Failed to delete document", document_id=document_id, error=str(e))
            raise PersistenceError(f"Failed to delete document {document_id}: {e}", cause=e) from e

        self.logger.info("Document deleted", document_id=document_id, num_chunks=removed.rowcount)
        return removed.rowcount

    async def _fetch_one(self, stmt: Any, failure: str, **context: Any) -> Any:
        try:
            async with self.db.connection() as conn:
                return (await conn.execute(stmt)).one_or_none()
        except SQLAlchemyError as e:
            self.logger.error(failure, error=str(e), **context)
            raise StorageError(f"{failure}: {e}", cause=e) from e


def _to_document(row: Any) -> DocumentRecord:
    return DocumentRecord.model_validate(dict(row._mapping))
