"""
Storage module for documents and their chunks.

Provides the process-scoped database handle, the table definitions and the
document manager that owns status transitions and chunk replacement.
"""

from docingest.storage.database import Database
from docingest.storage.documents import DocumentManager
from docingest.storage.models import ChunkRecord, DocumentRecord, ProcessingStatus

__all__ = [
    "Database",
    "DocumentManager",
    "DocumentRecord",
    "ChunkRecord",
    "ProcessingStatus",
]
