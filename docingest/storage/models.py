"""
Record models for stored documents and chunks.

These Pydantic models are the typed view of rows read from the document
store; they validate what comes back from the database and give the CLI a
single shape to render.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProcessingStatus(str, Enum):
    """
    Lifecycle of a document within one ingestion attempt.

    Attributes:
        PENDING: Row created, processing not started.
        PROCESSING: Chunking and chunk persistence in progress.
        COMPLETED: Chunks stored; terminal.
        ERROR: Attempt failed; terminal, ``error_message`` holds the cause.
    """
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class DocumentRecord(BaseModel):
    """A row of the ``documents`` table."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Document id")
    file_path: str = Field(..., description="Absolute file path (unique)")
    file_name: str = Field(..., description="Base name of the file")
    file_type: str = Field(..., description="Lower-case extension including the dot")
    file_size: int = Field(..., ge=0, description="File size in bytes")
    project_folder: Optional[str] = Field(None, description="Project label")
    processing_status: ProcessingStatus = Field(..., description="Lifecycle state")
    error_message: Optional[str] = Field(None, description="Cause of the last failure")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    processed_at: Optional[datetime] = Field(
        None, description="Set when the document entered the completed state"
    )


class ChunkRecord(BaseModel):
    """A row of the ``document_chunks`` table."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    document_id: int
    chunk_index: int = Field(..., ge=0)
    chunk_text: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    chunk_embedding: Optional[List[float]] = None
