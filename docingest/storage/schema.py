"""
Table definitions for the document store.

``documents.file_path`` carries a UNIQUE constraint: the existence check in the
ingestion pipeline is not atomic with document creation, so the store is what
prevents two concurrent ingestions of one path from creating two rows.
"""

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB

metadata = MetaData()

# JSONB on PostgreSQL, JSON text elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")

# SQLite only autoincrements INTEGER primary keys
IdType = BigInteger().with_variant(Integer(), "sqlite")

documents = Table(
    "documents",
    metadata,
    Column("id", IdType, primary_key=True, autoincrement=True),
    Column("file_path", Text, nullable=False, unique=True),
    Column("file_name", String(255), nullable=False),
    Column("file_type", String(20), nullable=False),
    Column("file_size", BigInteger, nullable=False, default=0),
    Column("project_folder", String(255)),
    Column("processing_status", String(50), nullable=False, default="pending", index=True),
    Column("error_message", Text),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("processed_at", DateTime(timezone=True)),
)

document_chunks = Table(
    "document_chunks",
    metadata,
    Column("id", IdType, primary_key=True, autoincrement=True),
    Column(
        "document_id",
        IdType,
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("chunk_index", Integer, nullable=False),
    Column("chunk_text", Text, nullable=False),
    Column("metadata", JSONType, nullable=False),
    Column("chunk_embedding", JSONType),
    UniqueConstraint("document_id", "chunk_index", name="uq_document_chunks_document_index"),
)
