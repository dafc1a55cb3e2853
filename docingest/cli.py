"""
Command line interface for manual document ingestion.

Each command except ``preview`` opens the process-scoped database handle,
runs one operation and closes the handle again. Failures are printed and
turned into a non-zero exit code; nothing below this module exits the process.
"""

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, NoReturn, Optional, TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from docingest.config.settings import Settings, get_settings
from docingest.ingestion.chunker import TextChunker
from docingest.ingestion.pipeline import IngestionCoordinator, extraction_error
from docingest.ingestion.processor import DocumentProcessor
from docingest.storage.database import Database
from docingest.storage.documents import DocumentManager
from docingest.storage.models import ProcessingStatus
from docingest.utils.exceptions import (
    ConfigurationError,
    DocumentNotFoundError,
    StorageConnectionError,
    get_exit_code,
)
from docingest.utils.logging import (
    bind_log_context,
    clear_log_context,
    get_correlation_id,
    get_logger,
    set_correlation_id,
    setup_logging,
)

T = TypeVar("T")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

app = typer.Typer(help="Manual document ingestion into the document store")
console = Console()
logger = get_logger(__name__)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    """Ingest PDF, Word and text documents into the document store."""
    settings = _load_settings()
    level = (log_level or settings.logging.log_level).upper()
    if level not in LOG_LEVELS:
        _fail(ConfigurationError(f"Invalid log level: {log_level}"))
    setup_logging(
        log_level=level,
        log_format=settings.logging.log_format,
        app_name=settings.app_name,
    )


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ConfigurationError as e:
        _fail(e)


def _fail(error: Exception) -> NoReturn:
    console.print(f"[red]❌ Error:[/] {escape(str(error))}")
    correlation_id = get_correlation_id()
    if correlation_id:
        console.print(f"[dim]Run id: {correlation_id}[/]")
    raise typer.Exit(get_exit_code(error))


def _run(command: str, operation: Callable[[IngestionCoordinator], Awaitable[T]]) -> T:
    """Run ``operation`` against a connected coordinator and map failures to exit codes."""
    settings = get_settings()
    set_correlation_id()
    bind_log_context(command=command)

    async def runner() -> T:
        database = Database.from_settings(settings.database)
        await database.connect()
        try:
            coordinator = IngestionCoordinator.from_settings(DocumentManager(database), settings)
            return await operation(coordinator)
        finally:
            await database.disconnect()

    try:
        return asyncio.run(runner())
    except Exception as e:
        logger.error("Command failed", error=str(e))
        _fail(e)
    finally:
        clear_log_context()


def _mode(paragraphs: bool) -> Optional[str]:
    return "paragraph" if paragraphs else None


@app.command()
def file(
    path: Path = typer.Argument(..., help="Path to the document file"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project folder name"),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", "-c", help="Chunk size in characters"),
    overlap: Optional[int] = typer.Option(None, "--overlap", "-o", help="Chunk overlap in characters"),
    paragraphs: bool = typer.Option(False, "--paragraphs", help="Chunk by paragraph instead of sentence"),
):
    """Ingest a single document file."""
    result = _run(
        "file",
        lambda coordinator: coordinator.ingest_file(
            path,
            project=project,
            chunk_size=chunk_size,
            chunk_overlap=overlap,
            mode=_mode(paragraphs),
        ),
    )

    if result.already_ingested:
        console.print(f"Document already exists with status: [bold]{result.status.value}[/]")
        console.print(f"📄 Document ID: {result.document_id}")
        return

    console.print(f"[green]✅ Document ingested:[/] {path.name}")
    console.print(f"📄 Document ID: {result.document_id}")
    console.print(f"📝 Text length: {result.text_length} characters")
    console.print(f"🧩 Chunks created: {result.chunk_count}")


@app.command()
def directory(
    path: Path = typer.Argument(..., help="Path to the directory"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project folder name"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Process subdirectories recursively"),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", "-c", help="Chunk size in characters"),
    overlap: Optional[int] = typer.Option(None, "--overlap", "-o", help="Chunk overlap in characters"),
    paragraphs: bool = typer.Option(False, "--paragraphs", help="Chunk by paragraph instead of sentence"),
):
    """Ingest all supported documents in a directory."""
    console.print(f"[bold]Ingesting documents from:[/] {path}")

    report = _run(
        "directory",
        lambda coordinator: coordinator.ingest_directory(
            path,
            recursive=recursive,
            project=project,
            chunk_size=chunk_size,
            chunk_overlap=overlap,
            mode=_mode(paragraphs),
        ),
    )

    for result in report.results:
        name = Path(result.file_path).name
        if not result.success:
            console.print(f"[red]❌ Failed:[/] {name} - {escape(result.error or '')}")
        elif result.already_ingested:
            console.print(f"[yellow]⏭  Skipped:[/] {name} (already {result.status.value})")
        else:
            console.print(f"[green]✅ Processed:[/] {name} ({result.chunk_count} chunks)")

    console.print()
    console.print("[bold]📊 Directory ingestion completed![/]")
    console.print(f"✅ Successfully processed: {report.successful} files")
    console.print(f"⏭  Already ingested: {report.skipped} files")
    console.print(f"❌ Failed: {report.failed} files")
    console.print(f"🧩 Total chunks: {report.total_chunks}")


@app.command()
def status(
    path: Path = typer.Argument(..., help="Path to the document file"),
):
    """Show ingestion status for a document."""
    report = _run("status", lambda coordinator: coordinator.get_status(path))

    if report is None:
        console.print(f"❌ Document not found: {path}")
        return

    document = report.document
    console.print(f"📄 Document Status: [bold]{document.file_name}[/]")
    console.print(f"🆔 ID: {document.id}")
    console.print(f"📁 Project: {document.project_folder}")
    console.print(f"📊 Status: {document.processing_status.value}")
    console.print(f"📝 File Type: {document.file_type}")
    console.print(f"📏 File Size: {document.file_size} bytes")
    console.print(f"🧩 Chunks: {report.chunk_count}")
    console.print(f"📅 Created: {document.created_at}")
    console.print(f"📅 Updated: {document.updated_at}")
    if document.processed_at:
        console.print(f"📅 Processed: {document.processed_at}")

    if document.error_message:
        console.print(f"[red]❌ Error:[/] {escape(document.error_message)}")


@app.command("list")
def list_documents(
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Only this project"),
    status: Optional[ProcessingStatus] = typer.Option(None, "--status", "-s", help="Only this status"),
    limit: int = typer.Option(50, "--limit", "-n", min=1, help="Maximum rows"),
):
    """List stored documents, newest first."""
    documents = _run(
        "list",
        lambda coordinator: coordinator.documents.list_documents(
            project_folder=project, status=status, limit=limit
        ),
    )

    if not documents:
        console.print("[yellow]No documents found.[/]")
        return

    table = Table(title=f"Documents ({len(documents)})")
    table.add_column("ID", justify="right")
    table.add_column("File", no_wrap=True)
    table.add_column("Project")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Size", justify="right")
    table.add_column("Created")

    for document in documents:
        table.add_row(
            str(document.id),
            document.file_name,
            document.project_folder or "",
            document.file_type,
            document.processing_status.value,
            str(document.file_size),
            document.created_at.strftime("%Y-%m-%d %H:%M") if document.created_at else "",
        )

    console.print(table)


@app.command()
def forget(
    path: Path = typer.Argument(..., help="Path of the ingested document"),
):
    """Delete a document and its chunks so that it can be ingested again."""

    async def operation(coordinator: IngestionCoordinator) -> int:
        report = await coordinator.get_status(path)
        if report is None:
            raise DocumentNotFoundError(f"Document not found: {path}")
        return await coordinator.documents.delete_document(report.document.id)

    removed = _run("forget", operation)
    console.print(f"[green]🗑  Document removed:[/] {path.name} ({removed} chunks)")


@app.command()
def preview(
    path: Path = typer.Argument(..., help="Path to the document file"),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", "-c", help="Chunk size in characters"),
    overlap: Optional[int] = typer.Option(None, "--overlap", "-o", help="Chunk overlap in characters"),
):
    """Show how a file would be chunked without touching the database."""
    settings = get_settings()
    set_correlation_id()
    bind_log_context(command="preview")

    try:
        chunker = TextChunker(
            chunk_size=chunk_size if chunk_size is not None else settings.chunking.chunk_size,
            chunk_overlap=overlap if overlap is not None else settings.chunking.chunk_overlap,
            min_chunk_size=settings.chunking.min_chunk_size,
        )
        processor = DocumentProcessor(max_file_size=settings.ingestion.max_file_size_bytes)
        result = processor.process_document(path)
        if not result.success:
            raise extraction_error(path.resolve(), result)
        stats = chunker.get_stats(result.text)
    except Exception as e:
        logger.error("Command failed", error=str(e))
        _fail(e)
    finally:
        clear_log_context()

    console.print(f"📄 {path.name} ({result.file_type})")
    console.print(f"📝 Characters: {stats['total_characters']}")
    console.print(f"🔤 Sentences: {stats['num_sentences']}")
    console.print(f"📑 Paragraphs: {stats['num_paragraphs']}")
    console.print(
        f"🧩 Estimated chunks: {stats['estimated_chunks']} "
        f"(size {stats['chunk_size']}, overlap {stats['chunk_overlap']})"
    )


@app.command()
def check():
    """Check that the document store answers queries."""

    async def operation(coordinator: IngestionCoordinator) -> bool:
        return await coordinator.documents.db.check_connectivity()

    if not _run("check", operation):
        _fail(StorageConnectionError("Database connectivity check failed"))
    console.print("[green]✅ Database reachable[/]")


@app.command("init-db")
def init_db():
    """Create the document tables if they do not exist."""

    async def operation(coordinator: IngestionCoordinator) -> None:
        await coordinator.documents.db.create_schema()

    _run("init-db", operation)
    console.print("[green]✅ Database schema ready[/]")


if __name__ == "__main__":
    app()
