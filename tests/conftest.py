"""
Pytest configuration and shared fixtures.

This module provides:
- Shared fixtures for all tests
- Hypothesis profile configuration
- A temporary SQLite document store per test
"""

import os
from collections.abc import AsyncGenerator, Generator
from pathlib import Path
from unittest.mock import patch

import fitz
import pytest
import pytest_asyncio
from docx import Document as DocxDocument
from hypothesis import settings as hypothesis_settings, Verbosity

from docingest.storage.database import Database
from docingest.storage.documents import DocumentManager

# Configure Hypothesis profiles
hypothesis_settings.register_profile(
    "ci",
    max_examples=100,
    deadline=1000,
    verbosity=Verbosity.normal,
)
hypothesis_settings.register_profile(
    "dev",
    max_examples=20,
    deadline=500,
    verbosity=Verbosity.verbose,
)
hypothesis_settings.register_profile(
    "debug",
    max_examples=10,
    deadline=None,
    verbosity=Verbosity.verbose,
)

# Load profile from environment or use dev
profile = os.environ.get("HYPOTHESIS_PROFILE", "dev")
hypothesis_settings.load_profile(profile)


SAMPLE_TEXT = (
    "Document ingestion turns files into searchable chunks. "
    "Each chunk keeps a little context from the one before it. "
    "Short trailing fragments are dropped on purpose. "
    "Every document moves from pending to processing and then to completed. "
    "A failed attempt leaves the document in the error state with a message."
)


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """URL of a fresh SQLite database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'documents.db'}"


@pytest_asyncio.fixture
async def database(sqlite_url: str) -> AsyncGenerator[Database, None]:
    """Connected database with the schema created."""
    db = Database(sqlite_url)
    await db.connect()
    await db.create_schema()
    yield db
    await db.disconnect()


@pytest.fixture
def document_manager(database: Database) -> DocumentManager:
    """Document manager over the temporary database."""
    return DocumentManager(database)


@pytest.fixture
def mock_env_vars(sqlite_url: str) -> Generator[dict[str, str], None, None]:
    """Fixture to set environment variables for testing."""
    env_vars = {
        "ENVIRONMENT": "development",
        "DATABASE_URL": sqlite_url,
        "LOG_LEVEL": "DEBUG",
        "LOG_FORMAT": "console",
    }
    with patch.dict(os.environ, env_vars, clear=False):
        yield env_vars


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Reset logging context between tests."""
    from docingest.utils.logging import clear_log_context

    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def sample_txt_path(tmp_path: Path) -> Path:
    """Plain text file with five sentences."""
    path = tmp_path / "notes.txt"
    path.write_text(SAMPLE_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def sample_pdf_path(tmp_path: Path) -> Path:
    """Two-page PDF with title and author set."""
    path = tmp_path / "report.pdf"
    pdf = fitz.open()
    for text in ("First page of the report.", "Second page of the report."):
        page = pdf.new_page()
        page.insert_text((72, 72), text)
    pdf.set_metadata({"title": "Quarterly Report", "author": "Finance Team"})
    pdf.save(str(path))
    pdf.close()
    return path


@pytest.fixture
def sample_docx_path(tmp_path: Path) -> Path:
    """Word document with two paragraphs and a table."""
    path = tmp_path / "minutes.docx"
    document = DocxDocument()
    document.add_paragraph("Meeting minutes for the planning session.")
    document.add_paragraph("Action items were assigned to each team.")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Owner"
    table.rows[0].cells[1].text = "Task"
    document.save(str(path))
    return path


@pytest.fixture
def temp_document_dir(tmp_path: Path) -> Path:
    """Directory with supported, unsupported and nested files."""
    root = tmp_path / "docs"
    root.mkdir()
    (root / "a.txt").write_text(SAMPLE_TEXT, encoding="utf-8")
    (root / "b.md").write_text("# Notes\n\n" + SAMPLE_TEXT, encoding="utf-8")
    (root / "image.png").write_bytes(b"\x89PNG\r\n")
    nested = root / "nested"
    nested.mkdir()
    (nested / "c.txt").write_text(SAMPLE_TEXT, encoding="utf-8")
    return root


# Markers for test categorization
def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "property: Property-based tests")
