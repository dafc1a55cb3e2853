"""
Custom Hypothesis strategies for property-based testing.

This module provides custom strategies for generating test data
that conforms to the domain models of the document ingestion service.
"""

from typing import Any

from hypothesis import strategies as st

# Sentence bodies never contain boundary punctuation, so splitting the joined
# text gives back exactly the generated sentences.
WORD_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


# =============================================================================
# Text Strategies
# =============================================================================

@st.composite
def word(draw: Any) -> str:
    """Generate a single word of letters and digits."""
    return draw(st.text(alphabet=WORD_ALPHABET, min_size=1, max_size=12))


@st.composite
def sentence(draw: Any) -> str:
    """
    Generate one sentence body without its terminator.

    Words are joined by single spaces; no boundary characters appear inside.
    """
    words = draw(st.lists(word(), min_size=1, max_size=15))
    return " ".join(words)


@st.composite
def sentence_list(draw: Any, min_size: int = 1, max_size: int = 30) -> list[str]:
    """Generate a list of sentence bodies."""
    return draw(st.lists(sentence(), min_size=min_size, max_size=max_size))


@st.composite
def prose(draw: Any) -> str:
    """
    Generate text made of terminated sentences.

    Terminators are drawn from ``.``, ``!``, ``?`` and runs of them.
    """
    sentences = draw(sentence_list())
    terminators = draw(
        st.lists(
            st.sampled_from([".", "!", "?", "...", "?!"]),
            min_size=len(sentences),
            max_size=len(sentences),
        )
    )
    return " ".join(f"{s}{t}" for s, t in zip(sentences, terminators))


@st.composite
def paragraph_text(draw: Any) -> str:
    """Generate paragraphs separated by blank lines."""
    paragraphs = draw(st.lists(sentence(), min_size=1, max_size=12))
    separator = draw(st.sampled_from(["\n\n", "\n\n\n", "\n  \n"]))
    return separator.join(paragraphs)


@st.composite
def whitespace_text(draw: Any) -> str:
    """Generate empty or whitespace-only text."""
    return draw(st.text(alphabet=" \t\n\r", max_size=20))


# =============================================================================
# Chunk Strategies
# =============================================================================

@st.composite
def chunk_config(draw: Any) -> tuple[int, int, int]:
    """
    Generate valid (chunk_size, chunk_overlap, min_chunk_size) triples.

    Overlap is always smaller than the chunk size.
    """
    chunk_size = draw(st.integers(min_value=20, max_value=400))
    chunk_overlap = draw(st.integers(min_value=0, max_value=chunk_size - 1))
    min_chunk_size = draw(st.integers(min_value=0, max_value=chunk_size // 2))
    return chunk_size, chunk_overlap, min_chunk_size


@st.composite
def chunk_metadata(draw: Any) -> dict[str, Any]:
    """Generate caller metadata as attached by the ingestion pipeline."""
    return {
        "file_type": draw(st.sampled_from([".pdf", ".docx", ".txt", ".md"])),
        "project_folder": draw(st.text(alphabet=WORD_ALPHABET, min_size=1, max_size=20)),
    }


# =============================================================================
# File Strategies
# =============================================================================

@st.composite
def supported_extension(draw: Any) -> str:
    """Generate a supported extension in random case."""
    ext = draw(st.sampled_from([".pdf", ".docx", ".doc", ".txt", ".md", ".markdown"]))
    upper = draw(st.booleans())
    return ext.upper() if upper else ext


@st.composite
def unsupported_extension(draw: Any) -> str:
    """Generate an extension no extractor handles."""
    return draw(st.sampled_from([".xyz", ".png", ".csv", ".json", ".html", ".rtf", ".xlsx"]))


# =============================================================================
# Session and ID Strategies
# =============================================================================

@st.composite
def correlation_id(draw: Any) -> str:
    """Generate correlation ID strings."""
    return str(draw(st.uuids()))


# Export all strategies
__all__ = [
    "word",
    "sentence",
    "sentence_list",
    "prose",
    "paragraph_text",
    "whitespace_text",
    "chunk_config",
    "chunk_metadata",
    "supported_extension",
    "unsupported_extension",
    "correlation_id",
]
