"""
Text chunker for the document ingestion pipeline.

This module splits extracted document text into overlapping chunks suitable
for downstream embedding and search. Two accumulation units are supported:

- Sentences (default): text is split on ``.``, ``!`` and ``?`` and sentences
  are accumulated until the next one would overflow ``chunk_size``. Each new
  chunk starts with a word-aligned tail of the previous one.
- Paragraphs: blocks separated by a blank line are accumulated the same way,
  without any carried-over tail.

The splitting is deliberately naive: abbreviations, decimals and quoted
punctuation are not special-cased, so chunk boundaries stay reproducible.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import List

from langchain_core.documents import Document

from docingest.utils.logging import LoggerMixin

SENTENCE_BOUNDARY = re.compile(r"[.!?]+")
PARAGRAPH_BOUNDARY = re.compile(r"\n\s*\n")


class TextChunker(LoggerMixin):
    """
    Sentence and paragraph based text chunker with bounded overlap.

    Args:
        chunk_size: Target maximum size of each chunk in characters.
        chunk_overlap: Characters of trailing context carried into the next chunk.
        min_chunk_size: Minimum characters a buffer needs before it may be emitted.

    A single sentence or paragraph longer than ``chunk_size`` is emitted whole;
    units are never cut. A trailing buffer shorter than ``min_chunk_size`` is
    dropped, so the emitted chunks may cover less text than the input.

    Example:
        >>> chunker = TextChunker(chunk_size=60, chunk_overlap=15, min_chunk_size=10)
        >>> chunks = chunker.chunk_text("One short sentence. Another one follows it here.")
        >>> chunks[0].metadata["chunk_index"]
        0
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        min_chunk_size: int = 100,
    ) -> None:
        """
        Initialize the text chunker.

        Raises:
            ValueError: If the sizes are inconsistent.
        """
        super().__init__()

        if chunk_size <= 0:
            raise ValueError(f"chunk_size ({chunk_size}) must be positive")

        if chunk_overlap < 0:
            raise ValueError(f"chunk_overlap ({chunk_overlap}) must not be negative")

        if chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be less than chunk_size ({chunk_size})"
            )

        if min_chunk_size < 0:
            raise ValueError(f"min_chunk_size ({min_chunk_size}) must not be negative")

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.min_chunk_size = min_chunk_size

        self.logger.debug(
            "TextChunker initialized",
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            min_chunk_size=min_chunk_size,
        )

    def chunk_text(self, text: str, metadata: dict | None = None) -> List[Document]:
        """
        Chunk text using sentences as the atomic unit.

        Args:
            text: Raw text to chunk.
            metadata: Optional metadata merged into every chunk.

        Returns:
            Ordered list of chunk Documents. Empty for empty or whitespace-only text.
        """
        if not text or not text.strip():
            self.logger.warning("Empty text provided for chunking")
            return []

        chunks: List[Document] = []
        buffer = ""

        for sentence in self.split_into_sentences(text):
            candidate = f"{buffer} {sentence}" if buffer else sentence

            if len(candidate) > self.chunk_size and self._is_emittable(buffer):
                chunks.append(self._create_chunk(buffer, len(chunks), metadata))
                overlap = self.create_overlap(buffer)
                # a space keeps the overlap tail and the next sentence apart as words
                buffer = f"{overlap} {sentence}" if overlap.strip() else sentence
            else:
                buffer = candidate

        if self._is_emittable(buffer):
            chunks.append(self._create_chunk(buffer, len(chunks), metadata))

        self.logger.info("Text chunked", mode="sentence", num_chunks=len(chunks))
        return chunks

    def chunk_by_paragraphs(self, text: str, metadata: dict | None = None) -> List[Document]:
        """
        Chunk text using paragraphs (blocks separated by a blank line) as the unit.

        Paragraphs inside one chunk are re-joined with a blank line. No tail of the
        previous chunk is carried over, so paragraphs are never cut mid-word.

        Args:
            text: Raw text to chunk.
            metadata: Optional metadata merged into every chunk.

        Returns:
            Ordered list of chunk Documents.
        """
        if not text or not text.strip():
            self.logger.warning("Empty text provided for chunking")
            return []

        chunks: List[Document] = []
        buffer = ""

        for paragraph in self.split_into_paragraphs(text):
            candidate = f"{buffer}\n\n{paragraph}" if buffer else paragraph

            if len(candidate) > self.chunk_size and self._is_emittable(buffer):
                chunks.append(self._create_chunk(buffer, len(chunks), metadata))
                buffer = paragraph
            else:
                buffer = candidate

        if self._is_emittable(buffer):
            chunks.append(self._create_chunk(buffer, len(chunks), metadata))

        self.logger.info("Text chunked", mode="paragraph", num_chunks=len(chunks))
        return chunks

    def chunk(self, text: str, metadata: dict | None = None, mode: str = "sentence") -> List[Document]:
        """
        Chunk text with the given accumulation mode.

        Args:
            text: Raw text to chunk.
            metadata: Optional metadata merged into every chunk.
            mode: ``"sentence"`` or ``"paragraph"``.

        Raises:
            ValueError: If the mode is unknown.
        """
        if mode == "sentence":
            return self.chunk_text(text, metadata)
        if mode == "paragraph":
            return self.chunk_by_paragraphs(text, metadata)
        raise ValueError(f"Unknown chunking mode: {mode}")

    @staticmethod
    def split_into_sentences(text: str) -> List[str]:
        """
        Split text on runs of ``.``, ``!`` and ``?``.

        The boundary characters are consumed; empty fragments are discarded.

        Example:
            >>> TextChunker.split_into_sentences("Dr. Smith paid 3.50! Fine?")
            ['Dr', 'Smith paid 3', '50', 'Fine']
        """
        return [part.strip() for part in SENTENCE_BOUNDARY.split(text) if part.strip()]

    @staticmethod
    def split_into_paragraphs(text: str) -> List[str]:
        """Split text on blank lines (two newlines with only whitespace between)."""
        return [part.strip() for part in PARAGRAPH_BOUNDARY.split(text) if part.strip()]

    def create_overlap(self, buffer: str) -> str:
        """
        Compute the tail of ``buffer`` carried into the next chunk.

        A buffer no longer than ``chunk_overlap`` is carried whole. Otherwise the
        last ``chunk_overlap`` characters are taken and, when the last space in
        that slice lies past its midpoint, the slice is cut to start after it.

        Args:
            buffer: The chunk that was just emitted, untrimmed.

        Returns:
            Overlap text, at most ``chunk_overlap`` characters long.
        """
        if len(buffer) <= self.chunk_overlap:
            return buffer

        if self.chunk_overlap == 0:
            return ""

        overlap = buffer[-self.chunk_overlap:]

        last_space = overlap.rfind(" ")
        if last_space > self.chunk_overlap * 0.5:
            return overlap[last_space + 1:]

        return overlap

    def _is_emittable(self, buffer: str) -> bool:
        """A buffer may become a chunk once its trimmed text meets the minimum."""
        content = buffer.strip()
        return bool(content) and len(content) >= self.min_chunk_size

    def _create_chunk(self, text: str, index: int, metadata: dict | None) -> Document:
        """Build a chunk Document with caller metadata plus chunk-specific fields."""
        content = text.strip()

        chunk_metadata = dict(metadata) if metadata else {}
        # chunk_size always equals len(page_content)
        chunk_metadata.update({
            "chunk_index": index,
            "chunk_size": len(content),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

        return Document(page_content=content, metadata=chunk_metadata)

    def get_stats(self, text: str) -> dict:
        """
        Describe how ``text`` splits without building chunks.

        Useful for previewing a file before ingesting it.

        Returns:
            Dictionary with unit counts and an estimated chunk count.
        """
        sentences = self.split_into_sentences(text) if text else []
        paragraphs = self.split_into_paragraphs(text) if text else []
        step = self.chunk_size - self.chunk_overlap

        stats = {
            "total_characters": len(text) if text else 0,
            "num_sentences": len(sentences),
            "num_paragraphs": len(paragraphs),
            "estimated_chunks": max(1, len(text) // step) if sentences else 0,
            "chunk_size": self.chunk_size,
            "chunk_overlap": self.chunk_overlap,
            "min_chunk_size": self.min_chunk_size,
        }

        self.logger.debug("Chunking statistics calculated", **stats)

        return stats
