# =============================================================================
# Token Text Splitter — tiktoken
# =============================================================================
#
# Splits parsed text units into chunks bounded by a token budget, preferring
# to cut at the end of a sentence or paragraph.
#
# ALGORITHM (per text unit):
# 1. Encode the text with tiktoken (cl100k_base)
# 2. Take the next `chunk_size` tokens and decode them
# 3. If the last '.', '?', '!' or newline sits beyond `min_chunk_size_chars`,
#    cut the window just after it
# 4. Keep the chunk if it is longer than `min_chunk_length_to_embed`
# 5. Advance by the token length of the text actually kept; repeat
# 6. Stop after `max_num_chunks`; whatever is left becomes one final chunk
#
# The splitter is a pure function of its input and its parameters. It never
# fails: empty input yields an empty list.
# =============================================================================

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

import tiktoken

from chatdocs.config import settings
from chatdocs.services.parser import TextUnit

logger = logging.getLogger(__name__)

_BREAK_CHARS = (".", "?", "!", "\n")


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class Chunk:
    """
    A bounded span of text destined for the vector store.

    The id is generated up front so the store can key the row/record on it.
    Metadata starts as a copy of the source TextUnit's metadata and is
    enriched with provenance by the ingestion service.
    """

    text: str
    metadata: dict = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


# ---------------------------------------------------------------------------
# Tiktoken Encoder — Cached Singleton
# ---------------------------------------------------------------------------
# Loading the encoder reads a ~1.7MB BPE file from disk; it is cached at
# module level. cl100k_base matches the OpenAI embedding models.
# ---------------------------------------------------------------------------

_encoder: tiktoken.Encoding | None = None


def _get_encoder() -> tiktoken.Encoding:
    """Lazily initialize and cache the tiktoken encoder."""
    global _encoder
    if _encoder is None:
        _encoder = tiktoken.get_encoding("cl100k_base")
    return _encoder


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class TokenTextSplitter:
    """
    Token-bounded splitter with sentence/paragraph-aware cut points.

    Defaults come from settings (800 tokens, 350 chars, 5 chars, 10000
    chunks per text unit, separators kept).
    """

    def __init__(
        self,
        chunk_size: int | None = None,
        min_chunk_size_chars: int | None = None,
        min_chunk_length_to_embed: int | None = None,
        max_num_chunks: int | None = None,
        keep_separator: bool | None = None,
    ) -> None:
        self.chunk_size = chunk_size or settings.chunk_size
        self.min_chunk_size_chars = (
            settings.min_chunk_size_chars
            if min_chunk_size_chars is None else min_chunk_size_chars
        )
        self.min_chunk_length_to_embed = (
            settings.min_chunk_length_to_embed
            if min_chunk_length_to_embed is None else min_chunk_length_to_embed
        )
        self.max_num_chunks = max_num_chunks or settings.max_num_chunks
        self.keep_separator = (
            settings.keep_separator if keep_separator is None else keep_separator
        )

    def split(self, units: list[TextUnit]) -> list[Chunk]:
        """
        Split every text unit and return all chunks in document order.

        Each chunk gets a copy of its unit's metadata.
        """
        chunks: list[Chunk] = []
        for unit in units:
            for text in self.split_text(unit.text):
                chunks.append(Chunk(text=text, metadata=dict(unit.metadata)))

        logger.debug(
            "Split %d text units into %d chunks (chunk_size=%d)",
            len(units), len(chunks), self.chunk_size,
        )
        return chunks

    def split_text(self, text: str) -> list[str]:
        """Split a single string into chunk texts."""
        if not text or not text.strip():
            return []

        encoder = _get_encoder()
        tokens = encoder.encode(text)
        pieces: list[str] = []
        num_chunks = 0

        while tokens and num_chunks < self.max_num_chunks:
            window = tokens[: self.chunk_size]
            window_text = encoder.decode(window)

            if not window_text.strip():
                tokens = tokens[len(window):]
                continue

            last_break = max(window_text.rfind(c) for c in _BREAK_CHARS)
            if last_break != -1 and last_break > self.min_chunk_size_chars:
                window_text = window_text[: last_break + 1]

            piece = window_text.strip() if self.keep_separator else (
                window_text.replace("\n", " ").strip()
            )
            if len(piece) > self.min_chunk_length_to_embed:
                pieces.append(piece)

            # Advance by the tokens of the text actually kept; always make
            # progress even if re-encoding yields nothing.
            consumed = len(encoder.encode(window_text)) or len(window)
            tokens = tokens[consumed:]
            num_chunks += 1

        if tokens:
            remainder = encoder.decode(tokens).replace("\n", " ").strip()
            if len(remainder) > self.min_chunk_length_to_embed:
                pieces.append(remainder)

        return pieces
