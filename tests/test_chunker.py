# =============================================================================
# Unit Tests — Token Text Splitter
# =============================================================================
#
# Tests the token-bounded splitting logic. Needs tiktoken's cl100k_base
# encoding; no API keys, databases or service calls.
# =============================================================================

from chatdocs.services.chunker import TokenTextSplitter, _get_encoder
from chatdocs.services.parser import TextUnit


class TestSplitText:
    """Tests for TokenTextSplitter.split_text()."""

    def test_empty_text_returns_no_chunks(self):
        splitter = TokenTextSplitter()
        assert splitter.split_text("") == []
        assert splitter.split_text("   \n\n ") == []

    def test_short_text_is_one_chunk(self):
        splitter = TokenTextSplitter()
        pieces = splitter.split_text("This is a short sentence.")
        assert pieces == ["This is a short sentence."]

    def test_text_at_or_below_min_length_is_dropped(self):
        splitter = TokenTextSplitter()
        assert splitter.split_text("Hi.") == []
        assert splitter.split_text("Hello") == []

    def test_long_text_produces_multiple_chunks(self):
        splitter = TokenTextSplitter(chunk_size=64, min_chunk_size_chars=50)
        pieces = splitter.split_text("Revenue grew by 15% year over year. " * 200)
        assert len(pieces) > 1

    def test_chunks_respect_token_budget(self):
        splitter = TokenTextSplitter(chunk_size=64, min_chunk_size_chars=50)
        encoder = _get_encoder()
        for piece in splitter.split_text("Revenue grew by 15% year over year. " * 200):
            assert len(encoder.encode(piece)) <= 64

    def test_cuts_at_sentence_end(self):
        splitter = TokenTextSplitter(chunk_size=64, min_chunk_size_chars=50)
        pieces = splitter.split_text("Revenue grew by 15% year over year. " * 200)
        for piece in pieces:
            assert piece.endswith(".")

    def test_max_num_chunks_caps_windows_and_keeps_remainder(self):
        splitter = TokenTextSplitter(chunk_size=20, min_chunk_size_chars=10, max_num_chunks=2)
        pieces = splitter.split_text("A line of plain text here.\n" * 100)
        # Two windows plus one chunk holding everything left over
        assert len(pieces) == 3
        assert "\n" not in pieces[-1]
        assert len(pieces[-1]) > len(pieces[0])


class TestSplit:
    """Tests for TokenTextSplitter.split() over text units."""

    def test_no_units_returns_no_chunks(self):
        assert TokenTextSplitter().split([]) == []

    def test_unit_metadata_copied_to_chunks(self):
        units = [
            TextUnit(text="Page one talks about revenue.", metadata={"page_number": 1}),
            TextUnit(text="Page two talks about expenses.", metadata={"page_number": 2}),
        ]
        chunks = TokenTextSplitter().split(units)

        assert [c.metadata["page_number"] for c in chunks] == [1, 2]
        # Each chunk owns its dict; enriching one must not touch the unit
        chunks[0].metadata["chunk_index"] = 0
        assert "chunk_index" not in units[0].metadata

    def test_chunk_ids_are_unique(self):
        units = [TextUnit(text="Sentence number one is here. " * 300)]
        chunks = TokenTextSplitter(chunk_size=50, min_chunk_size_chars=20).split(units)
        assert len(chunks) > 1
        assert len({c.id for c in chunks}) == len(chunks)

    def test_whitespace_only_units_skipped(self):
        units = [TextUnit(text="   "), TextUnit(text="\n\n"), TextUnit(text="Actual content here.")]
        chunks = TokenTextSplitter().split(units)
        assert len(chunks) == 1
        assert chunks[0].text == "Actual content here."
