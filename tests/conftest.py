# =============================================================================
# Shared Test Fixtures
# =============================================================================
#
# In-memory stand-ins for every external collaborator:
#   - FakeVectorStore: records add() calls, serves canned search results
#   - FakeLLM: records prompts, returns a canned completion
#   - FakeSplitter: splits on "|" so chunk counts are predictable
#   - RecordingSink: collects stage events
#
# None of them touch the network, a database or tiktoken's BPE files.
# =============================================================================

import asyncio

import pytest
from fastapi.testclient import TestClient

from chatdocs.api.dependencies import get_chat_service, get_document_service
from chatdocs.main import app
from chatdocs.services.chunker import Chunk
from chatdocs.services.llm import LLMResponse
from chatdocs.services.vectorstore import RetrievedChunk


def _run(coro):
    """Run a coroutine to completion on a fresh event loop."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class FakeVectorStore:
    def __init__(self, results=None, add_error=None, search_error=None):
        self.results = list(results or [])
        self.add_error = add_error
        self.search_error = search_error
        self.added: list[list[Chunk]] = []
        self.searches: list[tuple[str, int]] = []

    def add(self, chunks):
        if self.add_error is not None:
            raise self.add_error
        self.added.append(list(chunks))

    async def similarity_search(self, query, top_k):
        self.searches.append((query, top_k))
        if self.search_error is not None:
            raise self.search_error
        return self.results[:top_k]


class FakeLLM:
    def __init__(self, content="The answer.", error=None):
        self.content = content
        self.error = error
        self.calls: list[list[dict]] = []

    async def complete(self, messages, system=None, temperature=None, max_tokens=None):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.content, model="fake-model")


class FakeSplitter:
    def split(self, units):
        chunks = []
        for unit in units:
            for piece in unit.text.split("|"):
                if piece.strip():
                    chunks.append(Chunk(text=piece.strip(), metadata=dict(unit.metadata)))
        return chunks


class RecordingSink:
    def __init__(self):
        self.events = []

    def emit(self, event):
        self.events.append(event)

    @property
    def stages(self):
        return [e.stage for e in self.events]


def retrieved(*texts):
    return [RetrievedChunk(text=t, metadata={"chunk_index": i}) for i, t in enumerate(texts)]


@pytest.fixture
def run():
    return _run


@pytest.fixture
def recorder():
    return RecordingSink()


@pytest.fixture
def fake_store():
    return FakeVectorStore()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def fake_splitter():
    return FakeSplitter()


@pytest.fixture
def make_store():
    return FakeVectorStore


@pytest.fixture
def make_llm():
    return FakeLLM


@pytest.fixture
def make_retrieved():
    return retrieved


@pytest.fixture
def client():
    """TestClient that returns 500 responses instead of re-raising."""
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.pop(get_document_service, None)
    app.dependency_overrides.pop(get_chat_service, None)
