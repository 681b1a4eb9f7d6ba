# =============================================================================
# Unit Tests — Chat Service (retrieval-augmented answering)
# =============================================================================
#
# Store and model are in-memory fakes (see conftest.py). Covers top_k
# resolution, both short-circuit answers, context assembly and error
# propagation.
# =============================================================================

import pytest

from chatdocs.config import settings
from chatdocs.models.requests import ChatRequest
from chatdocs.services.chat_service import (
    NO_ANSWER_MESSAGE,
    NO_RELEVANT_INFO_MESSAGE,
    ChatService,
    build_context,
    build_prompt,
)
from chatdocs.services.vectorstore import RetrievedChunk


class TestChat:
    def test_default_top_k_is_five(self, run, make_store, fake_llm, make_retrieved):
        store = make_store(results=make_retrieved("a chunk"))

        run(ChatService(store, fake_llm).chat(ChatRequest(question="What?")))

        assert store.searches == [("What?", 5)]

    def test_explicit_top_k_passed_through(self, run, make_store, fake_llm, make_retrieved):
        store = make_store(results=make_retrieved("a chunk"))

        run(ChatService(store, fake_llm).chat(ChatRequest(question="What?", top_k=3)))

        assert store.searches == [("What?", 3)]

    def test_no_results_skips_model(self, run, fake_store, fake_llm):
        response = run(ChatService(fake_store, fake_llm).chat(ChatRequest(question="Anything?")))

        assert response.answer == NO_RELEVANT_INFO_MESSAGE
        assert response.sources == []
        assert response.question == "Anything?"
        assert fake_llm.calls == []

    def test_answer_with_sources_in_retrieval_order(self, run, make_store, make_llm, make_retrieved):
        store = make_store(results=make_retrieved("first chunk", "second chunk"))
        llm = make_llm(content="Paris.")

        response = run(ChatService(store, llm).chat(ChatRequest(question="Capital?")))

        assert response.answer == "Paris."
        assert response.sources == ["first chunk", "second chunk"]
        assert response.question == "Capital?"
        assert response.processing_time_ms >= 0

    def test_model_receives_single_user_prompt(self, run, make_store, fake_llm, make_retrieved):
        store = make_store(results=make_retrieved("first chunk", "second chunk"))

        run(ChatService(store, fake_llm).chat(ChatRequest(question="Capital?")))

        [messages] = fake_llm.calls
        assert len(messages) == 1
        assert messages[0]["role"] == "user"
        prompt = messages[0]["content"]
        assert "Document 0:\nfirst chunk\n\nDocument 1:\nsecond chunk\n\n" in prompt
        assert "Question: Capital?" in prompt
        assert prompt.rstrip().endswith("Answer:")

    @pytest.mark.parametrize("content", [None, ""])
    def test_empty_completion_drops_sources(self, run, make_store, make_llm, make_retrieved, content):
        store = make_store(results=make_retrieved("a chunk"))

        response = run(ChatService(store, make_llm(content=content)).chat(ChatRequest(question="Q?")))

        assert response.answer == NO_ANSWER_MESSAGE
        assert response.sources == []

    def test_store_failure_propagates(self, run, make_store, fake_llm):
        store = make_store(search_error=ConnectionError("db down"))

        with pytest.raises(ConnectionError):
            run(ChatService(store, fake_llm).chat(ChatRequest(question="Q?")))
        assert fake_llm.calls == []

    def test_model_failure_propagates(self, run, make_store, make_llm, make_retrieved):
        store = make_store(results=make_retrieved("a chunk"))
        llm = make_llm(error=RuntimeError("rate limited"))

        with pytest.raises(RuntimeError, match="rate limited"):
            run(ChatService(store, llm).chat(ChatRequest(question="Q?")))

    def test_context_cap_limits_sources(self, run, make_store, fake_llm, make_retrieved, monkeypatch):
        monkeypatch.setattr(settings, "context_max_chars", 30)
        store = make_store(results=make_retrieved("a" * 10, "b" * 10, "c" * 10))

        response = run(ChatService(store, fake_llm).chat(ChatRequest(question="Q?")))

        assert response.sources == ["a" * 10]

    def test_stage_events(self, run, make_store, fake_llm, make_retrieved, recorder):
        store = make_store(results=make_retrieved("a chunk"))

        run(ChatService(store, fake_llm, events=recorder).chat(ChatRequest(question="Q?")))

        assert recorder.stages == ["retrieve", "build_context", "generate"]

    def test_empty_retrieval_event(self, run, fake_store, fake_llm, recorder):
        run(ChatService(fake_store, fake_llm, events=recorder).chat(ChatRequest(question="Q?")))

        assert recorder.stages == ["retrieve"]
        assert recorder.events[0].outcome == "empty"


class TestBuildContext:
    def _chunks(self, *texts):
        return [RetrievedChunk(text=t) for t in texts]

    def test_unbounded_uses_every_chunk(self):
        context, used = build_context(self._chunks("one", "two"))
        assert context == "Document 0:\none\n\nDocument 1:\ntwo\n\n"
        assert len(used) == 2

    def test_whole_chunks_while_they_fit(self):
        # Each part is len("Document 0:\n") + 10 + 2 == 24 characters
        context, used = build_context(self._chunks("a" * 10, "b" * 10), max_chars=30)
        assert [c.text for c in used] == ["a" * 10]
        assert context == "Document 0:\n" + "a" * 10 + "\n\n"

    def test_first_chunk_truncated_when_alone_too_long(self):
        context, used = build_context(self._chunks("a" * 100, "b"), max_chars=20)
        assert len(context) == 20
        assert [c.text for c in used] == ["a" * 100]

    def test_empty_input(self):
        assert build_context([]) == ("", [])


def test_build_prompt_template():
    prompt = build_prompt("Document 0:\nctx\n\n", "Why?")
    assert prompt.startswith("You are a helpful AI assistant.")
    assert "Don't try to make up an answer." in prompt
    assert "Context:\nDocument 0:\nctx\n\n" in prompt
    assert "Question: Why?" in prompt
