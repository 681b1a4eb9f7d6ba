# =============================================================================
# Services Package — Business Logic
# =============================================================================
# Kept separate from the API handlers:
#   - parser.py: Docling / plain-text parsers behind the DocumentParser protocol
#   - chunker.py: Token-bounded text splitter (tiktoken)
#   - embedder.py: OpenAI-compatible embedding client
#   - vectorstore.py: Pluggable vector store protocol (pgvector, Chroma)
#   - llm.py: Multi-provider chat model abstraction (Anthropic, OpenAI-compatible)
#   - events.py: Stage events and their logging / Prometheus sinks
#   - document_service.py: Ingestion orchestrator
#   - chat_service.py: Query orchestrator
# =============================================================================
