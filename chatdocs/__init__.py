# =============================================================================
# Chat With Docs
# =============================================================================
# Upload documents, then ask questions answered from their content.
# Retrieval-augmented generation over a pgvector (or Chroma) store.
#
# Package structure:
#   chatdocs/
#   ├── api/          → FastAPI routers, dependencies and error handlers
#   ├── db/           → Database engines, sessions and the chunk ORM model
#   ├── models/       → Pydantic V2 request/response schemas
#   ├── services/     → Parsing, splitting, embedding, vector stores, LLMs,
#   │                    stage events and the two orchestrators
#   ├── config.py     → Settings (pydantic-settings)
#   ├── exceptions.py → DocumentProcessingError, UploadTooLargeError
#   └── main.py       → App factory and ASGI entry point
# =============================================================================
