# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
# Request/response schemas for the HTTP API. Kept separate from the ORM
# model in chatdocs/db/models.py so the stored row layout (embeddings,
# JSONB metadata) never leaks into the public contract.
# =============================================================================
