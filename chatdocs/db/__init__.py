# =============================================================================
# Database Package
# =============================================================================
# SQLAlchemy engines, session management and the chunk ORM model.
#
# Key exports:
#   - get_async_session / get_sync_session: session context managers
#   - init_vector_schema: optional startup DDL
#   - Base, StoredChunk: ORM base and the vector_store table
# =============================================================================
