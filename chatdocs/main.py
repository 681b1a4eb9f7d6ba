# =============================================================================
# Application Entry Point — FastAPI App Factory
# =============================================================================
#
# create_app() wires routers and exception handlers onto a fresh FastAPI
# instance; `app` is the module-level instance uvicorn serves:
#
#   uvicorn chatdocs.main:app --reload
#
# STARTUP:
#   When INITIALIZE_SCHEMA=true and the pgvector backend is selected, the
#   lifespan hook creates the `vector` extension, the schema and the chunk
#   table before the first request is accepted.
# =============================================================================

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from chatdocs.api import chat, documents, health, metrics
from chatdocs.api.errors import register_exception_handlers
from chatdocs.config import settings
from chatdocs.db.engine import init_vector_schema

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info(
        "Starting %s v%s (vector store=%s, llm provider=%s)",
        settings.app_name, settings.app_version,
        settings.vectorstore_type, settings.llm_provider,
    )
    if settings.initialize_schema and settings.vectorstore_type == "pgvector":
        await asyncio.to_thread(init_vector_schema)
    yield
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Upload documents and ask questions answered from their content "
            "using retrieval-augmented generation."
        ),
        lifespan=lifespan,
    )

    app.include_router(health.router)
    app.include_router(documents.router)
    app.include_router(chat.router)
    if settings.metrics_enabled:
        app.include_router(metrics.router)

    register_exception_handlers(app)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("chatdocs.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
