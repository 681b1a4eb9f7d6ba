# =============================================================================
# Chat API — Question Answering over Uploaded Documents
# =============================================================================
#
# ENDPOINTS:
#   POST /api/chat — answer a question from the most similar stored chunks
#
# Body validation (blank question, topK outside 1-20) happens in
# ChatRequest; failures become 400 before the service is touched.
# =============================================================================

from fastapi import APIRouter, Depends

from chatdocs.api.dependencies import get_chat_service
from chatdocs.models.requests import ChatRequest
from chatdocs.models.responses import ChatResponse
from chatdocs.services.chat_service import ChatService

router = APIRouter(prefix="/api", tags=["Chat"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Ask a question about your documents",
    description=(
        "Retrieves the topK most similar chunks (default 5) and asks the "
        "configured model to answer from them. `sources` lists the chunk "
        "texts the answer was grounded on."
    ),
)
async def chat(
    request: ChatRequest,
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    return await service.chat(request)
