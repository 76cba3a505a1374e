"""
Chat router: POST /api/chat and POST /api/search endpoints.

The chat endpoint streams the model's answer as plain text and reports the
web sources it used in the x-sources header. The search endpoint exposes
the web search on its own.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from app.models.chat import ChatRequest, ErrorResponse, SearchRequest, SearchResponse
from app.services.chat import SOURCES_HEADER, ChatOrchestrator
from app.services.search import WebSearchService

router = APIRouter(prefix="/api", tags=["chat"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Malformed request"},
    500: {"model": ErrorResponse, "description": "Upstream or internal failure"},
}


def get_chat_orchestrator(request: Request) -> ChatOrchestrator:
    """Chat orchestrator created by the app factory and stored in app.state."""
    return request.app.state.chat_orchestrator


def get_search_service(request: Request) -> WebSearchService:
    return request.app.state.search_service


@router.post(
    "/chat",
    response_class=StreamingResponse,
    responses={
        200: {
            "content": {"text/plain": {}},
            "description": f"Streamed answer; sources in the {SOURCES_HEADER} header",
        },
        **ERROR_RESPONSES,
    },
)
async def chat(
    request: ChatRequest,
    orchestrator: ChatOrchestrator = Depends(get_chat_orchestrator),
) -> StreamingResponse:
    """
    Ask a question, optionally grounded in web search results.

    The endpoint:
    1. Searches the web with the latest user turn (unless disabled).
    2. Composes the prompt with the results as context.
    3. Streams the model's answer verbatim.
    """
    result = await orchestrator.answer(request.messages, search=request.search)

    headers = {}
    sources = result.sources_header()
    if sources is not None:
        headers[SOURCES_HEADER] = sources

    return StreamingResponse(
        result.chunks,
        media_type="text/plain; charset=utf-8",
        headers=headers,
    )


@router.post("/search", response_model=SearchResponse, responses=ERROR_RESPONSES)
async def search(
    request: SearchRequest,
    search_service: WebSearchService = Depends(get_search_service),
) -> SearchResponse:
    """Run a web search and return the normalized results."""
    return await run_in_threadpool(search_service.search, request.query)
