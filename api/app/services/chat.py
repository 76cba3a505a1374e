"""
Chat Orchestrator: core query pipeline.

Coordinates one user turn through the Search -> Compose -> Stream flow:
1. Optionally search the web with the newest user turn.
2. Compose the model prompt, injecting search results as a system turn.
3. Open a streamed completion and hand back the text stream plus the
   sources it was grounded on.

Search failures never reach the caller. If the augmented completion is
rejected, the turn is retried once without search results.
"""

import json
import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from typing import Protocol

from starlette.concurrency import run_in_threadpool

from app.core.errors import UpstreamCompletionError, UpstreamSearchError
from app.core.telemetry import get_tracer
from app.models.chat import ChatMessage, SearchResponse, SearchResult
from app.services.prompt import compose

logger = logging.getLogger(__name__)

SOURCES_HEADER = "x-sources"


class SearchBackend(Protocol):
    def search(self, query: str) -> SearchResponse: ...


class CompletionBackend(Protocol):
    async def stream_completion(
        self, messages: list[dict[str, str]]
    ) -> AsyncIterator[str]: ...


@dataclass(frozen=True)
class ChatStream:
    """A streamed answer and the sources it was grounded on."""

    chunks: AsyncIterator[str]
    sources: tuple[SearchResult, ...] = ()

    def sources_header(self) -> str | None:
        """JSON-encode the sources for the response header, or None if unsourced."""
        if not self.sources:
            return None
        return json.dumps([source.model_dump(mode="json") for source in self.sources])


class ChatOrchestrator:
    """Runs the search-augmented completion pipeline for one turn."""

    def __init__(
        self,
        search_service: SearchBackend,
        completion_service: CompletionBackend,
        search_enabled: bool = True,
    ) -> None:
        self._search = search_service
        self._completion = completion_service
        self._search_enabled = search_enabled
        self._tracer = get_tracer()

    async def answer(
        self,
        conversation: Sequence[ChatMessage],
        search: bool | None = None,
    ) -> ChatStream:
        """
        Answer the newest turn of a conversation.

        Args:
            conversation: History with the newest turn last.
            search: Per-request retrieval toggle; None uses the service default.

        Returns:
            ChatStream whose chunks are the model's text, verbatim.

        Raises:
            UpstreamCompletionError: The unaugmented completion failed too.
        """
        with self._tracer.start_as_current_span("chat.answer") as span:
            use_search = self._search_enabled if search is None else search
            span.set_attribute("chat.message_count", len(conversation))
            span.set_attribute("chat.search_requested", use_search)

            sources: tuple[SearchResult, ...] = ()
            if use_search and conversation and conversation[-1].role == "user":
                sources = await self._retrieve(conversation[-1].content)

            if sources:
                try:
                    chunks = await self._completion.stream_completion(
                        compose(conversation, sources)
                    )
                    span.set_attribute("chat.augmented", True)
                    return ChatStream(chunks=chunks, sources=sources)
                except UpstreamCompletionError as exc:
                    logger.warning(
                        "Augmented completion failed (status %s, %d sources); "
                        "retrying without search results: %s",
                        exc.status_code,
                        len(sources),
                        exc.message,
                    )

            span.set_attribute("chat.augmented", False)
            chunks = await self._completion.stream_completion(compose(conversation))
            return ChatStream(chunks=chunks)

    async def _retrieve(self, query: str) -> tuple[SearchResult, ...]:
        """Search for the query; an empty tuple means answer unaugmented."""
        if not query.strip():
            return ()
        try:
            response = await run_in_threadpool(self._search.search, query)
        except UpstreamSearchError as exc:
            logger.warning(
                "Search failed (status %s, query length %d); answering without sources: %s",
                exc.status_code,
                len(query),
                exc.message,
            )
            return ()
        if not response.results:
            logger.info("Search returned no results; answering without sources.")
        return tuple(response.results)
