"""
Tavily web search client wrapper.

Sends a single advanced-depth search per query and normalizes the
provider's result list. No retries: failures surface immediately as
UpstreamSearchError so the caller can decide whether to fall back.
"""

import logging
from typing import Any

import requests
from pydantic import ValidationError

from app.core.config import Settings
from app.core.errors import MalformedRequestError, UpstreamSearchError
from app.core.telemetry import get_tracer
from app.models.chat import SearchResponse, SearchResult

logger = logging.getLogger(__name__)

MAX_RESULTS = 5
SEARCH_DEPTH = "advanced"


class WebSearchService:
    """Wrapper around the Tavily search API."""

    def __init__(self, settings: Settings) -> None:
        self._url = settings.tavily_api_url
        self._timeout = settings.tavily_timeout
        self._headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {settings.tavily_api_key}",
        }
        self._tracer = get_tracer()

    def search(self, query: str) -> SearchResponse:
        """
        Run a web search.

        Each call opens its own connection; nothing is shared between
        concurrent requests.

        Args:
            query: Free-text query; must not be blank.

        Returns:
            SearchResponse with results in provider order. Individual
            results the provider returned malformed are left out.

        Raises:
            MalformedRequestError: The query is blank.
            UpstreamSearchError: The provider failed, was unreachable, or
                returned a body that is not a JSON object.
        """
        query = query.strip()
        if not query:
            raise MalformedRequestError("query must not be blank")

        payload = {
            "query": query,
            "search_depth": SEARCH_DEPTH,
            "include_answer": True,
            "include_images": False,
            "max_results": MAX_RESULTS,
        }

        with self._tracer.start_as_current_span("search.tavily") as span:
            span.set_attribute("search.query_length", len(query))
            span.set_attribute("search.max_results", MAX_RESULTS)

            try:
                response = requests.post(
                    self._url, json=payload, headers=self._headers, timeout=self._timeout
                )
            except requests.RequestException as exc:
                logger.error("Tavily request to %s failed: %s", self._url, exc)
                raise UpstreamSearchError(f"Tavily request failed: {exc}") from exc

            if not response.ok:
                error_payload = _decode_error(response)
                logger.error(
                    "Tavily API error %d (query length %d): %s",
                    response.status_code,
                    len(query),
                    error_payload,
                )
                raise UpstreamSearchError(
                    _error_message(error_payload),
                    status_code=response.status_code,
                    payload=error_payload,
                )

            try:
                data = response.json()
            except ValueError as exc:
                logger.error("Tavily returned an unreadable result body: %s", exc)
                raise UpstreamSearchError(
                    "Tavily returned an invalid response",
                    status_code=response.status_code,
                ) from exc

            if not isinstance(data, dict) or not isinstance(data.get("results") or [], list):
                logger.error("Tavily returned an unexpected result body: %.200r", data)
                raise UpstreamSearchError(
                    "Tavily returned an invalid response",
                    status_code=response.status_code,
                    payload=data,
                )

            results = _parse_results(data.get("results") or [])
            answer = data.get("answer")

            span.set_attribute("search.results_count", len(results))
            logger.info("Tavily search returned %d results", len(results))
            return SearchResponse(
                query=query,
                answer=answer if isinstance(answer, str) else None,
                results=results,
            )


def _parse_results(items: list[Any]) -> list[SearchResult]:
    results = []
    for position, item in enumerate(items):
        try:
            results.append(SearchResult.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                "Skipping malformed Tavily result #%d: %s", position, exc.errors()[0]["msg"]
            )
    return results


def _decode_error(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_message(payload: Any) -> str | None:
    """Pull a human-readable message out of a Tavily error body."""
    if not isinstance(payload, dict):
        return str(payload) if payload else None
    if payload.get("message"):
        return str(payload["message"])
    detail = payload.get("detail")
    if isinstance(detail, dict) and detail.get("error"):
        return str(detail["error"])
    if isinstance(detail, str) and detail:
        return detail
    return None
