"""
Shared fixtures and mock provider services.
"""

import pytest

from app.core.config import Settings
from app.models.chat import ChatMessage, SearchResponse, SearchResult


async def stream_of(chunks, error=None):
    for chunk in chunks:
        yield chunk
    if error is not None:
        raise error


class MockResponse:
    """Stand-in for requests.Response."""

    def __init__(self, status_code=200, body=None, text="", json_ok=None):
        self.status_code = status_code
        self.ok = status_code < 400
        self._body = body
        self._json_ok = body is not None if json_ok is None else json_ok
        self.text = text

    def json(self):
        if not self._json_ok:
            raise ValueError("No JSON object could be decoded")
        return self._body


class MockTransport:
    """Replacement for requests.post that records every call."""

    def __init__(self, response=None, error=None):
        self._response = response
        self._error = error
        self.requests = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self._error is not None:
            raise self._error
        return self._response


class MockSearchService:
    """Mock Tavily search service."""

    def __init__(self, results=None, error=None, answer=None):
        self._results = results or []
        self._error = error
        self._answer = answer
        self.queries = []

    def search(self, query):
        self.queries.append(query)
        if self._error is not None:
            raise self._error
        return SearchResponse(query=query, answer=self._answer, results=self._results)


class MockCompletionService:
    """Mock DeepSeek service. Raises queued failures before succeeding."""

    def __init__(self, chunks=("Hello", ", ", "world."), failures=(), stream_error=None):
        self._chunks = list(chunks)
        self._failures = list(failures)
        self._stream_error = stream_error
        self.calls = []

    async def stream_completion(self, messages):
        self.calls.append(messages)
        if self._failures:
            raise self._failures.pop(0)
        return stream_of(self._chunks, self._stream_error)


async def collect(chunks):
    return [chunk async for chunk in chunks]


@pytest.fixture
def settings():
    return Settings(
        deepseek_api_key="test-deepseek-key",
        tavily_api_key="test-tavily-key",
        _env_file=None,
    )


@pytest.fixture
def sample_results():
    return [
        SearchResult(
            title="Paris - Wikipedia",
            url="https://en.wikipedia.org/wiki/Paris",
            content="Paris is the capital and largest city of France.",
            score=0.97,
            published_date="2024-05-01",
        ),
        SearchResult(
            title="France facts",
            url="https://example.org/france",
            content="France's capital city is Paris.",
            score=0.81,
        ),
    ]


@pytest.fixture
def question():
    return [ChatMessage(role="user", content="What is the capital of France?")]
