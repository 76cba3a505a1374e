"""
Pydantic models for the Chat and Search API contracts.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Role = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    """A single message in the conversation history."""

    role: Role = Field(..., description="Message role: 'system', 'user' or 'assistant'")
    content: str = Field(..., description="Message content")


class ChatRequest(BaseModel):
    """Request body for the POST /api/chat endpoint."""

    messages: list[ChatMessage] = Field(
        ..., min_length=1, description="Conversation history (latest message last)"
    )
    search: bool | None = Field(
        None, description="Augment the answer with web search; server default when omitted"
    )


class SearchRequest(BaseModel):
    """Request body for the POST /api/search endpoint."""

    query: str = Field(..., min_length=1, description="Free-text search query")

    @field_validator("query")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query must not be blank")
        return value


class SearchResult(BaseModel):
    """A single web search hit, as returned by the search provider."""

    model_config = ConfigDict(frozen=True)

    title: str = Field("", description="Page title")
    url: str = Field(..., description="Page URL")
    content: str = Field("", description="Relevant snippet of the page")
    score: float = Field(0.0, description="Provider relevance score")
    published_date: str | None = Field(None, description="Publication date, when known")


class SearchResponse(BaseModel):
    """Response body from the POST /api/search endpoint."""

    query: str = Field(..., description="The query that was searched")
    answer: str | None = Field(None, description="Answer synthesized by the search provider")
    results: list[SearchResult] = Field(
        default_factory=list, description="Results in provider order"
    )


class CompletionRequest(BaseModel):
    """Body sent to the model provider's chat completions endpoint."""

    model: str
    messages: list[ChatMessage]
    stream: bool = True
    max_tokens: int = 4000


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    error: str
