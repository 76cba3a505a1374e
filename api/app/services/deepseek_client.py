"""
DeepSeek chat completions client wrapper.

DeepSeek exposes an OpenAI-compatible API, so the official openai SDK is
pointed at its base URL. Completions are always streamed and relayed as
plain text fragments, one per upstream delta.
"""

import logging
from collections.abc import AsyncIterator

from openai import APIError, APIStatusError, AsyncOpenAI, AsyncStream
from openai.types.chat import ChatCompletionChunk

from app.core.config import Settings
from app.core.errors import UpstreamCompletionError
from app.core.telemetry import get_tracer
from app.models.chat import CompletionRequest

logger = logging.getLogger(__name__)

MAX_OUTPUT_TOKENS = 4000


class DeepSeekService:
    """Wrapper around the DeepSeek chat completions endpoint."""

    def __init__(self, settings: Settings) -> None:
        self._model = settings.deepseek_model
        self._tracer = get_tracer()

        # Single attempt per request; fallback is decided by the orchestrator.
        self._client = AsyncOpenAI(
            api_key=settings.deepseek_api_key,
            base_url=settings.deepseek_base_url,
            timeout=settings.deepseek_timeout,
            max_retries=0,
        )

    @property
    def model(self) -> str:
        return self._model

    async def stream_completion(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        """
        Open a streamed chat completion.

        The upstream request is sent before this coroutine returns, so a
        provider error is raised here rather than after the caller has
        started responding.

        Args:
            messages: Composed role/content dicts, newest user turn last.

        Returns:
            Async iterator of text fragments in arrival order.

        Raises:
            UpstreamCompletionError: The provider rejected the request or
                could not be reached.
        """
        request = CompletionRequest(
            model=self._model,
            messages=messages,
            stream=True,
            max_tokens=MAX_OUTPUT_TOKENS,
        )

        with self._tracer.start_as_current_span("deepseek.chat") as span:
            span.set_attribute("deepseek.model", self._model)
            span.set_attribute("deepseek.message_count", len(messages))

            try:
                stream = await self._client.chat.completions.create(**request.model_dump())
            except APIStatusError as exc:
                message = _status_error_message(exc)
                logger.error(
                    "DeepSeek API error %d (%d messages): %s",
                    exc.status_code,
                    len(messages),
                    message,
                )
                raise UpstreamCompletionError(
                    message, status_code=exc.status_code, payload=exc.body
                ) from exc
            except APIError as exc:
                logger.error("DeepSeek request failed (%d messages): %s", len(messages), exc)
                raise UpstreamCompletionError(f"DeepSeek request failed: {exc}") from exc

        return self._relay(stream)

    async def _relay(self, stream: AsyncStream[ChatCompletionChunk]) -> AsyncIterator[str]:
        chunks = 0
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                text = chunk.choices[0].delta.content
                if text:
                    chunks += 1
                    yield text
        except Exception as exc:
            # Headers are already sent; re-raising aborts the response.
            logger.error("DeepSeek stream broke after %d chunks: %s", chunks, exc)
            raise UpstreamCompletionError(f"DeepSeek stream interrupted: {exc}") from exc
        finally:
            await stream.close()
        logger.info("DeepSeek stream completed: %d chunks relayed", chunks)

    async def aclose(self) -> None:
        await self._client.close()


def _status_error_message(exc: APIStatusError) -> str:
    """Prefer the provider-reported message over the SDK's formatted one."""
    body = exc.body
    if isinstance(body, dict):
        if isinstance(body.get("message"), str) and body["message"]:
            return body["message"]
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return exc.message or UpstreamCompletionError.default_message
