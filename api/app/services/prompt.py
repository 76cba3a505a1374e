"""
Prompt composition for the chat pipeline.

Builds the exact message list sent to the model: one canonical system
instruction, the caller's non-system turns, and (when sources are given)
a retrieval system message placed directly before the final user turn.
"""

from collections.abc import Sequence

from app.models.chat import ChatMessage, SearchResult

DIRECT_PROMPT = (
    "You are a helpful assistant. "
    "Respond directly without explaining your reasoning."
)

SOURCED_PROMPT = """\
You are a helpful assistant with access to current web search results.

## Rules
1. Answer the user's question using the search results provided in the \
system message that precedes it.
2. Cite the URL of every source you rely on.
3. If the results do not contain the answer, say so and answer from \
general knowledge, making clear which parts are not sourced.
4. Respond directly without explaining your reasoning.
"""


def format_sources(sources: Sequence[SearchResult]) -> str:
    """Render search results as ``[Source: <url>]`` blocks separated by blank lines."""
    return "\n\n".join(f"[Source: {source.url}]\n{source.content}" for source in sources)


def compose(
    conversation: Sequence[ChatMessage],
    sources: Sequence[SearchResult] | None = None,
) -> list[dict[str, str]]:
    """
    Assemble the model message list.

    Args:
        conversation: Caller-supplied history, newest turn last. System
            messages in it are discarded.
        sources: Search results for the newest turn, or None for an
            unaugmented prompt. Ignored unless the newest turn is a user turn.

    Returns:
        Role/content dicts ready for the chat completions API.
    """
    turns = [msg for msg in conversation if msg.role != "system"]
    augment = sources is not None and bool(conversation) and conversation[-1].role == "user"

    instruction = SOURCED_PROMPT if augment else DIRECT_PROMPT
    messages = [{"role": "system", "content": instruction}]

    if not augment:
        messages.extend({"role": msg.role, "content": msg.content} for msg in turns)
        return messages

    *history, question = turns
    messages.extend({"role": msg.role, "content": msg.content} for msg in history)
    messages.append({"role": "system", "content": format_sources(sources)})
    messages.append({"role": question.role, "content": question.content})
    return messages
