"""Prompt assembly and answer generation over retrieved code.

The system prompt is built by a pure function, :func:`build_prompt`, so it
can be tested without any I/O.  :class:`CompletionAssembler` sends it to the
language model together with the user's question, either in one piece or
as a stream that is forwarded chunk by chunk.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import AsyncIterator, Sequence

import structlog

from total_recall.interfaces.llm_provider import ILLMProvider
from total_recall.models.rag import RetrievedContext
from total_recall.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

DEFAULT_CONTEXT_CHAR_LIMIT = 2000
_ELLIPSIS = "..."

_ROLE = (
    "You are the user's personal code library assistant. You help them find "
    "and reuse code they have written before, and you write new code when "
    "nothing suitable exists."
)

_WITH_CONTEXT_INSTRUCTIONS = """\
Instructions:
1. Begin with: "I found your previous implementation that solves this."
2. Reference the exact file path of every implementation you use.
3. Show how to reuse or adapt that code for the question.
4. If a more modern approach exists, mention it as an alternative.
5. Confirm the implementation is still valid as of {month_year}."""

_NO_CONTEXT_INSTRUCTIONS = """\
No previous implementations found in the codebase.

Instructions:
1. Say briefly that no prior implementation was found.
2. Provide a complete new implementation that answers the question.
3. Use current best practices as of {month_year}."""

_RESPONSE_RULES = """\
Response Rules:
- Only reference file paths that appear above; never invent paths.
- Format all code in fenced code blocks with a language tag.
- Do not offer follow-up help or ask if the user wants more.
- End the response immediately after the answer."""


def build_prompt(
    contexts: Sequence[RetrievedContext],
    question: str,
    now: datetime | None = None,
    char_limit: int = DEFAULT_CONTEXT_CHAR_LIMIT,
) -> str:
    """Return the system prompt for *question* given retrieved *contexts*.

    Pure: the same arguments always produce the same string.  ``now``
    defaults to the current UTC time and only feeds the date lines.

    Each context's content longer than *char_limit* characters is cut to
    *char_limit* and followed by ``...``.  The question itself is
    sent as the user message and does not appear here.
    """
    now = now or datetime.now(timezone.utc)
    month_year = now.strftime("%B %Y")

    sections = [f"Current date: {now:%Y-%m-%d} (UTC)", _ROLE]

    if contexts:
        lines = ["User's Previous Implementations Found:"]
        for i, context in enumerate(contexts, start=1):
            lines.append("")
            lines.append(f"Implementation {i} (from {context.path}):")
            lines.append(_truncate(context.content, char_limit))
        sections.append("\n".join(lines))
        sections.append(_WITH_CONTEXT_INSTRUCTIONS.format(month_year=month_year))
    else:
        sections.append(_NO_CONTEXT_INSTRUCTIONS.format(month_year=month_year))

    sections.append(_RESPONSE_RULES)
    return "\n\n".join(sections)


def build_user_message(question: str) -> str:
    return f"Question: {question}"


def _truncate(content: str, limit: int) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + _ELLIPSIS


class CompletionAssembler:
    """Asks the language model to answer a question using retrieved code."""

    def __init__(
        self,
        llm_provider: ILLMProvider,
        char_limit: int = DEFAULT_CONTEXT_CHAR_LIMIT,
    ) -> None:
        self._llm = llm_provider
        self._char_limit = char_limit

    async def answer(self, contexts: Sequence[RetrievedContext], question: str) -> str:
        """Return the complete answer as one string."""
        system_prompt = build_prompt(contexts, question, char_limit=self._char_limit)
        answer = await self._llm.complete(system_prompt, build_user_message(question))
        logger.info("answer_complete", contexts=len(contexts), answer_length=len(answer))
        return answer

    async def answer_stream(
        self, contexts: Sequence[RetrievedContext], question: str
    ) -> AsyncIterator[str]:
        """Yield answer chunks in arrival order, without buffering.

        An ``LLMError`` raised part-way through propagates to the caller
        after the chunks already yielded.
        """
        system_prompt = build_prompt(contexts, question, char_limit=self._char_limit)
        logger.info("answer_stream_started", contexts=len(contexts))
        async for chunk in self._llm.stream(system_prompt, build_user_message(question)):
            yield chunk
