"""Token-bounded text chunking for the embedding step.

Files that fit the embedding model's input budget are never split.  Longer
files are cut into contiguous pieces by a cheap character estimate first,
and only pieces that turn out to be over budget are measured again and
re-cut:

1. ``count(text) <= budget`` returns ``[text]`` unchanged.
2. Otherwise slice every ``budget * chars_per_token`` characters.
3. Any slice still over budget is re-sliced using its own measured
   characters-per-token ratio minus a 10% margin, recursively.

Slicing is purely by character position, so ``"".join(chunks) == text``
always holds.  Chunks only exist long enough to be embedded; the stored
document keeps the full original text.
"""

from __future__ import annotations

import structlog

from total_recall.services.ingestion.token_counter import TokenCounter

logger = structlog.get_logger(logger_name=__name__)

_SAFETY_MARGIN = 0.9


class TextChunker:
    """Splits text into contiguous segments of at most ``max_tokens`` tokens.

    Parameters
    ----------
    token_counter:
        Counter used for every exact measurement.
    max_tokens:
        Per-chunk token budget (default 8000, just under the 8191-token
        input limit of the ``text-embedding-3`` models).
    model:
        Model whose encoding is used for counting.
    """

    def __init__(
        self,
        token_counter: TokenCounter,
        max_tokens: int = 8000,
        model: str = "text-embedding-3-large",
    ) -> None:
        if max_tokens < 1:
            raise ValueError("max_tokens must be at least 1")
        self._counter = token_counter
        self._max_tokens = max_tokens
        self._model = model

    @property
    def max_tokens(self) -> int:
        return self._max_tokens

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def count_tokens(self, text: str) -> int:
        return self._counter.count(text, self._model)

    def needs_chunking(self, text: str) -> bool:
        """Return ``True`` if *text* exceeds the per-chunk budget."""
        return self.count_tokens(text) > self._max_tokens

    def chunk(self, text: str) -> list[str]:
        """Split *text* into segments that each fit the token budget.

        Returns
        -------
        list[str]
            ``[]`` for empty input, ``[text]`` when it already fits,
            otherwise contiguous segments whose concatenation is *text*.
        """
        if not text:
            return []
        if not self.needs_chunking(text):
            return [text]

        max_chars = max(1, int(self._max_tokens * self._counter.chars_per_token(self._model)))
        chunks = self._split(text, max_chars)

        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            chars=len(text),
            max_tokens=self._max_tokens,
        )
        return chunks

    # ------------------------------------------------------------------
    # Recursive slicing
    # ------------------------------------------------------------------

    def _split(self, text: str, max_chars: int) -> list[str]:
        chunks: list[str] = []
        for start in range(0, len(text), max_chars):
            piece = text[start : start + max_chars]
            tokens = self._counter.count(piece, self._model)
            if tokens <= self._max_tokens:
                chunks.append(piece)
                continue

            if len(piece) == 1:
                # A lone character cannot be split further.
                logger.warning("chunk_over_budget", tokens=tokens, max_tokens=self._max_tokens)
                chunks.append(piece)
                continue

            ratio = len(piece) / tokens
            sub_chars = int(self._max_tokens * ratio * _SAFETY_MARGIN)
            sub_chars = max(1, min(sub_chars, len(piece) - 1))
            chunks.extend(self._split(piece, sub_chars))
        return chunks
