"""Model-aware token counting backed by tiktoken.

Chat and embedding models share two byte-pair encodings: ``o200k_base``
for the gpt-4o family and ``cl100k_base`` for everything older, including
the ``text-embedding-3-*`` models.  Deployment names that are not in the
table (common on Azure, e.g. ``prod-gpt-4o``) are resolved by substring.

Counting never raises.  If an encoding cannot be loaded (tiktoken fetches
its BPE files on first use and may be offline) the counter falls back to
``ceil(len(text) / 4)``, roughly four characters per English token.
"""

from __future__ import annotations

import math

import structlog
import tiktoken

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_ENCODING = "cl100k_base"

_MODEL_ENCODINGS: dict[str, str] = {
    "gpt-3.5-turbo": "cl100k_base",
    "gpt-4": "cl100k_base",
    "gpt-4-turbo": "cl100k_base",
    "gpt-4o": "o200k_base",
    "gpt-4o-mini": "o200k_base",
    "text-embedding-3-small": "cl100k_base",
    "text-embedding-3-large": "cl100k_base",
    "text-embedding-ada-002": "cl100k_base",
}

# Checked in order; "gpt-4o" must win over "gpt-4".
_SUBSTRING_ENCODINGS: tuple[tuple[str, str], ...] = (
    ("gpt-4o", "o200k_base"),
    ("gpt-4", "cl100k_base"),
    ("gpt-35", "cl100k_base"),
    ("gpt-3.5", "cl100k_base"),
    ("embedding", "cl100k_base"),
)

# Average characters per token, used by the chunker for its first cut.
_CHARS_PER_TOKEN: dict[str, float] = {
    "cl100k_base": 3.5,
    "o200k_base": 4.0,
}
_HEURISTIC_CHARS_PER_TOKEN = 4.0


def encoding_name_for(model: str) -> str:
    """Return the tiktoken encoding name used by *model*."""
    key = (model or "").strip().lower()
    if key in _MODEL_ENCODINGS:
        return _MODEL_ENCODINGS[key]
    for needle, encoding in _SUBSTRING_ENCODINGS:
        if needle in key:
            return encoding
    return _DEFAULT_ENCODING


class TokenCounter:
    """Counts tokens for a model, degrading to a character heuristic.

    Both encodings are loaded once at construction.  If one is unavailable
    ``cl100k_base`` stands in for it; if that is unavailable too, counts
    come from the heuristic.

    Parameters
    ----------
    default_model:
        Model used when a call does not name one.
    """

    def __init__(self, default_model: str = "text-embedding-3-large") -> None:
        self._default_model = default_model
        self._encodings: dict[str, tiktoken.Encoding | None] = {
            name: self._load_encoding(name) for name in sorted(set(_CHARS_PER_TOKEN))
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def count(self, text: str, model: str | None = None) -> int:
        """Return the number of tokens *text* encodes to (``>= 0``)."""
        if not text:
            return 0
        encoding = self._encoding_for(model)
        if encoding is not None:
            try:
                # Source files may legitimately contain "<|endoftext|>".
                return len(encoding.encode(text, disallowed_special=()))
            except Exception as exc:
                logger.debug("token_count_fallback", error=str(exc))
        return math.ceil(len(text) / 4)

    def sample(self, text: str, model: str | None = None, n: int = 10) -> list[str]:
        """Decode the first *n* tokens of *text* back into text fragments.

        For diagnostic display only.  Without an encoder the fragments are
        four-character slices, mirroring the counting heuristic.
        """
        if not text or n <= 0:
            return []
        encoding = self._encoding_for(model)
        if encoding is None:
            return [text[i : i + 4] for i in range(0, min(len(text), n * 4), 4)]
        tokens = encoding.encode(text, disallowed_special=())[:n]
        return [encoding.decode([token]) for token in tokens]

    def chars_per_token(self, model: str | None = None) -> float:
        """Return the average characters-per-token constant for *model*'s family."""
        if self._encoding_for(model) is None:
            return _HEURISTIC_CHARS_PER_TOKEN
        return _CHARS_PER_TOKEN.get(
            encoding_name_for(model or self._default_model), _HEURISTIC_CHARS_PER_TOKEN
        )

    @property
    def uses_heuristic(self) -> bool:
        """``True`` when no encoding could be loaded at all."""
        return all(enc is None for enc in self._encodings.values())

    # ------------------------------------------------------------------
    # Encoding lookup
    # ------------------------------------------------------------------

    def _encoding_for(self, model: str | None) -> tiktoken.Encoding | None:
        name = encoding_name_for(model or self._default_model)
        encoding = self._encodings.get(name)
        if encoding is None:
            encoding = self._encodings.get(_DEFAULT_ENCODING)
        return encoding

    @staticmethod
    def _load_encoding(name: str) -> tiktoken.Encoding | None:
        try:
            return tiktoken.get_encoding(name)
        except Exception as exc:
            logger.warning(
                "tiktoken_encoding_unavailable",
                encoding=name,
                error=str(exc),
                msg="Falling back to approximate token counting (ceil(len / 4)).",
            )
            return None
