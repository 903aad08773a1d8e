"""CLIP token counter for the tag editor."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from pathlib import Path
from typing import Any, Callable, Iterable

from core.intents import Intent, SetTokenizer
from core.state import TokenizerState, TokenizerStatus
from core.tagset import display_tag

logger = logging.getLogger(__name__)

TOKEN_LIMIT = 77


class TokenCounter:
    """Count prompt tokens for a tag list rendered as ``"a b, c"``."""

    def __init__(self, tokenizer: Any, *, limit: int = TOKEN_LIMIT) -> None:
        self._tokenizer = tokenizer
        self.limit = int(limit)

    def count(self, tags: Iterable[str]) -> int:
        text = ", ".join(display_tag(tag) for tag in tags)
        encoded = self._tokenizer(text)
        return len(encoded["input_ids"])


def load_token_counter(repo_id: str, *, limit: int = TOKEN_LIMIT, cache_dir: str | Path | None = None) -> TokenCounter:
    """Load the CLIP tokenizer from ``repo_id`` through ``transformers``."""

    from transformers import AutoTokenizer

    tokenizer = AutoTokenizer.from_pretrained(repo_id, cache_dir=str(cache_dir) if cache_dir is not None else None)
    logger.info("Loaded tokenizer %s", repo_id)
    return TokenCounter(tokenizer, limit=limit)


def start_tokenizer_load(
    dispatch: Callable[[Intent], Any],
    executor: Executor,
    repo_id: str,
    *,
    limit: int = TOKEN_LIMIT,
    loader: Callable[..., TokenCounter] = load_token_counter,
) -> Future:
    """Load the tokenizer in the background and report it via ``SetTokenizer``.

    A failure is logged once and leaves the counter disabled for the session.
    """

    def _task() -> None:
        try:
            counter = loader(repo_id, limit=limit)
        except Exception as exc:
            logger.exception("Tokenizer %s failed to load; token counter disabled", repo_id)
            dispatch(SetTokenizer(TokenizerStatus(state=TokenizerState.FAILED, error=str(exc))))
            return
        dispatch(SetTokenizer(TokenizerStatus(state=TokenizerState.READY, counter=counter)))

    return executor.submit(_task)


__all__ = ["TOKEN_LIMIT", "TokenCounter", "load_token_counter", "start_tokenizer_load"]
