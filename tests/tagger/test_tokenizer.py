"""Tests for the CLIP token counter."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from core.intents import SetTokenizer
from core.state import TokenizerState
from tagger.tokenizer import TokenCounter, start_tokenizer_load


class _WhitespaceTokenizer:
    def __init__(self) -> None:
        self.texts: list[str] = []

    def __call__(self, text: str) -> dict[str, list[int]]:
        self.texts.append(text)
        words = text.replace(",", " ,").split()
        # begin and end of text markers
        return {"input_ids": [0, *range(len(words)), 1]}


def test_count_renders_tags_with_spaces() -> None:
    tokenizer = _WhitespaceTokenizer()
    counter = TokenCounter(tokenizer, limit=5)

    count = counter.count(["blue_sky", "cloud"])

    assert tokenizer.texts == ["blue sky, cloud"]
    assert count == 6
    assert counter.limit == 5


def test_start_tokenizer_load_dispatches_ready() -> None:
    dispatched: list = []

    with ThreadPoolExecutor(max_workers=1) as executor:
        start_tokenizer_load(
            dispatched.append,
            executor,
            "repo/tokenizer",
            limit=77,
            loader=lambda repo_id, limit: TokenCounter(_WhitespaceTokenizer(), limit=limit),
        ).result()

    assert len(dispatched) == 1
    assert isinstance(dispatched[0], SetTokenizer)
    assert dispatched[0].status.state is TokenizerState.READY
    assert dispatched[0].status.counter.limit == 77


def test_start_tokenizer_load_failure_is_reported() -> None:
    dispatched: list = []

    def _fail(repo_id: str, limit: int) -> TokenCounter:
        raise OSError("offline")

    with ThreadPoolExecutor(max_workers=1) as executor:
        start_tokenizer_load(dispatched.append, executor, "repo/tokenizer", loader=_fail).result()

    assert dispatched[0].status.state is TokenizerState.FAILED
    assert dispatched[0].status.error == "offline"
