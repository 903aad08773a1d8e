"""Tests for auto-tag post-filtering."""

from __future__ import annotations

import numpy as np
import pytest

from tagger.autotagger import post_filter
from tagger.base import TagCategory, TagMeta


def test_keeps_confident_general_tags_only() -> None:
    vocabulary = [
        TagMeta(name="sky", category="general"),  # type: ignore[arg-type]
        TagMeta(name="rating:safe", category="rating"),  # type: ignore[arg-type]
        TagMeta(name="leaf", category="general"),  # type: ignore[arg-type]
    ]

    assert post_filter(vocabulary, [0.9, 0.99, 0.2]) == ("sky",)


def test_numeric_categories_and_sorted_output() -> None:
    vocabulary = [
        TagMeta(name="solo", category=TagCategory.GENERAL),
        TagMeta(name="general", category=TagCategory.RATING),
        TagMeta(name="hatsune_miku", category=TagCategory.CHARACTER),
        TagMeta(name="1girl", category=TagCategory.GENERAL),
    ]

    result = post_filter(vocabulary, np.array([[0.5, 0.9, 0.8, 0.4]], dtype=np.float32))

    assert result == ("1girl", "solo")


def test_threshold_is_inclusive_and_configurable() -> None:
    vocabulary = [TagMeta(name="sky", category=0), TagMeta(name="sea", category=0)]

    assert post_filter(vocabulary, [0.5, 0.25]) == ("sky",)
    assert post_filter(vocabulary, [0.5, 0.25], threshold=0.5) == ("sky",)
    assert post_filter(vocabulary, [0.5, 0.25], threshold=0.75) == ()


def test_length_mismatch_raises() -> None:
    with pytest.raises(ValueError):
        post_filter([TagMeta(name="sky", category=0)], [0.1, 0.2])


def test_blank_and_unknown_categories_are_dropped() -> None:
    vocabulary = [
        TagMeta(name="sky", category="general"),  # type: ignore[arg-type]
        TagMeta(name="x_species", category="species"),  # type: ignore[arg-type]
        TagMeta(name="blank", category=""),  # type: ignore[arg-type]
    ]

    assert post_filter(vocabulary, [0.9, 0.9, 0.9]) == ("sky",)
