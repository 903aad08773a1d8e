"""Auto-tagging pipeline for tagcurator."""

from .autotagger import AutoTagger, post_filter
from .base import ModelRuntime, TagCategory, TagMeta

__all__ = ["AutoTagger", "ModelRuntime", "TagCategory", "TagMeta", "post_filter"]
