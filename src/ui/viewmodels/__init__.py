"""ViewModel layer for Qt widgets."""

from __future__ import annotations

from .editor_view_model import EditorViewModel
from .main_view_model import MainViewModel

__all__ = [
    "EditorViewModel",
    "MainViewModel",
]
