"""Smoke tests for the main window in offscreen mode."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

pytest.importorskip("pytestqt", reason="pytest-qt required for widget smoke tests.")
pytest.importorskip("PyQt6.QtWidgets", reason="PyQt6 widgets required.", exc_type=ImportError)

from PIL import Image
from PyQt6.QtCore import Qt

from core.intents import AddIgnoredTag, Next, SwitchToImage
from core.state import Mode, initial_state
from ui.main_window import SLOT_ORDER, MainWindow
from ui.viewmodels import EditorViewModel


@pytest.fixture
def window(qtbot, tmp_path: Path) -> MainWindow:
    for name, colour in (("a.png", (255, 0, 0)), ("b.png", (0, 255, 0))):
        Image.new("RGB", (12, 12), colour).save(tmp_path / name)
    (tmp_path / "a.txt").write_text("sky, cloud", encoding="utf-8")
    view_model = EditorViewModel()
    view_model.import_paths([tmp_path])
    main_window = MainWindow(view_model)
    qtbot.addWidget(main_window)
    yield main_window
    view_model.shutdown()


def test_gallery_lists_imported_images(window: MainWindow) -> None:
    assert window._gallery.count() == 2
    assert window._gallery.item(0).text() == "a.png"
    assert window._stack.currentWidget() is window._gallery


def test_slots_follow_keyboard_row() -> None:
    assert SLOT_ORDER == (1, 2, 3, 4, 5, 6, 7, 8, 9, 0)


def test_editor_renders_and_adds_tags(window: MainWindow, qtbot) -> None:
    view_model = window._view_model
    view_model.dispatch(SwitchToImage(0))
    assert window._stack.currentWidget() is window._editor
    assert [window._tags_list.item(i).data(Qt.ItemDataRole.UserRole) for i in range(window._tags_list.count())] == [
        "cloud",
        "sky",
    ]

    qtbot.keyClicks(window._tag_edit, "blue sky")
    qtbot.keyClick(window._tag_edit, Qt.Key.Key_Return)

    assert view_model.state.all_files[0].tags == ("sky", "cloud", "blue_sky")
    assert window._tag_edit.text() == ""

    view_model.dispatch(AddIgnoredTag("cloud"))
    assert window._tags_list.count() == 2
    assert window._ignored_list.count() == 1


def test_navigation_ignored_outside_editor(window: MainWindow) -> None:
    view_model = window._view_model
    window._navigate(Next())
    assert view_model.state.position == 0

    view_model.dispatch(SwitchToImage(0))
    window._navigate(Next())
    assert view_model.state.position == 1
    assert view_model.state.mode is Mode.IMAGE_EDITOR


def test_editor_render_without_image_leaves_widgets(window: MainWindow) -> None:
    window._view_model.dispatch(SwitchToImage(1))
    label = window._position_label.text()

    window._render_editor(replace(initial_state(), mode=Mode.IMAGE_EDITOR))

    assert window._position_label.text() == label
    assert window._tags_list.count() == 0
