"""Main window rendering editor state snapshots."""

from __future__ import annotations

import logging
from pathlib import Path

from PyQt6.QtCore import QSize, Qt
from PyQt6.QtGui import QIcon, QImage, QKeySequence, QPixmap, QShortcut
from PyQt6.QtWidgets import (
    QApplication,
    QCheckBox,
    QFileDialog,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListView,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSplitter,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from core.intents import (
    AddIgnoredTag,
    AddTag,
    ApplyTagScriptSlot,
    DeleteIgnoredTag,
    DeleteTag,
    Intent,
    Next,
    Prev,
    Search,
    SetMode,
    SwitchToImage,
    ToggleTagScripts,
    UpdateSearchInput,
    UpdateTagInput,
    UpdateTagScript,
)
from core.state import (
    TAG_SCRIPT_SLOTS,
    AppState,
    AutoTaggerState,
    Mode,
    TaggedImage,
    TokenizerState,
    current_image,
    visible_auto_tags,
    visible_tags,
)
from core.tagset import display_tag
from ui.viewmodels import EditorViewModel

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = QSize(160, 160)
# keyboard row order: 1..9 then 0
SLOT_ORDER = tuple(range(1, TAG_SCRIPT_SLOTS)) + (0,)


def _pixmap_from_bytes(data: bytes | None) -> QPixmap | None:
    if not data:
        return None
    image = QImage.fromData(data)
    if image.isNull():
        return None
    return QPixmap.fromImage(image)


def _set_items(widget: QListWidget, labels: tuple[str, ...], tags: tuple[str, ...]) -> None:
    """Replace list contents, keeping the raw tag in ``UserRole``."""

    if tuple(widget.item(i).data(Qt.ItemDataRole.UserRole) for i in range(widget.count())) == tags:
        return
    widget.clear()
    for label, tag in zip(labels, tags):
        item = QListWidgetItem(label)
        item.setData(Qt.ItemDataRole.UserRole, tag)
        widget.addItem(item)


class MainWindow(QMainWindow):
    """Gallery and single-image editor over one :class:`EditorViewModel`."""

    def __init__(self, view_model: EditorViewModel, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._view_model = view_model
        self._rendered: AppState | None = None
        self._previous_editor_state: AppState | None = None
        self._gallery_files: tuple[TaggedImage, ...] | None = None
        self.setWindowTitle("tagcurator")

        self._import_button = QPushButton("Import…", self)
        self._import_button.clicked.connect(self._choose_import)
        self._search_edit = QLineEdit(self)
        self._search_edit.setPlaceholderText("Search tags (e.g. cat* -dog)")
        self._search_edit.textEdited.connect(lambda text: self._dispatch(UpdateSearchInput(text)))
        self._search_edit.returnPressed.connect(self._run_search)
        self._mode_button = QPushButton(self)
        self._mode_button.clicked.connect(self._toggle_mode)
        self._scripts_check = QCheckBox("Tag scripts", self)
        self._scripts_check.clicked.connect(lambda _checked: self._dispatch(ToggleTagScripts()))
        self._export_button = QPushButton("Export…", self)
        self._export_button.clicked.connect(self._choose_export)

        toolbar = QHBoxLayout()
        toolbar.addWidget(self._import_button)
        toolbar.addWidget(self._search_edit, 1)
        toolbar.addWidget(self._mode_button)
        toolbar.addWidget(self._scripts_check)
        toolbar.addWidget(self._export_button)

        self._stack = QStackedWidget(self)
        self._gallery = self._build_gallery()
        self._editor = self._build_editor()
        self._stack.addWidget(self._gallery)
        self._stack.addWidget(self._editor)

        central = QWidget(self)
        layout = QVBoxLayout(central)
        layout.addLayout(toolbar)
        layout.addWidget(self._stack, 1)
        self.setCentralWidget(central)

        self._install_shortcuts()
        self._view_model.state_changed.connect(self.apply_state)
        self.apply_state(self._view_model.state)

    # ------------------------------------------------------------------ layout
    def _build_gallery(self) -> QListWidget:
        gallery = QListWidget(self)
        gallery.setViewMode(QListView.ViewMode.IconMode)
        gallery.setIconSize(THUMBNAIL_SIZE)
        gallery.setResizeMode(QListView.ResizeMode.Adjust)
        gallery.setMovement(QListView.Movement.Static)
        gallery.setUniformItemSizes(True)
        gallery.itemActivated.connect(lambda item: self._dispatch(SwitchToImage(gallery.row(item))))
        return gallery

    def _build_editor(self) -> QWidget:
        editor = QSplitter(Qt.Orientation.Horizontal, self)

        preview = QWidget(editor)
        preview_layout = QVBoxLayout(preview)
        self._position_label = QLabel(preview)
        self._image_label = QLabel(preview)
        self._image_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._image_label.setMinimumSize(320, 320)
        preview_layout.addWidget(self._position_label)
        preview_layout.addWidget(self._image_label, 1)

        panel = QWidget(editor)
        panel_layout = QVBoxLayout(panel)

        self._tags_list = QListWidget(panel)
        self._tags_list.itemActivated.connect(self._delete_tag)
        self._tag_edit = QLineEdit(panel)
        self._tag_edit.setPlaceholderText("Add tag")
        self._tag_edit.textEdited.connect(lambda text: self._dispatch(UpdateTagInput(text)))
        self._tag_edit.returnPressed.connect(lambda: self._dispatch(AddTag(self._tag_edit.text())))
        self._token_label = QLabel(panel)
        panel_layout.addWidget(QLabel("Tags (activate to remove)", panel))
        panel_layout.addWidget(self._tags_list, 2)
        panel_layout.addWidget(self._tag_edit)
        panel_layout.addWidget(self._token_label)

        self._ignored_list = QListWidget(panel)
        self._ignored_list.itemActivated.connect(
            lambda item: self._dispatch(DeleteIgnoredTag(item.data(Qt.ItemDataRole.UserRole)))
        )
        self._ignored_edit = QLineEdit(panel)
        self._ignored_edit.setPlaceholderText("Ignore tag")
        self._ignored_edit.returnPressed.connect(self._add_ignored)
        panel_layout.addWidget(QLabel("Ignored tags", panel))
        panel_layout.addWidget(self._ignored_list, 1)
        panel_layout.addWidget(self._ignored_edit)

        self._scripts_widget = QWidget(panel)
        scripts_layout = QGridLayout(self._scripts_widget)
        scripts_layout.setContentsMargins(0, 0, 0, 0)
        self._script_edits: dict[int, QLineEdit] = {}
        for row, slot in enumerate(SLOT_ORDER):
            script_edit = QLineEdit(self._scripts_widget)
            script_edit.setPlaceholderText("tag, -removed_tag")
            script_edit.editingFinished.connect(
                lambda slot=slot, widget=script_edit: self._dispatch(UpdateTagScript(slot, widget.text()))
            )
            apply_button = QPushButton(str(slot), self._scripts_widget)
            apply_button.setFixedWidth(32)
            apply_button.clicked.connect(lambda _checked=False, slot=slot: self._apply_slot(slot))
            scripts_layout.addWidget(apply_button, row, 0)
            scripts_layout.addWidget(script_edit, row, 1)
            self._script_edits[slot] = script_edit
        panel_layout.addWidget(self._scripts_widget)

        self._auto_list = QListWidget(panel)
        self._auto_list.itemActivated.connect(
            lambda item: self._dispatch(AddTag(item.data(Qt.ItemDataRole.UserRole)))
        )
        self._predict_button = QPushButton(panel)
        self._predict_button.clicked.connect(self._predict)
        panel_layout.addWidget(QLabel("Auto tags (activate to accept)", panel))
        panel_layout.addWidget(self._auto_list, 1)
        panel_layout.addWidget(self._predict_button)

        editor.addWidget(preview)
        editor.addWidget(panel)
        editor.setStretchFactor(0, 3)
        editor.setStretchFactor(1, 2)
        return editor

    def _install_shortcuts(self) -> None:
        bindings = (
            (Qt.Key.Key_A, Prev),
            (Qt.Key.Key_Left, Prev),
            (Qt.Key.Key_D, Next),
            (Qt.Key.Key_Right, Next),
        )
        self._shortcuts: list[QShortcut] = []
        for key, intent_type in bindings:
            shortcut = QShortcut(QKeySequence(key), self)
            shortcut.activated.connect(lambda intent_type=intent_type: self._navigate(intent_type()))
            self._shortcuts.append(shortcut)
        for slot in range(TAG_SCRIPT_SLOTS):
            shortcut = QShortcut(QKeySequence(str(slot)), self)
            shortcut.activated.connect(lambda slot=slot: self._shortcut_slot(slot))
            self._shortcuts.append(shortcut)

    # ----------------------------------------------------------------- actions
    def _dispatch(self, intent: Intent) -> None:
        try:
            self._view_model.dispatch(intent)
        except (TypeError, ValueError):
            logger.exception("Rejected intent %r", intent)

    def _text_input_focused(self) -> bool:
        return isinstance(QApplication.focusWidget(), QLineEdit)

    def _navigate(self, intent: Intent) -> None:
        if self._text_input_focused() or self._view_model.state.mode is not Mode.IMAGE_EDITOR:
            return
        self._dispatch(intent)

    def _shortcut_slot(self, slot: int) -> None:
        if self._text_input_focused() or self._view_model.state.mode is not Mode.IMAGE_EDITOR:
            return
        self._apply_slot(slot)

    def _apply_slot(self, slot: int) -> None:
        self._dispatch(ApplyTagScriptSlot(slot))

    def _run_search(self) -> None:
        self._dispatch(Search(self._search_edit.text()))

    def _toggle_mode(self) -> None:
        state = self._view_model.state
        target = Mode.GALLERY if state.mode is Mode.IMAGE_EDITOR else Mode.IMAGE_EDITOR
        if target is Mode.IMAGE_EDITOR and current_image(state) is None:
            return
        self._dispatch(SetMode(target))

    def _delete_tag(self, item: QListWidgetItem) -> None:
        self._dispatch(DeleteTag(item.data(Qt.ItemDataRole.UserRole)))

    def _add_ignored(self) -> None:
        self._dispatch(AddIgnoredTag(self._ignored_edit.text()))
        self._ignored_edit.clear()

    def _predict(self) -> None:
        if self._view_model.predict() is None:
            logger.debug("Prediction request ignored in state %s", self._view_model.state.auto_tagger.state)

    def _choose_import(self) -> None:
        files, _ = QFileDialog.getOpenFileNames(
            self,
            "Import images and tag files",
            "",
            "Images and tags (*.png *.jpg *.jpeg *.gif *.webp *.txt);;All files (*)",
        )
        if files:
            count = self._view_model.import_paths(files)
            self.statusBar().showMessage(f"Imported {count} images", 5000)

    def _choose_export(self) -> None:
        directory = QFileDialog.getExistingDirectory(self, "Export tags.zip to")
        if not directory:
            return
        try:
            archive = self._view_model.export_to(Path(directory))
        except OSError as exc:
            logger.exception("Export to %s failed", directory)
            QMessageBox.warning(self, "Export failed", str(exc))
            return
        self.statusBar().showMessage(f"Wrote {archive}", 5000)

    # --------------------------------------------------------------- rendering
    def apply_state(self, state: AppState) -> None:
        """Bring every widget in line with ``state``."""

        previous = self._rendered
        self._rendered = state
        if previous is None or previous.search_query != state.search_query:
            if self._search_edit.text() != state.search_query:
                self._search_edit.setText(state.search_query)
        self._scripts_check.setChecked(state.tag_scripts_enabled)
        self._scripts_widget.setEnabled(state.tag_scripts_enabled)
        for slot, widget in self._script_edits.items():
            if not widget.hasFocus() and widget.text() != state.tag_scripts[slot]:
                widget.setText(state.tag_scripts[slot])

        editing = state.mode is Mode.IMAGE_EDITOR and current_image(state) is not None
        self._mode_button.setText("Gallery" if editing else "Editor")
        self._stack.setCurrentWidget(self._editor if editing else self._gallery)
        if editing:
            self._render_editor(state)
        else:
            self._render_gallery(state)

    def _render_gallery(self, state: AppState) -> None:
        if self._gallery_files == state.filtered_files:
            return
        self._gallery_files = state.filtered_files
        self._gallery.clear()
        for image in state.filtered_files:
            item = QListWidgetItem(image.name)
            pixmap = _pixmap_from_bytes(image.handle.thumbnail_bytes()) if image.handle is not None else None
            if pixmap is not None:
                item.setIcon(QIcon(pixmap))
            item.setToolTip(", ".join(display_tag(tag) for tag in sorted(image.tags)))
            self._gallery.addItem(item)
        if state.filtered_files:
            self._gallery.setCurrentRow(state.position)

    def _render_editor(self, state: AppState) -> None:
        image = current_image(state)
        if image is None:
            return
        self._position_label.setText(f"{image.name}  ({state.position + 1} / {len(state.filtered_files)})")
        previous = current_image(self._previous_editor_state) if self._previous_editor_state else None
        if previous is None or previous.image != image.image:
            self._show_preview(image)
        self._previous_editor_state = state

        tags = visible_tags(image, state.ignored_tags)
        _set_items(
            self._tags_list,
            tuple(f"{display_tag(tag)}  ({state.tag_counts[tag]})" for tag in tags),
            tags,
        )
        if self._tag_edit.text() != state.tag_input:
            self._tag_edit.setText(state.tag_input)
        _set_items(self._ignored_list, tuple(display_tag(tag) for tag in state.ignored_tags), state.ignored_tags)
        auto_tags = visible_auto_tags(image, state.ignored_tags)
        _set_items(self._auto_list, tuple(display_tag(tag) for tag in auto_tags), auto_tags)
        self._render_auto_tagger(state)
        self._render_token_count(state, tags)

    def _show_preview(self, image: TaggedImage) -> None:
        pixmap = None
        if image.handle is not None:
            try:
                pixmap = _pixmap_from_bytes(image.handle.image_bytes())
            except (OSError, RuntimeError) as exc:
                logger.warning("Preview failed for %s: %s", image.name, exc)
        if pixmap is None:
            self._image_label.setPixmap(QPixmap())
            self._image_label.setText(image.name)
            return
        self._image_label.setPixmap(
            pixmap.scaled(
                self._image_label.size(),
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            )
        )

    def _render_auto_tagger(self, state: AppState) -> None:
        status = state.auto_tagger
        if status.state is AutoTaggerState.LOADING:
            self._predict_button.setText(f"Loading model… {status.progress or 0}%")
            self._predict_button.setEnabled(False)
        elif status.state is AutoTaggerState.BUSY:
            self._predict_button.setText("Predicting…")
            self._predict_button.setEnabled(False)
        elif status.state is AutoTaggerState.FAILED:
            self._predict_button.setText("Auto tagger failed")
            self._predict_button.setToolTip(status.error or "")
            self._predict_button.setEnabled(False)
        else:
            self._predict_button.setText("Predict")
            self._predict_button.setEnabled(True)

    def _render_token_count(self, state: AppState, tags: tuple[str, ...]) -> None:
        tokenizer = state.tokenizer
        if tokenizer.state is TokenizerState.READY and tokenizer.counter is not None:
            count = tokenizer.counter.count(tags)
            self._token_label.setText(f"Tokens: {count} / {tokenizer.counter.limit}")
            self._token_label.setStyleSheet("color: #c0392b;" if count > tokenizer.counter.limit else "")
            self._token_label.setVisible(True)
        else:
            self._token_label.setVisible(False)


__all__ = ["MainWindow", "SLOT_ORDER"]
