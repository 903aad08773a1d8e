"""Minimal PyQt6 application entry point for tagcurator."""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from utils.env import is_headless, resolve_log_level
from utils.paths import get_log_dir

HEADLESS = is_headless()

if HEADLESS:
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    os.environ.setdefault("QT_OPENGL", "software")

logger = logging.getLogger(__name__)


_QUIET_LOGGERS = ("httpx", "httpcore", "PIL", "urllib3")


def setup_logging(level_name: str | None = None) -> None:
    """Configure logging to stdout and a rotating application log file.

    ``level_name`` defaults to the ``TGC_LOG_LEVEL`` environment variable.
    """

    level = resolve_log_level(level_name or os.environ.get("TGC_LOG_LEVEL"))
    root_logger = logging.getLogger()

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        try:
            handler.close()
        except Exception:  # pragma: no cover - best effort cleanup
            pass

    root_logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(threadName)s %(message)s",
        "%Y-%m-%d %H:%M:%S",
    )

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    log_dir = get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_dir / "app.log",
        maxBytes=5 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


if HEADLESS:

    def run() -> None:
        """Headless environments cannot launch the GUI."""

        raise RuntimeError("tagcurator UI is unavailable in headless mode")


else:
    from PyQt6.QtWidgets import QApplication

    from ui.main_window import MainWindow
    from ui.viewmodels import MainViewModel

    def run() -> None:
        """Launch the tagcurator GUI application."""

        setup_logging()
        app = QApplication(sys.argv)
        app.setApplicationName("tagcurator")

        main_view_model = MainViewModel(app)
        editor_view_model = main_view_model.create_editor_view_model(app)
        app.aboutToQuit.connect(editor_view_model.shutdown)

        window = MainWindow(editor_view_model)
        window.resize(1280, 860)
        window.show()
        editor_view_model.start()
        sys.exit(app.exec())


if __name__ == "__main__":
    run()
