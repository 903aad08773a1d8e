"""Host for the single application state instance."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from core.intents import ImportFiles, Intent
from core.reducer import update
from core.state import AppState, TaggedImage, initial_state

logger = logging.getLogger(__name__)

Subscriber = Callable[[AppState], None]


def release_handles(images: tuple[TaggedImage, ...], keep: tuple[TaggedImage, ...] = ()) -> int:
    """Release display handles of ``images`` not shared with ``keep``."""

    kept = {id(image.handle) for image in keep if image.handle is not None}
    released = 0
    for image in images:
        handle = image.handle
        if handle is None or id(handle) in kept:
            continue
        try:
            handle.release()
        except Exception:
            logger.exception("Failed to release display handle for %s", image.name)
            continue
        released += 1
    return released


class Store:
    """Apply intents one at a time and publish each resulting snapshot.

    Background tasks may call :meth:`dispatch` from any thread; intents are
    reduced serially in arrival order.
    """

    def __init__(
        self,
        state: AppState | None = None,
        *,
        reducer: Callable[[Intent, AppState], AppState] = update,
    ) -> None:
        self._state = state if state is not None else initial_state()
        self._reducer = reducer
        self._lock = threading.RLock()
        self._subscribers: list[Subscriber] = []

    @property
    def state(self) -> AppState:
        return self._state

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` and return a function removing it again."""

        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                try:
                    self._subscribers.remove(callback)
                except ValueError:
                    pass

        return _unsubscribe

    def dispatch(self, intent: Intent) -> AppState:
        with self._lock:
            previous = self._state
            state = self._reducer(intent, previous)
            self._state = state
            if isinstance(intent, ImportFiles):
                released = release_handles(previous.all_files, keep=state.all_files)
                logger.debug("Released %d display handles from the previous import", released)
            if state is not previous:
                for callback in list(self._subscribers):
                    try:
                        callback(state)
                    except Exception:
                        logger.exception("State subscriber raised for %s", type(intent).__name__)
            return state


__all__ = ["Store", "Subscriber", "release_handles"]
