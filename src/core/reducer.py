"""Pure state transitions for the tag editor."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable

from core import intents as msg
from core.search_parser import filter_images, parse_query
from core.state import (
    TAG_SCRIPT_SLOTS,
    AppState,
    ImageRef,
    Mode,
    TaggedImage,
    current_image,
)
from core.tagset import normalize_tag_input, parse_script_tags, split_positive_negative

logger = logging.getLogger(__name__)


def _loop_index(index: int, length: int) -> int:
    return (index + length) % length


def _replace_image(files: tuple[TaggedImage, ...], ref: ImageRef, image: TaggedImage) -> tuple[TaggedImage, ...]:
    return tuple(image if item.image == ref else item for item in files)


def _with_image(state: AppState, updated: TaggedImage, **changes) -> AppState:
    """Swap ``updated`` into both file views so they never diverge."""

    return replace(
        state,
        all_files=_replace_image(state.all_files, updated.image, updated),
        filtered_files=_replace_image(state.filtered_files, updated.image, updated),
        **changes,
    )


def _add_tag(state: AppState, tag: str) -> AppState:
    """Append ``tag`` to the current image and keep the count index in sync.

    The tag is pushed first and the list deduplicated afterwards; the count is
    only incremented when the push did not produce a duplicate.
    """

    image = current_image(state)
    if image is None:
        return state
    pushed = (*image.tags, tag)
    unique = tuple(dict.fromkeys(pushed))
    if len(pushed) != len(unique):
        # duplicate push: the deduplicated list is the old one, counts untouched
        return state
    counts = state.tag_counts.copy()
    counts.increment(tag)
    return _with_image(state, replace(image, tags=pushed), tag_counts=counts)


def _delete_tag(state: AppState, tag: str) -> AppState:
    image = current_image(state)
    if image is None:
        return state
    remaining = tuple(item for item in image.tags if item != tag)
    if len(remaining) == len(image.tags):
        return state
    counts = state.tag_counts.copy()
    counts.decrement(tag)
    return _with_image(state, replace(image, tags=remaining), tag_counts=counts)


def _apply_script(state: AppState, raw: str) -> AppState:
    if not state.tag_scripts_enabled:
        logger.debug("Tag scripts disabled; ignoring script %r", raw)
        return state
    positive, negative = split_positive_negative(parse_script_tags(raw))
    for tag in positive:
        state = _add_tag(state, tag)
    for tag in negative:
        state = _delete_tag(state, tag)
    return state


def _check_slot(slot: int) -> None:
    if not 0 <= slot < TAG_SCRIPT_SLOTS:
        raise ValueError(f"Tag script slot out of range: {slot}")


def _import_files(intent: msg.ImportFiles, state: AppState) -> AppState:
    logger.info("Imported %d images with %d distinct tags", len(intent.images), len(intent.tag_counts))
    return AppState(
        all_files=tuple(intent.images),
        filtered_files=tuple(intent.images),
        tag_counts=intent.tag_counts.copy(),
        mode=Mode.GALLERY,
        tag_scripts_enabled=state.tag_scripts_enabled,
        tag_scripts=state.tag_scripts,
        auto_tagger=state.auto_tagger,
        tokenizer=state.tokenizer,
    )


def _next(intent: msg.Next, state: AppState) -> AppState:
    if not state.filtered_files:
        return state
    return replace(state, position=_loop_index(state.position + 1, len(state.filtered_files)))


def _prev(intent: msg.Prev, state: AppState) -> AppState:
    if not state.filtered_files:
        return state
    return replace(state, position=_loop_index(state.position - 1, len(state.filtered_files)))


def _add_tag_intent(intent: msg.AddTag, state: AppState) -> AppState:
    tag = normalize_tag_input(intent.raw)
    if tag is None:
        return state
    return replace(_add_tag(state, tag), tag_input="")


def _delete_tag_intent(intent: msg.DeleteTag, state: AppState) -> AppState:
    return _delete_tag(state, intent.tag)


def _apply_tag_script(intent: msg.ApplyTagScript, state: AppState) -> AppState:
    return _apply_script(state, intent.raw)


def _apply_tag_script_slot(intent: msg.ApplyTagScriptSlot, state: AppState) -> AppState:
    _check_slot(intent.slot)
    return _apply_script(state, state.tag_scripts[intent.slot])


def _update_tag_script(intent: msg.UpdateTagScript, state: AppState) -> AppState:
    _check_slot(intent.slot)
    scripts = list(state.tag_scripts)
    scripts[intent.slot] = intent.text
    return replace(state, tag_scripts=tuple(scripts))


def _add_ignored_tag(intent: msg.AddIgnoredTag, state: AppState) -> AppState:
    tag = normalize_tag_input(intent.raw)
    if tag is None or tag in state.ignored_tags:
        return state
    return replace(state, ignored_tags=(*state.ignored_tags, tag))


def _delete_ignored_tag(intent: msg.DeleteIgnoredTag, state: AppState) -> AppState:
    if intent.tag not in state.ignored_tags:
        return state
    return replace(state, ignored_tags=tuple(tag for tag in state.ignored_tags if tag != intent.tag))


def _search(intent: msg.Search, state: AppState) -> AppState:
    filtered = filter_images(state.all_files, parse_query(intent.query))
    logger.debug("Search %r matched %d of %d images", intent.query, len(filtered), len(state.all_files))
    return replace(state, filtered_files=filtered, position=0, search_query=intent.query)


def _set_mode(intent: msg.SetMode, state: AppState) -> AppState:
    return replace(state, mode=intent.mode)


def _switch_to_image(intent: msg.SwitchToImage, state: AppState) -> AppState:
    if not 0 <= intent.position < len(state.filtered_files):
        logger.debug("Ignoring switch to out-of-range position %d", intent.position)
        return state
    return replace(state, position=intent.position, mode=Mode.IMAGE_EDITOR)


def _toggle_tag_scripts(intent: msg.ToggleTagScripts, state: AppState) -> AppState:
    return replace(state, tag_scripts_enabled=not state.tag_scripts_enabled)


def _update_tag_input(intent: msg.UpdateTagInput, state: AppState) -> AppState:
    return replace(state, tag_input=intent.text)


def _update_search_input(intent: msg.UpdateSearchInput, state: AppState) -> AppState:
    return replace(state, search_query=intent.text)


def _set_auto_tagger(intent: msg.SetAutoTagger, state: AppState) -> AppState:
    return replace(state, auto_tagger=intent.status)


def _set_auto_tags(intent: msg.SetAutoTags, state: AppState) -> AppState:
    target = next((image for image in state.all_files if image.image == intent.image), None)
    if target is None:
        # the image was dropped by a re-import while the prediction ran
        logger.info("Discarding auto tags for %s; image no longer loaded", intent.image.name)
        return state
    return _with_image(state, replace(target, auto_tags=tuple(intent.auto_tags)))


def _set_tokenizer(intent: msg.SetTokenizer, state: AppState) -> AppState:
    return replace(state, tokenizer=intent.status)


_HANDLERS: dict[type, Callable[..., AppState]] = {
    msg.ImportFiles: _import_files,
    msg.Next: _next,
    msg.Prev: _prev,
    msg.AddTag: _add_tag_intent,
    msg.DeleteTag: _delete_tag_intent,
    msg.ApplyTagScript: _apply_tag_script,
    msg.ApplyTagScriptSlot: _apply_tag_script_slot,
    msg.UpdateTagScript: _update_tag_script,
    msg.AddIgnoredTag: _add_ignored_tag,
    msg.DeleteIgnoredTag: _delete_ignored_tag,
    msg.Search: _search,
    msg.SetMode: _set_mode,
    msg.SwitchToImage: _switch_to_image,
    msg.ToggleTagScripts: _toggle_tag_scripts,
    msg.UpdateTagInput: _update_tag_input,
    msg.UpdateSearchInput: _update_search_input,
    msg.SetAutoTagger: _set_auto_tagger,
    msg.SetAutoTags: _set_auto_tags,
    msg.SetTokenizer: _set_tokenizer,
}


def update(intent: msg.Intent, state: AppState) -> AppState:
    """Return the state following ``intent``; ``state`` itself is never mutated."""

    handler = _HANDLERS.get(type(intent))
    if handler is None:
        raise TypeError(f"Unsupported intent: {intent!r}")
    return handler(intent, state)


__all__ = ["update"]
