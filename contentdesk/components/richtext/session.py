"""
Editor session - the command surface used by the host editor UI.

An EditorSession owns one document and the current selection. Every
mutating command replaces the document, moves the selection to where the
user expects it, re-serializes the document and hands the HTML to the
on_change callback (the host's save hook).

Key behaviors:
- Toggles keep the selection on the same text
- A mark toggled at a collapsed caret becomes a pending mark for the
  next typed text instead of changing the tree
- Inserting an image leaves the caret in the empty paragraph after it
- The media library is reached through an explicit MediaPickerPort
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from contentdesk.domain.document import (
    BlockType,
    Document,
    Mark,
    VoidKind,
    iter_container_paths,
    normalize,
)
from contentdesk.domain.selection import (
    Point,
    Selection,
    clamp_selection,
    container_ranges,
    point_at,
    remap_selection,
)

from . import _editing as editing
from ._impl import DEFAULT_CONFIG, RichTextConfig, is_safe_url
from ._markup import parse_html, serialize_document
from .ports import MediaPickerPort

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str], None]


class EditorSession:
    """
    Editing session over a single document.

    Not thread-safe; one session belongs to one editor.
    """

    def __init__(
        self,
        document: Document | None = None,
        *,
        config: RichTextConfig | None = None,
        media_picker: MediaPickerPort | None = None,
        on_change: ChangeCallback | None = None,
    ) -> None:
        self._config = config or DEFAULT_CONFIG
        self._document = normalize(document) if document is not None else Document.empty()
        self._selection = clamp_selection(self._document, Selection.at((0, 0)))
        self._pending_marks: frozenset[Mark] | None = None
        self._media_picker = media_picker
        self._on_change = on_change

    @classmethod
    def from_html(
        cls,
        html_text: str | None,
        *,
        config: RichTextConfig | None = None,
        media_picker: MediaPickerPort | None = None,
        on_change: ChangeCallback | None = None,
    ) -> EditorSession:
        """Start a session on stored HTML."""
        config = config or DEFAULT_CONFIG
        return cls(
            parse_html(html_text, config),
            config=config,
            media_picker=media_picker,
            on_change=on_change,
        )

    # --- State ---

    @property
    def config(self) -> RichTextConfig:
        return self._config

    @property
    def document(self) -> Document:
        return self._document

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def pending_marks(self) -> frozenset[Mark] | None:
        """Marks for the next typed text, or None to inherit from the caret."""
        return self._pending_marks

    @property
    def html(self) -> str:
        return serialize_document(self._document)

    def _is_caret(self) -> bool:
        ranges = container_ranges(self._document, self._selection)
        return len(ranges) == 1 and ranges[0].start == ranges[0].end

    # --- Selection ---

    def select(self, anchor: Point, focus: Point | None = None) -> Selection:
        """Set the selection (clamped); a single point collapses it."""
        selection = Selection(anchor, focus if focus is not None else anchor)
        self._selection = clamp_selection(self._document, selection)
        self._pending_marks = None
        return self._selection

    def select_all(self) -> Selection:
        """Select from the start of the first block to the end of the last."""
        containers = list(iter_container_paths(self._document))
        end = point_at(self._document, len(containers) - 1, len(containers[-1][1].text))
        start = point_at(self._document, 0, 0)
        return self.select(start, end)

    # --- Queries ---

    def is_mark_active(self, mark: Mark | str) -> bool:
        mark = editing.coerce_mark(mark)
        if self._pending_marks is not None and self._is_caret():
            return mark in self._pending_marks
        return editing.is_mark_active(self._document, self._selection, mark)

    def is_block_active(self, block_type: BlockType | str) -> bool:
        return editing.is_block_active(self._document, self._selection, block_type)

    # --- Commands ---

    def toggle_mark(self, mark: Mark | str) -> None:
        """Toggle a mark over the selection, or for the next typed text."""
        mark = editing.coerce_mark(mark)
        if self._is_caret():
            current = self._pending_marks
            if current is None:
                current = frozenset(
                    m for m in Mark if editing.is_mark_active(self._document, self._selection, m)
                )
            self._pending_marks = current - {mark} if mark in current else current | {mark}
            logger.debug("Pending marks now %s", sorted(m.value for m in self._pending_marks))
            return

        document = editing.toggle_mark(self._document, self._selection, mark)
        logger.debug("Toggled mark %s", mark.value)
        self._commit(document, self._remap(document))

    def toggle_block(self, block_type: BlockType | str) -> None:
        """Toggle the block type of every touched block."""
        document = editing.toggle_block(self._document, self._selection, block_type)
        logger.debug("Toggled block %s", block_type)
        self._commit(document, self._remap(document))

    def insert_text(self, text: str) -> None:
        """Replace the selection with text (typing)."""
        marks = self._pending_marks
        document, ordinal, offset = editing._insert_text(
            self._document, self._selection, text, marks
        )
        self._pending_marks = None
        self._commit(document, Selection.collapsed(point_at(document, ordinal, offset)))

    def insert_tab(self) -> None:
        """Insert the configured tab text at the caret."""
        self.insert_text(self._config.tab_text)

    def delete(self) -> None:
        """Delete the selected content."""
        document, ordinal, offset = editing._delete(self._document, self._selection)
        self._commit(document, Selection.collapsed(point_at(document, ordinal, offset)))

    def insert_void(self, kind: VoidKind | str, payload: Mapping[str, Any]) -> None:
        """
        Insert a void block at the selection.

        Raises:
            ValueError: If the kind is unknown or an image URL is unsafe.
        """
        url = payload.get("url", "")
        if isinstance(url, str) and not is_safe_url(url, self._config):
            raise ValueError(f"Unsafe URL protocol in image src: {url[:50]}")
        document, position = editing._insert_void(self._document, self._selection, kind, payload)
        logger.debug("Inserted %s at block %d", kind, position)
        # The caret goes to the empty paragraph following the void block
        self._commit(document, Selection.at((position + 1, 0)))

    def insert_image(self, url: str, alt: str = "") -> None:
        self.insert_void(VoidKind.IMAGE, {"url": url, "alt": alt})

    def open_media_picker(self, picker: MediaPickerPort | None = None) -> bool:
        """
        Ask the media library for an image and insert it.

        Returns False when the user cancels.

        Raises:
            ValueError: If no picker was given here or at construction.
        """
        picker = picker or self._media_picker
        if picker is None:
            raise ValueError("No media picker available")
        item = picker.pick_image()
        if item is None:
            logger.debug("Media picker cancelled")
            return False
        self.insert_image(item.url, item.alt_text)
        return True

    # --- Internals ---

    def _remap(self, document: Document) -> Selection:
        return remap_selection(self._document, document, self._selection)

    def _commit(self, document: Document, selection: Selection) -> None:
        self._document = document
        self._selection = clamp_selection(document, selection)
        if self._on_change is not None:
            self._on_change(self.html)


# --- Factory ---


def create_editor_session(
    html_text: str | None = "",
    *,
    config: RichTextConfig | None = None,
    media_picker: MediaPickerPort | None = None,
    on_change: ChangeCallback | None = None,
) -> EditorSession:
    """Create an EditorSession on stored HTML (empty for a new editor)."""
    return EditorSession.from_html(
        html_text, config=config, media_picker=media_picker, on_change=on_change
    )
