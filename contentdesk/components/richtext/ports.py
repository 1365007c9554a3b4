"""
Richtext component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from .models import MediaItem


class RulesPort(Protocol):
    """Port for accessing rich text rules configuration."""

    def get_forbidden_protocols(self) -> frozenset[str]:
        """Get forbidden URL protocols."""
        ...

    def get_drop_tags(self) -> frozenset[str]:
        """Get elements dropped with their content when parsing."""
        ...

    def get_tab_text(self) -> str:
        """Get text inserted by the Tab key."""
        ...

    def get_max_html_bytes(self) -> int:
        """Get maximum serialized document size."""
        ...


class MediaPickerPort(Protocol):
    """Port for the media library picker."""

    def pick_image(self) -> MediaItem | None:
        """Let the user choose an image; None when cancelled."""
        ...
