"""
Richtext component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from contentdesk.domain.document import Document
from contentdesk.domain.selection import Selection

# --- Validation Error ---


@dataclass(frozen=True)
class RichTextValidationError:
    """Rich text validation error."""

    code: str
    message: str
    path: str | None = None


# --- Media ---


@dataclass(frozen=True)
class MediaItem:
    """An image chosen from the media library."""

    url: str
    alt_text: str = ""


# --- Input Models ---


@dataclass(frozen=True)
class ParseInput:
    """Input for parsing stored HTML into a document."""

    html: str


@dataclass(frozen=True)
class SerializeInput:
    """Input for rendering a document as HTML."""

    document: Document


@dataclass(frozen=True)
class ToggleMarkInput:
    """Input for toggling a mark over a selection."""

    document: Document
    selection: Selection
    mark: str


@dataclass(frozen=True)
class ToggleBlockInput:
    """Input for toggling the block type of the selected blocks."""

    document: Document
    selection: Selection
    block_type: str


@dataclass(frozen=True)
class InsertVoidInput:
    """Input for inserting a void block (e.g. an image)."""

    document: Document
    selection: Selection
    kind: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class InsertTextInput:
    """Input for replacing the selection with text."""

    document: Document
    selection: Selection
    text: str


@dataclass(frozen=True)
class ValidateInput:
    """Input for validating a document before it is stored."""

    document: Document


# --- Output Models ---


@dataclass(frozen=True)
class DocumentOutput:
    """
    Output carrying an edited or parsed document.

    Edit operations also return the selection carried over the edit, so
    a caller can feed it into the next operation.
    """

    document: Document | None
    selection: Selection | None = None
    errors: list[RichTextValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class HtmlOutput:
    """Output carrying serialized HTML."""

    html: str | None
    errors: list[RichTextValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ValidateOutput:
    """Output for validation result."""

    is_valid: bool
    errors: list[RichTextValidationError] = field(default_factory=list)
    success: bool = True
