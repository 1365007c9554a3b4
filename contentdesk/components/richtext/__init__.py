"""
Richtext component - Rich content documents: HTML transcoding and editing.

Parses stored HTML into a document tree, serializes it back, and performs
the structural edits behind the editor toolbar.
"""

from ._editing import (
    delete_range,
    find_matching,
    insert_text,
    insert_void,
    is_block_active,
    is_list,
    is_mark_active,
    toggle_block,
    toggle_mark,
    unwrap_matching,
    unwrap_with_split,
    wrap_children,
)
from ._impl import (
    DEFAULT_CONFIG,
    RichTextConfig,
    is_safe_url,
    validate_images,
    validate_size,
)
from ._markup import parse_html, serialize_document
from .component import (
    run,
    run_insert_text,
    run_insert_void,
    run_parse,
    run_serialize,
    run_toggle_block,
    run_toggle_mark,
    run_validate,
)
from .models import (
    DocumentOutput,
    HtmlOutput,
    InsertTextInput,
    InsertVoidInput,
    MediaItem,
    ParseInput,
    RichTextValidationError,
    SerializeInput,
    ToggleBlockInput,
    ToggleMarkInput,
    ValidateInput,
    ValidateOutput,
)
from .ports import MediaPickerPort, RulesPort
from .session import EditorSession, create_editor_session

__all__ = [
    # Entry points
    "run",
    "run_insert_text",
    "run_insert_void",
    "run_parse",
    "run_serialize",
    "run_toggle_block",
    "run_toggle_mark",
    "run_validate",
    # Input models
    "InsertTextInput",
    "InsertVoidInput",
    "ParseInput",
    "SerializeInput",
    "ToggleBlockInput",
    "ToggleMarkInput",
    "ValidateInput",
    # Output models
    "DocumentOutput",
    "HtmlOutput",
    "ValidateOutput",
    "RichTextValidationError",
    "MediaItem",
    # Ports
    "MediaPickerPort",
    "RulesPort",
    # Configuration
    "DEFAULT_CONFIG",
    "RichTextConfig",
    "is_safe_url",
    "validate_images",
    "validate_size",
    # Markup
    "parse_html",
    "serialize_document",
    # Edit operations
    "delete_range",
    "find_matching",
    "insert_text",
    "insert_void",
    "is_block_active",
    "is_list",
    "is_mark_active",
    "toggle_block",
    "toggle_mark",
    "unwrap_matching",
    "unwrap_with_split",
    "wrap_children",
    # Session
    "EditorSession",
    "create_editor_session",
]
