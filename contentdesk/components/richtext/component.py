"""
Richtext component - Rich content documents: HTML transcoding and editing.

Provides parsing of stored HTML into a document tree, canonical
serialization, and the structural edit operations behind the editor
toolbar.

Invariants:
- Parsed documents are normalized and satisfy the nesting rules
- parse(serialize(d)) == d for every parsed document
- Images never carry forbidden URL protocols
- Edit operations never fail on a selection; bad names become errors
"""

from __future__ import annotations

from contentdesk.domain.selection import Selection, point_at, remap_selection

from . import _editing as editing
from ._impl import (
    DEFAULT_CONFIG,
    RichTextConfig,
    is_safe_url,
    validate_images,
    validate_size,
)
from ._markup import parse_html, serialize_document
from .models import (
    DocumentOutput,
    HtmlOutput,
    InsertTextInput,
    InsertVoidInput,
    ParseInput,
    RichTextValidationError,
    SerializeInput,
    ToggleBlockInput,
    ToggleMarkInput,
    ValidateInput,
    ValidateOutput,
)
from .ports import RulesPort


def _build_config(rules: RulesPort | None) -> RichTextConfig:
    """Build rich text config from rules port."""
    if rules is None:
        return DEFAULT_CONFIG

    return RichTextConfig(
        forbid_protocols=rules.get_forbidden_protocols(),
        drop_tags=rules.get_drop_tags(),
        tab_text=rules.get_tab_text(),
        max_html_bytes=rules.get_max_html_bytes(),
    )


def _failed(code: str, error: Exception, path: str | None = None) -> DocumentOutput:
    return DocumentOutput(
        document=None,
        errors=[RichTextValidationError(code=code, message=str(error), path=path)],
        success=False,
    )


# --- Component Entry Points ---


def run_parse(
    inp: ParseInput,
    *,
    rules: RulesPort | None = None,
) -> DocumentOutput:
    """
    Parse stored HTML into a document.

    Parsing never fails; unsafe images are dropped and reported.

    Args:
        inp: Input containing the HTML to parse.
        rules: Optional rules port for configuration.

    Returns:
        DocumentOutput with the parsed document.
    """
    config = _build_config(rules)
    errors = validate_size(inp.html, config)
    document = parse_html(inp.html, config)

    return DocumentOutput(
        document=document,
        errors=errors,
        success=True,
    )


def run_serialize(
    inp: SerializeInput,
    *,
    rules: RulesPort | None = None,
) -> HtmlOutput:
    """
    Serialize a document to canonical HTML.

    Args:
        inp: Input containing the document to serialize.
        rules: Optional rules port for configuration.

    Returns:
        HtmlOutput with the HTML, or no HTML if the document is invalid
        or too large to store.
    """
    config = _build_config(rules)
    errors = validate_images(inp.document, config)
    if errors:
        return HtmlOutput(html=None, errors=errors, success=False)

    html_text = serialize_document(inp.document)
    errors = validate_size(html_text, config)
    if errors:
        return HtmlOutput(html=None, errors=errors, success=False)

    return HtmlOutput(html=html_text, errors=[], success=True)


def run_toggle_mark(
    inp: ToggleMarkInput,
    *,
    rules: RulesPort | None = None,
) -> DocumentOutput:
    """Toggle a mark over the selection."""
    try:
        document = editing.toggle_mark(inp.document, inp.selection, inp.mark)
    except ValueError as e:
        return _failed("invalid_mark", e, "mark")
    return DocumentOutput(
        document=document,
        selection=remap_selection(inp.document, document, inp.selection),
    )


def run_toggle_block(
    inp: ToggleBlockInput,
    *,
    rules: RulesPort | None = None,
) -> DocumentOutput:
    """Toggle the block type of the selected blocks."""
    try:
        document = editing.toggle_block(inp.document, inp.selection, inp.block_type)
    except ValueError as e:
        return _failed("invalid_block_type", e, "block_type")
    return DocumentOutput(
        document=document,
        selection=remap_selection(inp.document, document, inp.selection),
    )


def run_insert_void(
    inp: InsertVoidInput,
    *,
    rules: RulesPort | None = None,
) -> DocumentOutput:
    """
    Insert a void block (an image) at the selection.

    Args:
        inp: Input containing document, selection, kind and payload.
        rules: Optional rules port for configuration.

    Returns:
        DocumentOutput with the edited document, or errors for an unknown
        kind, a missing URL or a forbidden URL protocol.
    """
    config = _build_config(rules)
    try:
        editing.coerce_void_kind(inp.kind)
    except ValueError as e:
        return _failed("invalid_void_kind", e, "kind")

    url = inp.payload.get("url")
    if isinstance(url, str) and not is_safe_url(url, config):
        return _failed(
            "unsafe_url",
            ValueError(f"Unsafe URL protocol in image src: {url[:50]}"),
            "payload.url",
        )

    try:
        document, position = editing._insert_void(
            inp.document, inp.selection, inp.kind, inp.payload
        )
    except ValueError as e:
        return _failed("invalid_payload", e, "payload")
    return DocumentOutput(document=document, selection=Selection.at((position + 1, 0)))


def run_insert_text(
    inp: InsertTextInput,
    *,
    rules: RulesPort | None = None,
) -> DocumentOutput:
    """Replace the selection with text."""
    document, ordinal, offset = editing._insert_text(inp.document, inp.selection, inp.text)
    caret = Selection.collapsed(point_at(document, ordinal, offset))
    return DocumentOutput(document=document, selection=caret)


def run_validate(
    inp: ValidateInput,
    *,
    rules: RulesPort | None = None,
) -> ValidateOutput:
    """
    Validate a document before it is stored.

    Checks image URLs and the serialized size.

    Args:
        inp: Input containing the document to validate.
        rules: Optional rules port for configuration.

    Returns:
        ValidateOutput with validation result.
    """
    config = _build_config(rules)
    errors = validate_images(inp.document, config)
    errors.extend(validate_size(serialize_document(inp.document), config))

    return ValidateOutput(
        is_valid=len(errors) == 0,
        errors=errors,
        success=True,
    )


RichTextInput = (
    ParseInput
    | SerializeInput
    | ToggleMarkInput
    | ToggleBlockInput
    | InsertVoidInput
    | InsertTextInput
    | ValidateInput
)


def run(
    inp: RichTextInput,
    *,
    rules: RulesPort | None = None,
) -> DocumentOutput | HtmlOutput | ValidateOutput:
    """
    Main entry point for the richtext component.

    Dispatches to appropriate handler based on input type.

    Args:
        inp: Input object determining the operation.
        rules: Optional rules port for configuration.

    Returns:
        Appropriate output object based on input type.
    """
    if isinstance(inp, ParseInput):
        return run_parse(inp, rules=rules)
    elif isinstance(inp, SerializeInput):
        return run_serialize(inp, rules=rules)
    elif isinstance(inp, ToggleMarkInput):
        return run_toggle_mark(inp, rules=rules)
    elif isinstance(inp, ToggleBlockInput):
        return run_toggle_block(inp, rules=rules)
    elif isinstance(inp, InsertVoidInput):
        return run_insert_void(inp, rules=rules)
    elif isinstance(inp, InsertTextInput):
        return run_insert_text(inp, rules=rules)
    elif isinstance(inp, ValidateInput):
        return run_validate(inp, rules=rules)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
