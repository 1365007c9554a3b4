"""
Rich text configuration, URL safety and document validation.

Key behaviors:
- Blocks forbidden URL protocols (javascript:, data:, vbscript:) in images
- Enforces the serialized HTML size limit
- Validation reports problems as error records instead of raising
"""

from __future__ import annotations

from dataclasses import dataclass, field

from contentdesk.domain.document import Document, ImageBlock

from .models import RichTextValidationError

# --- Configuration ---


@dataclass(frozen=True)
class RichTextConfig:
    """Rich text configuration from rules."""

    # Forbidden protocols in image URLs
    forbid_protocols: frozenset[str] = field(
        default_factory=lambda: frozenset(
            [
                "javascript:",
                "data:",
                "vbscript:",
            ]
        )
    )

    # Elements dropped with their content when parsing
    drop_tags: frozenset[str] = field(
        default_factory=lambda: frozenset(
            [
                "script",
                "style",
                "template",
                "head",
                "noscript",
            ]
        )
    )

    # Text inserted by the Tab key
    tab_text: str = "  "

    # Limits
    max_html_bytes: int = 400_000


# Default configuration
DEFAULT_CONFIG = RichTextConfig()


# --- URL Safety ---


def is_safe_url(url: str, config: RichTextConfig = DEFAULT_CONFIG) -> bool:
    """
    Check if URL is safe (no forbidden protocols).

    Returns True if URL is safe, False if it uses a forbidden protocol.
    """
    if not url:
        return True

    # Browsers ignore embedded whitespace and control characters in schemes
    url_lower = "".join(ch for ch in url if ch > " ").lower()

    for protocol in config.forbid_protocols:
        if url_lower.startswith(protocol):
            return False

    return True


# --- Validation ---


def validate_images(
    document: Document,
    config: RichTextConfig = DEFAULT_CONFIG,
) -> list[RichTextValidationError]:
    """Report images whose URL uses a forbidden protocol."""
    errors: list[RichTextValidationError] = []
    for i, block in enumerate(document.children):
        if isinstance(block, ImageBlock) and not is_safe_url(block.url, config):
            errors.append(
                RichTextValidationError(
                    code="unsafe_url",
                    message=f"Unsafe URL protocol in image src: {block.url[:50]}",
                    path=f"document.children[{i}].url",
                )
            )
    return errors


def validate_size(
    html_text: str,
    config: RichTextConfig = DEFAULT_CONFIG,
) -> list[RichTextValidationError]:
    """Validate serialized document size."""
    html_bytes = len(html_text.encode("utf-8"))
    if html_bytes > config.max_html_bytes:
        return [
            RichTextValidationError(
                code="document_too_large",
                message=f"Document {html_bytes}B exceeds limit {config.max_html_bytes}B",
            )
        ]
    return []
