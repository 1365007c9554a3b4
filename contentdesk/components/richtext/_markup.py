"""
HTML transcoding for the rich content document tree.

parse_html() turns stored HTML into a document; serialize_document() turns
a document back into HTML. For any parsed document d,
parse_html(serialize_document(d)) == d.

Parsing never fails: unknown or mis-nested markup is coerced into a valid
tree. Nested blocks inside a text block are lifted out rather than
flattened into one run of text:
- runs of text become blocks of the enclosing element's type
- nested text blocks take the enclosing element's type
- a list nested in a list item contributes its items as siblings
- other lists and images are kept as separate blocks
"""

from __future__ import annotations

import html
import logging
from dataclasses import replace
from typing import assert_never

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PageElement, PreformattedString, Tag

from contentdesk.domain.document import (
    MARK_ORDER,
    Block,
    BlockType,
    Document,
    ImageBlock,
    ListBlock,
    Mark,
    TextBlock,
    TextLeaf,
    normalize,
)

from ._impl import DEFAULT_CONFIG, RichTextConfig, is_safe_url

logger = logging.getLogger(__name__)

Converted = Block | TextLeaf

# --- Tag mappings ---

TEXT_BLOCK_TAGS: dict[str, BlockType] = {
    "p": BlockType.PARAGRAPH,
    "h1": BlockType.HEADING_1,
    "h2": BlockType.HEADING_2,
    "h3": BlockType.HEADING_3,
    "blockquote": BlockType.BLOCK_QUOTE,
    "li": BlockType.LIST_ITEM,
}

LIST_TAGS: dict[str, BlockType] = {
    "ul": BlockType.BULLETED_LIST,
    "ol": BlockType.NUMBERED_LIST,
}

MARK_TAGS: dict[str, Mark] = {
    "strong": Mark.BOLD,
    "b": Mark.BOLD,
    "em": Mark.ITALIC,
    "i": Mark.ITALIC,
    "u": Mark.UNDERLINE,
    "s": Mark.STRIKETHROUGH,
    "del": Mark.STRIKETHROUGH,
    "code": Mark.CODE,
}

# Children are spliced into the parent
TRANSPARENT_TAGS: frozenset[str] = frozenset(["div", "span", "html", "body"])

# Inline elements with no mark of their own
INLINE_TAGS: frozenset[str] = frozenset(
    [
        "a",
        "abbr",
        "bdi",
        "bdo",
        "big",
        "cite",
        "data",
        "dfn",
        "font",
        "ins",
        "kbd",
        "label",
        "mark",
        "q",
        "samp",
        "small",
        "sub",
        "sup",
        "time",
        "tt",
        "var",
        "wbr",
    ]
)

# Whitespace-only text inside these is content and is kept verbatim
PRESERVE_WHITESPACE_TAGS: frozenset[str] = frozenset(
    [*TEXT_BLOCK_TAGS, *MARK_TAGS, *INLINE_TAGS, "pre", "textarea"]
)

BLOCK_TO_TAG: dict[BlockType, str] = {
    BlockType.PARAGRAPH: "p",
    BlockType.HEADING_1: "h1",
    BlockType.HEADING_2: "h2",
    BlockType.HEADING_3: "h3",
    BlockType.BLOCK_QUOTE: "blockquote",
    BlockType.LIST_ITEM: "li",
    BlockType.BULLETED_LIST: "ul",
    BlockType.NUMBERED_LIST: "ol",
}

MARK_TO_TAG: dict[Mark, str] = {
    Mark.BOLD: "strong",
    Mark.ITALIC: "em",
    Mark.UNDERLINE: "u",
    Mark.STRIKETHROUGH: "s",
    Mark.CODE: "code",
}


# --- Parsing ---


def _is_blank(leaf: TextLeaf) -> bool:
    return not leaf.text.strip()


def _trim(run: list[TextLeaf]) -> tuple[TextLeaf, ...]:
    """Drop whitespace-only leaves at either end of a run of loose text."""
    start, end = 0, len(run)
    while start < end and _is_blank(run[start]):
        start += 1
    while end > start and _is_blank(run[end - 1]):
        end -= 1
    return tuple(run[start:end])


def _apply_mark(node: Converted, mark: Mark) -> Converted:
    if isinstance(node, TextLeaf):
        return node.with_marks(node.marks | {mark})
    if isinstance(node, TextBlock):
        leaves = tuple(leaf.with_marks(leaf.marks | {mark}) for leaf in node.children)
        return replace(node, children=leaves)
    if isinstance(node, ListBlock):
        items = []
        for item in node.children:
            marked = _apply_mark(item, mark)
            assert isinstance(marked, TextBlock)
            items.append(marked)
        return replace(node, children=tuple(items))
    if isinstance(node, ImageBlock):
        return node
    assert_never(node)


def _text_element(block_type: BlockType, children: list[Converted]) -> list[Converted]:
    """Build a text block, lifting out any nested blocks."""
    if all(isinstance(child, TextLeaf) for child in children):
        leaves = tuple(child for child in children if isinstance(child, TextLeaf))
        return [TextBlock(block_type, leaves)]

    result: list[Converted] = []
    run: list[TextLeaf] = []

    def flush() -> None:
        leaves = _trim(run)
        if leaves:
            result.append(TextBlock(block_type, leaves))
        run.clear()

    for child in children:
        if isinstance(child, TextLeaf):
            run.append(child)
            continue
        flush()
        if isinstance(child, TextBlock):
            result.append(replace(child, type=block_type))
        elif isinstance(child, ListBlock) and block_type is BlockType.LIST_ITEM:
            result.extend(child.children)
        else:
            result.append(child)
    flush()
    return result


def _list_element(list_type: BlockType, children: list[Converted]) -> list[Converted]:
    """Build a list container, coercing children into list items."""
    result: list[Converted] = []
    items: list[TextBlock] = []
    run: list[TextLeaf] = []

    def flush_run() -> None:
        leaves = _trim(run)
        if leaves:
            items.append(TextBlock(BlockType.LIST_ITEM, leaves))
        run.clear()

    def flush_items() -> None:
        if items:
            result.append(ListBlock(list_type, tuple(items)))
        items.clear()

    for child in children:
        if isinstance(child, TextLeaf):
            run.append(child)
            continue
        flush_run()
        if isinstance(child, TextBlock):
            items.append(replace(child, type=BlockType.LIST_ITEM))
        elif isinstance(child, ListBlock) and child.type is list_type:
            items.extend(child.children)
        else:
            # Images and lists of the other type split the container
            flush_items()
            result.append(child)
    flush_run()
    flush_items()
    return result


def _image_element(tag: Tag, config: RichTextConfig) -> list[Converted]:
    src = tag.get("src") or ""
    alt = tag.get("alt") or ""
    if isinstance(src, list):
        src = " ".join(src)
    if isinstance(alt, list):
        alt = " ".join(alt)
    if not is_safe_url(src, config):
        logger.warning("Dropping image with unsafe src: %s", src[:50])
        return []
    return [ImageBlock(url=src, alt=alt)]


def _convert(node: PageElement, config: RichTextConfig) -> list[Converted]:
    """Convert one markup node into a flat list of blocks and leaves."""
    if isinstance(node, PreformattedString):
        # comments, doctypes, CDATA, processing instructions
        return []
    if isinstance(node, NavigableString):
        return [TextLeaf(str(node))]
    if not isinstance(node, Tag):
        return []

    name = node.name.lower()
    if name in config.drop_tags:
        return []
    if name == "img":
        return _image_element(node, config)
    if name == "br":
        return [TextLeaf("\n")]

    children = [item for child in node.children for item in _convert(child, config)]

    if name in MARK_TAGS:
        return [_apply_mark(child, MARK_TAGS[name]) for child in children]
    if name in TEXT_BLOCK_TAGS:
        return _text_element(TEXT_BLOCK_TAGS[name], children)
    if name in LIST_TAGS:
        return _list_element(LIST_TAGS[name], children)
    if name in TRANSPARENT_TAGS or name in INLINE_TAGS:
        return children

    logger.debug("Unknown element <%s> treated as a block", name)
    if all(isinstance(child, TextLeaf) for child in children):
        leaves = tuple(child for child in children if isinstance(child, TextLeaf))
        return [TextBlock(BlockType.PARAGRAPH, leaves)]
    return children


def _assemble(nodes: list[Converted]) -> list[Block]:
    """Turn converted body children into top-level blocks."""
    # Consecutive loose leaves share one paragraph instead of one paragraph per leaf
    blocks: list[Block] = []
    run: list[TextLeaf] = []
    orphans: list[TextBlock] = []

    def flush_run() -> None:
        leaves = _trim(run)
        if leaves:
            blocks.append(TextBlock(BlockType.PARAGRAPH, leaves))
        run.clear()

    def flush_orphans() -> None:
        # Stray list items get a bulleted list of their own
        if orphans:
            blocks.append(ListBlock(BlockType.BULLETED_LIST, tuple(orphans)))
        orphans.clear()

    for node in nodes:
        if isinstance(node, TextLeaf):
            flush_orphans()
            run.append(node)
            continue
        flush_run()
        if isinstance(node, TextBlock) and node.type is BlockType.LIST_ITEM:
            orphans.append(node)
            continue
        flush_orphans()
        blocks.append(node)
    flush_run()
    flush_orphans()
    return blocks


def parse_html(html_text: str | None, config: RichTextConfig = DEFAULT_CONFIG) -> Document:
    """
    Parse stored HTML into a normalized document.

    Empty or whitespace-only input gives a single empty paragraph.
    """
    if not html_text or not html_text.strip():
        return Document.empty()

    soup = BeautifulSoup(
        html_text, "html.parser", preserve_whitespace_tags=PRESERVE_WHITESPACE_TAGS
    )
    root = soup.body or soup
    nodes = [item for child in root.children for item in _convert(child, config)]
    return normalize(Document(children=tuple(_assemble(nodes))))


# --- Serialization ---


def _serialize_leaf(leaf: TextLeaf) -> str:
    if not leaf.text:
        return ""
    text = "<br>".join(html.escape(line) for line in leaf.text.split("\n"))
    # Innermost first so the first mark in MARK_ORDER ends up outermost
    for mark in reversed(MARK_ORDER):
        if mark in leaf.marks:
            tag = MARK_TO_TAG[mark]
            text = f"<{tag}>{text}</{tag}>"
    return text


def _serialize_block(block: Block) -> str:
    if isinstance(block, TextBlock):
        tag = BLOCK_TO_TAG[block.type]
        inner = "".join(_serialize_leaf(leaf) for leaf in block.children)
        return f"<{tag}>{inner}</{tag}>"
    if isinstance(block, ListBlock):
        tag = BLOCK_TO_TAG[block.type]
        inner = "".join(_serialize_block(item) for item in block.children)
        return f"<{tag}>{inner}</{tag}>"
    if isinstance(block, ImageBlock):
        # The placeholder leaf is never serialized
        return f'<img src="{html.escape(block.url)}" alt="{html.escape(block.alt)}" />'
    assert_never(block)


def serialize_document(document: Document) -> str:
    """Render a document as canonical HTML."""
    return "".join(_serialize_block(block) for block in document.children)
