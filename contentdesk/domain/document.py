"""
Rich content document tree.

A document is an ordered sequence of top-level blocks. Blocks hold text
leaves; list containers hold list items; images are void blocks with a
single empty placeholder leaf.

Key behaviors:
- Nodes are immutable; edits build new trees
- normalize() restores every structural invariant after an edit
- to_dict()/from_dict() give a JSON-friendly view of the tree

Invariants:
- I1: List containers hold only list items
- I2: List items only appear inside list containers
- I3: Every non-void block holds at least one leaf
- I4: No two adjacent leaves in a block share the same mark set
- I5: An image holds exactly one empty, unmarked placeholder leaf
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, TypeAlias, assert_never

# --- Errors ---


class InvariantError(AssertionError):
    """A tree violates a structural invariant (a bug in an edit operation)."""


# --- Tags ---


class Mark(str, Enum):
    """Character-level formatting flag."""

    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"
    CODE = "code"


# Outermost to innermost when rendered
MARK_ORDER: tuple[Mark, ...] = (
    Mark.BOLD,
    Mark.ITALIC,
    Mark.UNDERLINE,
    Mark.STRIKETHROUGH,
    Mark.CODE,
)


class BlockType(str, Enum):
    """Block node type tag."""

    PARAGRAPH = "paragraph"
    HEADING_1 = "heading-1"
    HEADING_2 = "heading-2"
    HEADING_3 = "heading-3"
    BLOCK_QUOTE = "block-quote"
    BULLETED_LIST = "bulleted-list"
    NUMBERED_LIST = "numbered-list"
    LIST_ITEM = "list-item"
    IMAGE = "image"


TEXT_TYPES: frozenset[BlockType] = frozenset(
    [
        BlockType.PARAGRAPH,
        BlockType.HEADING_1,
        BlockType.HEADING_2,
        BlockType.HEADING_3,
        BlockType.BLOCK_QUOTE,
        BlockType.LIST_ITEM,
    ]
)

LIST_TYPES: frozenset[BlockType] = frozenset([BlockType.BULLETED_LIST, BlockType.NUMBERED_LIST])


class VoidKind(str, Enum):
    """Kinds of void content that can be inserted."""

    IMAGE = "image"


# --- Nodes ---


@dataclass(frozen=True)
class TextLeaf:
    """A run of text sharing one set of marks."""

    text: str = ""
    marks: frozenset[Mark] = frozenset()

    def with_marks(self, marks: Iterable[Mark]) -> TextLeaf:
        return replace(self, marks=frozenset(marks))

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"text": self.text}
        if self.marks:
            result["marks"] = [m.value for m in MARK_ORDER if m in self.marks]
        return result


EMPTY_LEAF = TextLeaf()


@dataclass(frozen=True)
class TextBlock:
    """
    Paragraph, heading, block quote or list item.

    Holds leaves only, never nested blocks.
    """

    type: BlockType
    children: tuple[TextLeaf, ...] = (EMPTY_LEAF,)

    @property
    def text(self) -> str:
        return "".join(leaf.text for leaf in self.children)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "children": [c.to_dict() for c in self.children]}


@dataclass(frozen=True)
class ListBlock:
    """Bulleted or numbered list container."""

    type: BlockType
    children: tuple[TextBlock, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "children": [c.to_dict() for c in self.children]}


@dataclass(frozen=True)
class ImageBlock:
    """Void image block."""

    url: str
    alt: str = ""
    children: tuple[TextLeaf, ...] = (EMPTY_LEAF,)

    @property
    def type(self) -> BlockType:
        return BlockType.IMAGE

    @property
    def text(self) -> str:
        return ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": BlockType.IMAGE.value,
            "url": self.url,
            "alt": self.alt,
            "children": [EMPTY_LEAF.to_dict()],
        }


Block: TypeAlias = TextBlock | ListBlock | ImageBlock
LeafContainer: TypeAlias = TextBlock | ImageBlock
Node: TypeAlias = Block | TextLeaf
Path: TypeAlias = tuple[int, ...]


@dataclass(frozen=True)
class Document:
    """Ordered sequence of top-level blocks."""

    children: tuple[Block, ...] = field(
        default_factory=lambda: (TextBlock(BlockType.PARAGRAPH),)
    )

    @classmethod
    def empty(cls) -> Document:
        """A document holding a single empty paragraph."""
        return cls()

    @property
    def text(self) -> str:
        """Plain text of all leaf containers, one per line."""
        return "\n".join(c.text for c in iter_containers(self))

    def node(self, path: Path) -> Node:
        """Return the node at path; raises IndexError for a bad path."""
        node: Document | Node = self
        for index in path:
            if isinstance(node, TextLeaf):
                raise IndexError(f"Path {path} descends below a leaf")
            node = node.children[index]
        if isinstance(node, Document):
            raise IndexError("Empty path addresses the document itself")
        return node

    def to_dict(self) -> dict[str, Any]:
        return {"type": "document", "children": [b.to_dict() for b in self.children]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Document:
        """Create from dictionary (the to_dict() shape)."""
        blocks = tuple(_block_from_dict(child) for child in data.get("children", []))
        return normalize(cls(children=blocks))


def _leaf_from_dict(data: dict[str, Any]) -> TextLeaf:
    return TextLeaf(
        text=data.get("text", ""),
        marks=frozenset(Mark(m) for m in data.get("marks", [])),
    )


def _block_from_dict(data: dict[str, Any]) -> Block:
    block_type = BlockType(data.get("type", BlockType.PARAGRAPH.value))
    children = data.get("children", [])
    if block_type is BlockType.IMAGE:
        return ImageBlock(url=data.get("url", ""), alt=data.get("alt", ""))
    if block_type in LIST_TYPES:
        items = []
        for child in children:
            item = _block_from_dict(child)
            if not isinstance(item, TextBlock):
                raise ValueError(f"List child must be a list item, got '{item.type.value}'")
            items.append(item)
        return ListBlock(block_type, tuple(items))
    return TextBlock(block_type, tuple(_leaf_from_dict(c) for c in children))


# --- Traversal ---


def iter_containers(document: Document) -> Iterator[LeafContainer]:
    """Yield every leaf container in document order."""
    for _, container in iter_container_paths(document):
        yield container


def iter_container_paths(document: Document) -> Iterator[tuple[Path, LeafContainer]]:
    """Yield (path, container) for every leaf container in document order."""
    for i, block in enumerate(document.children):
        if isinstance(block, ListBlock):
            for j, item in enumerate(block.children):
                yield (i, j), item
        elif isinstance(block, (TextBlock, ImageBlock)):
            yield (i,), block
        else:
            assert_never(block)


# --- Normalization ---


def merge_leaves(leaves: Iterable[TextLeaf]) -> tuple[TextLeaf, ...]:
    """
    Merge adjacent leaves with identical marks.

    Empty leaves are dropped unless nothing else remains; an empty leaf
    never carries marks.
    """
    merged: list[TextLeaf] = []
    for leaf in leaves:
        if not leaf.text:
            continue
        if merged and merged[-1].marks == leaf.marks:
            merged[-1] = TextLeaf(merged[-1].text + leaf.text, leaf.marks)
        else:
            merged.append(leaf)
    return tuple(merged) or (EMPTY_LEAF,)


def _normalize_text_block(block: TextBlock) -> TextBlock:
    for child in block.children:
        if not isinstance(child, TextLeaf):
            raise InvariantError(
                f"'{block.type.value}' must hold text leaves only, got {type(child).__name__}"
            )
    children = merge_leaves(block.children)
    if children == block.children:
        return block
    return replace(block, children=children)


def _normalize_block(block: Block, *, in_list: bool = False) -> Block:
    if isinstance(block, TextBlock):
        if block.type not in TEXT_TYPES:
            raise InvariantError(f"Text block has non-text type '{block.type.value}'")
        if block.type is BlockType.LIST_ITEM and not in_list:
            raise InvariantError("List item found outside a list container")
        if block.type is not BlockType.LIST_ITEM and in_list:
            raise InvariantError(f"List container holds a '{block.type.value}' node")
        return _normalize_text_block(block)
    if isinstance(block, ListBlock):
        if in_list:
            raise InvariantError("List container nested directly in a list container")
        if block.type not in LIST_TYPES:
            raise InvariantError(f"List container has non-list type '{block.type.value}'")
        items = []
        for item in block.children:
            if not isinstance(item, TextBlock):
                raise InvariantError(f"List container holds a {type(item).__name__}")
            normalized = _normalize_block(item, in_list=True)
            assert isinstance(normalized, TextBlock)
            items.append(normalized)
        return ListBlock(block.type, tuple(items))
    if isinstance(block, ImageBlock):
        if in_list:
            raise InvariantError("List container holds an image")
        if block.children != (EMPTY_LEAF,):
            return replace(block, children=(EMPTY_LEAF,))
        return block
    assert_never(block)


def normalize(document: Document) -> Document:
    """
    Restore structural invariants after an edit.

    Merges adjacent same-mark leaves, gives empty blocks an empty leaf,
    resets void placeholders and drops list containers left without items.
    Raises InvariantError when list nesting is broken, since only a bug in
    an edit operation can produce that.
    """
    blocks: list[Block] = []
    for block in document.children:
        normalized = _normalize_block(block)
        if isinstance(normalized, ListBlock) and not normalized.children:
            continue
        blocks.append(normalized)
    if not blocks:
        return Document.empty()
    return Document(children=tuple(blocks))


def check_invariants(document: Document) -> None:
    """Raise InvariantError unless the document is already normalized."""
    if normalize(document) != document:
        raise InvariantError("Document is not normalized")
