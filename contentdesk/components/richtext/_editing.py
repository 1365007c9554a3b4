"""
Structural edit operations on the rich content document tree.

Every operation takes a document plus a selection and returns a new,
normalized document. Selections are clamped first, so no selection makes
an operation fail; only a malformed tree raises (InvariantError).

Key behaviors:
- toggle_mark splits leaves at the selection edges and flips one mark
- toggle_block retypes the touched blocks, unwrapping and wrapping list
  containers as needed
- unwrap_matching lifts selected nodes out of a matching ancestor,
  splitting that ancestor around them
- insert_void inserts an image and always follows it with an empty
  paragraph
- delete_range and insert_text back text entry in the editor session

Edits address leaf containers by ordinal (document-order position). Toggle
operations never add or remove containers, so a caller can carry a
selection across them with locate()/point_at().
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable, Mapping, Sequence
from dataclasses import replace
from typing import Any

from contentdesk.domain.document import (
    LIST_TYPES,
    TEXT_TYPES,
    Block,
    BlockType,
    Document,
    ImageBlock,
    InvariantError,
    LeafContainer,
    ListBlock,
    Mark,
    Path,
    TextBlock,
    TextLeaf,
    VoidKind,
    iter_container_paths,
    normalize,
)
from contentdesk.domain.selection import (
    ContainerRange,
    Selection,
    clamp_selection,
    container_ranges,
)

Predicate = Callable[[Block], bool]

# Block types a caller may toggle to
TOGGLE_TYPES: frozenset[BlockType] = (TEXT_TYPES - {BlockType.LIST_ITEM}) | LIST_TYPES


# --- Name coercion ---


def coerce_mark(mark: Mark | str) -> Mark:
    try:
        return Mark(mark)
    except ValueError:
        raise ValueError(f"Unknown mark '{mark}'") from None


def coerce_block_type(block_type: BlockType | str) -> BlockType:
    try:
        result = BlockType(block_type)
    except ValueError:
        raise ValueError(f"Unknown block type '{block_type}'") from None
    if result not in TOGGLE_TYPES:
        raise ValueError(f"Block type '{result.value}' cannot be toggled")
    return result


def coerce_void_kind(kind: VoidKind | str) -> VoidKind:
    try:
        return VoidKind(kind)
    except ValueError:
        raise ValueError(f"Unknown void kind '{kind}'") from None


def is_list(block: Block) -> bool:
    """Predicate matching bulleted and numbered list containers."""
    return isinstance(block, ListBlock) and block.type in LIST_TYPES


# --- Leaf helpers ---


def _slice_leaves(leaves: Iterable[TextLeaf], lo: int, hi: int) -> list[TextLeaf]:
    """Return the leaves covering [lo, hi) of the container text, cut at the edges."""
    result = []
    pos = 0
    for leaf in leaves:
        a, b = pos, pos + len(leaf.text)
        pos = b
        s, e = max(a, lo), min(b, hi)
        if s < e:
            result.append(TextLeaf(leaf.text[s - a : e - a], leaf.marks))
    return result


def _split_leaves(
    leaves: Sequence[TextLeaf], start: int, end: int
) -> tuple[list[TextLeaf], list[TextLeaf], list[TextLeaf]]:
    total = sum(len(leaf.text) for leaf in leaves)
    return (
        _slice_leaves(leaves, 0, start),
        _slice_leaves(leaves, start, end),
        _slice_leaves(leaves, end, total),
    )


def _leaf_at(leaves: Sequence[TextLeaf], offset: int) -> TextLeaf:
    """The leaf left of a caret offset (the first leaf at offset 0)."""
    pos = 0
    for leaf in leaves:
        if pos < offset <= pos + len(leaf.text):
            return leaf
        pos += len(leaf.text)
    return leaves[0] if offset <= 0 else leaves[-1]


# --- Container helpers ---


def _containers(document: Document) -> list[tuple[Path, LeafContainer]]:
    return list(iter_container_paths(document))


def _caret(document: Document, ordinal: int, offset: int) -> tuple[int, int, Path, LeafContainer]:
    """Clamp a caret to an existing container; returns (ordinal, offset, path, container)."""
    containers = _containers(document)
    ordinal = max(0, min(ordinal, len(containers) - 1))
    path, container = containers[ordinal]
    offset = max(0, min(offset, len(container.text)))
    return ordinal, offset, path, container


def _is_caret(ranges: Sequence[ContainerRange]) -> bool:
    """True when a selection covers no characters and sits in one container."""
    return len(ranges) == 1 and ranges[0].start == ranges[0].end


def _apply_updates(document: Document, updates: Mapping[int, LeafContainer | None]) -> Document:
    """
    Replace (or with None, remove) leaf containers by ordinal.

    The result is not normalized; list containers emptied by removals are
    dropped by normalize().
    """
    blocks: list[Block] = []
    ordinal = 0
    for block in document.children:
        if isinstance(block, ListBlock):
            items = []
            for item in block.children:
                new = updates.get(ordinal, item)
                ordinal += 1
                if new is None:
                    continue
                if not isinstance(new, TextBlock):
                    raise InvariantError("Only text blocks can replace a list item")
                items.append(new)
            blocks.append(replace(block, children=tuple(items)))
        else:
            new_block = updates.get(ordinal, block)
            ordinal += 1
            if new_block is not None:
                blocks.append(new_block)
    return Document(children=tuple(blocks))


def _text_ranges(document: Document, selection: Selection) -> list[ContainerRange]:
    """Touched containers, void blocks excluded."""
    return [
        r for r in container_ranges(document, selection) if isinstance(r.container, TextBlock)
    ]


def _runs(indices: Sequence[int]) -> list[tuple[int, int]]:
    """Group sorted indices into half-open runs of consecutive values."""
    runs: list[tuple[int, int]] = []
    for index in indices:
        if runs and runs[-1][1] == index:
            runs[-1] = (runs[-1][0], index + 1)
        else:
            runs.append((index, index + 1))
    return runs


# --- Tree visitors ---


def find_matching(document: Document, paths: Iterable[Path], predicate: Predicate) -> list[Path]:
    """
    Find the nearest ancestor of each path whose node satisfies predicate.

    Returns distinct ancestor paths in document order.
    """
    found: set[Path] = set()
    for path in paths:
        for depth in range(len(path) - 1, 0, -1):
            ancestor = path[:depth]
            node = document.node(ancestor)
            if not isinstance(node, TextLeaf) and predicate(node):
                found.add(ancestor)
                break
    return sorted(found)


def unwrap_with_split(
    document: Document, path: Path, lift: Collection[int] | None = None
) -> Document:
    """
    Remove the container at path, lifting the children listed in lift.

    Children that are not lifted stay grouped in containers of the same
    type before and after the lifted ones. With lift=None every child is
    lifted. Lifted list items are left as-is; the caller must retype them
    before normalizing.
    """
    if len(path) != 1:
        raise ValueError(f"Only top-level containers can be unwrapped, got path {path}")
    container = document.node(path)
    if not isinstance(container, ListBlock):
        raise ValueError(f"Node at {path} is not a container")
    lifted = set(range(len(container.children))) if lift is None else set(lift)

    replacement: list[Block] = []
    run: list[TextBlock] = []
    for index, item in enumerate(container.children):
        if index in lifted:
            if run:
                replacement.append(ListBlock(container.type, tuple(run)))
                run = []
            replacement.append(item)
        else:
            run.append(item)
    if run:
        replacement.append(ListBlock(container.type, tuple(run)))

    i = path[0]
    children = document.children[:i] + tuple(replacement) + document.children[i + 1 :]
    return Document(children=children)


def wrap_children(document: Document, start: int, end: int, container_type: BlockType) -> Document:
    """Wrap top-level blocks [start, end) in a new list container."""
    if container_type not in LIST_TYPES:
        raise ValueError(f"'{container_type.value}' is not a list container type")
    items = []
    for block in document.children[start:end]:
        if not isinstance(block, TextBlock) or block.type is not BlockType.LIST_ITEM:
            raise InvariantError(f"Cannot wrap a '{block.type.value}' node in a list container")
        items.append(block)
    wrapper = ListBlock(container_type, tuple(items))
    children = document.children[:start] + (wrapper,) + document.children[end:]
    return Document(children=children)


def _unwrap_touched(document: Document, selection: Selection, predicate: Predicate) -> Document:
    ranges = _text_ranges(document, selection)
    ancestors = find_matching(document, [r.path for r in ranges], predicate)
    # Bottom-up so earlier paths stay valid
    for ancestor in reversed(ancestors):
        depth = len(ancestor)
        lift = {r.path[depth] for r in ranges if r.path[:depth] == ancestor}
        document = unwrap_with_split(document, ancestor, lift)
    return document


def _retype_orphans(document: Document) -> Document:
    blocks = tuple(
        replace(b, type=BlockType.PARAGRAPH)
        if isinstance(b, TextBlock) and b.type is BlockType.LIST_ITEM
        else b
        for b in document.children
    )
    return Document(children=blocks)


# --- Operations ---


def unwrap_matching(
    document: Document, selection: Selection, predicate: Predicate = is_list
) -> Document:
    """
    Lift every selected block out of its nearest ancestor matching predicate.

    The ancestor is split around the lifted blocks. Lifted list items turn
    into paragraphs so the result stays valid on its own.
    """
    selection = clamp_selection(document, selection)
    return normalize(_retype_orphans(_unwrap_touched(document, selection, predicate)))


def is_mark_active(document: Document, selection: Selection, mark: Mark | str) -> bool:
    """
    True when every non-empty leaf in the selection carries mark.

    For a collapsed selection, looks at the leaf left of the caret.
    """
    mark = coerce_mark(mark)
    selection = clamp_selection(document, selection)
    ranges = container_ranges(document, selection)
    if _is_caret(ranges):
        container = ranges[0].container
        if isinstance(container, ImageBlock):
            return False
        return mark in _leaf_at(container.children, ranges[0].start).marks

    leaves = [
        leaf
        for r in ranges
        if isinstance(r.container, TextBlock)
        for leaf in _slice_leaves(r.container.children, r.start, r.end)
    ]
    return bool(leaves) and all(mark in leaf.marks for leaf in leaves)


def toggle_mark(document: Document, selection: Selection, mark: Mark | str) -> Document:
    """
    Add mark to the selected text, or remove it if all of it already has it.

    A collapsed selection leaves the tree unchanged. Void placeholders and
    empty leaves are never touched.
    """
    mark = coerce_mark(mark)
    selection = clamp_selection(document, selection)
    if _is_caret(container_ranges(document, selection)):
        return normalize(document)

    active = is_mark_active(document, selection, mark)
    updates: dict[int, LeafContainer | None] = {}
    for r in _text_ranges(document, selection):
        if r.start >= r.end:
            continue
        container = r.container
        assert isinstance(container, TextBlock)
        before, inside, after = _split_leaves(container.children, r.start, r.end)
        inside = [
            leaf.with_marks(leaf.marks - {mark} if active else leaf.marks | {mark})
            for leaf in inside
        ]
        updates[r.ordinal] = replace(container, children=tuple(before + inside + after))
    return normalize(_apply_updates(document, updates))


def _block_matches(document: Document, r: ContainerRange, block_type: BlockType) -> bool:
    if block_type in LIST_TYPES:
        if len(r.path) != 2:
            return False
        return document.children[r.path[0]].type is block_type
    return r.container.type is block_type


def is_block_active(document: Document, selection: Selection, block_type: BlockType | str) -> bool:
    """True when every touched text block already has block_type."""
    block_type = coerce_block_type(block_type)
    selection = clamp_selection(document, selection)
    touched = _text_ranges(document, selection)
    return bool(touched) and all(_block_matches(document, r, block_type) for r in touched)


def toggle_block(document: Document, selection: Selection, block_type: BlockType | str) -> Document:
    """
    Switch the touched blocks to block_type, or back to paragraphs.

    Touched list items are first lifted out of their list, which is split
    around them. List types then wrap each contiguous run of touched blocks
    in one new container; adjacent containers of the same type are not
    merged.
    """
    block_type = coerce_block_type(block_type)
    selection = clamp_selection(document, selection)
    touched = _text_ranges(document, selection)
    if not touched:
        return normalize(document)

    active = all(_block_matches(document, r, block_type) for r in touched)
    if active:
        new_type = BlockType.PARAGRAPH
    elif block_type in LIST_TYPES:
        new_type = BlockType.LIST_ITEM
    else:
        new_type = block_type

    ordinals = {r.ordinal for r in touched}
    unwrapped = _unwrap_touched(document, selection, is_list)

    # Touched blocks are all top-level now
    blocks: list[Block] = []
    retyped: list[int] = []
    ordinal = 0
    for index, block in enumerate(unwrapped.children):
        if isinstance(block, ListBlock):
            ordinal += len(block.children)
        else:
            if ordinal in ordinals:
                assert isinstance(block, TextBlock)
                block = replace(block, type=new_type)
                retyped.append(index)
            ordinal += 1
        blocks.append(block)
    result = Document(children=tuple(blocks))

    if not active and block_type in LIST_TYPES:
        for start, end in reversed(_runs(retyped)):
            result = wrap_children(result, start, end, block_type)
    return normalize(result)


def _delete(document: Document, selection: Selection) -> tuple[Document, int, int]:
    """Delete the selection; returns (document, caret ordinal, caret offset)."""
    selection = clamp_selection(document, selection)
    ranges = container_ranges(document, selection)
    first, last = ranges[0], ranges[-1]
    if _is_caret(ranges):
        return normalize(document), first.ordinal, first.start

    updates: dict[int, LeafContainer | None] = {r.ordinal: None for r in ranges[1:-1]}
    head, tail = first.container, last.container
    caret = first.start
    if first.ordinal == last.ordinal:
        if isinstance(head, TextBlock):
            before, _, after = _split_leaves(head.children, first.start, first.end)
            updates[first.ordinal] = replace(head, children=tuple(before + after))
    elif isinstance(head, TextBlock):
        before = _slice_leaves(head.children, 0, first.start)
        after: list[TextLeaf] = []
        if isinstance(tail, TextBlock):
            after = _slice_leaves(tail.children, last.end, len(tail.text))
        updates[first.ordinal] = replace(head, children=tuple(before + after))
        updates[last.ordinal] = None
    else:
        # Selection starts on an image: drop it, keep the tail of the last block
        updates[first.ordinal] = None
        caret = 0
        if isinstance(tail, TextBlock):
            tail_leaves = _slice_leaves(tail.children, last.end, len(tail.text))
            updates[last.ordinal] = replace(tail, children=tuple(tail_leaves))
        else:
            updates[last.ordinal] = None
    return normalize(_apply_updates(document, updates)), first.ordinal, caret


def delete_range(document: Document, selection: Selection) -> Document:
    """
    Remove the selected content.

    Across containers, the tail of the last container is merged into the
    first; containers in between are removed, and images at either edge
    are removed whole.
    """
    result, _, _ = _delete(document, selection)
    return result


def _insert_text(
    document: Document,
    selection: Selection,
    text: str,
    marks: Iterable[Mark] | None = None,
) -> tuple[Document, int, int]:
    document, ordinal, offset = _delete(document, selection)
    if not text:
        return document, ordinal, offset

    ordinal, offset, path, container = _caret(document, ordinal, offset)
    if isinstance(container, ImageBlock):
        leaf = TextLeaf(text, frozenset(marks or ()))
        paragraph = TextBlock(BlockType.PARAGRAPH, (leaf,))
        i = path[0] + 1
        blocks = document.children[:i] + (paragraph,) + document.children[i:]
        return normalize(Document(children=blocks)), ordinal + 1, len(text)

    leaves = container.children
    leaf_marks = frozenset(marks) if marks is not None else _leaf_at(leaves, offset).marks
    before, _, after = _split_leaves(leaves, offset, offset)
    children = tuple(before + [TextLeaf(text, leaf_marks)] + after)
    updated = _apply_updates(document, {ordinal: replace(container, children=children)})
    return normalize(updated), ordinal, offset + len(text)


def insert_text(
    document: Document,
    selection: Selection,
    text: str,
    marks: Iterable[Mark] | None = None,
) -> Document:
    """
    Replace the selection with text.

    The text takes the marks of the leaf left of the caret unless marks is
    given. Typing on an image opens a new paragraph after it.
    """
    result, _, _ = _insert_text(document, selection, text, marks)
    return result


def _image_payload(payload: Mapping[str, Any]) -> tuple[str, str]:
    url = payload.get("url")
    if not url or not isinstance(url, str):
        raise ValueError("Image payload requires a non-empty 'url'")
    alt = payload.get("alt", payload.get("altText")) or ""
    return url, str(alt)


def _insert_void(
    document: Document,
    selection: Selection,
    kind: VoidKind | str,
    payload: Mapping[str, Any],
) -> tuple[Document, int]:
    """Insert a void block; returns (document, top-level index of the void)."""
    coerce_void_kind(kind)
    url, alt = _image_payload(payload)
    void = ImageBlock(url=url, alt=alt)

    document, ordinal, offset = _delete(document, selection)
    ordinal, offset, path, container = _caret(document, ordinal, offset)
    length = len(container.text)
    at_end = isinstance(container, ImageBlock) or offset >= length
    at_start = not at_end and offset == 0

    def split(block: TextBlock) -> tuple[TextBlock, TextBlock]:
        before, _, after = _split_leaves(block.children, offset, offset)
        return replace(block, children=tuple(before)), replace(block, children=tuple(after))

    blocks = list(document.children)
    i = path[0]
    inserted: list[Block] = [void, TextBlock(BlockType.PARAGRAPH)]
    if len(path) == 1:
        if at_end:
            position = i + 1
        elif at_start:
            position = i
        else:
            assert isinstance(container, TextBlock)
            blocks[i : i + 1] = split(container)
            position = i + 1
        blocks[position:position] = inserted
    else:
        # Images never live inside lists: split the list around the image
        parent = blocks[i]
        assert isinstance(parent, ListBlock) and isinstance(container, TextBlock)
        items = list(parent.children)
        j = path[1]
        if at_end:
            head, tail = items[: j + 1], items[j + 1 :]
        elif at_start:
            head, tail = items[:j], items[j:]
        else:
            left, right = split(container)
            head, tail = items[:j] + [left], [right] + items[j + 1 :]
        replacement: list[Block] = []
        if head:
            replacement.append(ListBlock(parent.type, tuple(head)))
        position = i + len(replacement)
        replacement.extend(inserted)
        if tail:
            replacement.append(ListBlock(parent.type, tuple(tail)))
        blocks[i : i + 1] = replacement
    return normalize(Document(children=tuple(blocks))), position


def insert_void(
    document: Document,
    selection: Selection,
    kind: VoidKind | str,
    payload: Mapping[str, Any],
) -> Document:
    """
    Insert a void block (an image) at the selection.

    An expanded selection is deleted first. An empty paragraph is always
    inserted directly after the void block so there is somewhere to keep
    typing.
    """
    result, _ = _insert_void(document, selection, kind, payload)
    return result
