"""
Selection ranges over a document tree.

A point addresses a text leaf by path plus a character offset inside that
leaf. Edit operations work on container-level coordinates instead: the
ordinal of a leaf container in document order plus an offset into its
concatenated text. Those coordinates survive leaf merging and list
wrapping, which is what lets a caller carry a selection across an edit.

Out-of-range points are clamped, never rejected.
"""

from __future__ import annotations

from dataclasses import dataclass

from contentdesk.domain.document import (
    Document,
    ImageBlock,
    LeafContainer,
    Node,
    Path,
    TextLeaf,
    iter_container_paths,
)


@dataclass(frozen=True, order=True)
class Point:
    """A caret position: leaf path and character offset in that leaf."""

    path: Path
    offset: int = 0


@dataclass(frozen=True)
class Selection:
    """Anchor/focus pair; either may come first in document order."""

    anchor: Point
    focus: Point

    @classmethod
    def collapsed(cls, point: Point) -> Selection:
        return cls(point, point)

    @classmethod
    def at(cls, path: Path, offset: int = 0) -> Selection:
        return cls.collapsed(Point(path, offset))

    @property
    def is_collapsed(self) -> bool:
        return self.anchor == self.focus

    @property
    def start(self) -> Point:
        return min(self.anchor, self.focus)

    @property
    def end(self) -> Point:
        return max(self.anchor, self.focus)


@dataclass(frozen=True)
class ContainerRange:
    """The part of one leaf container covered by a selection."""

    ordinal: int
    path: Path
    container: LeafContainer
    start: int
    end: int


# --- Clamping ---


def _containers(document: Document) -> list[tuple[Path, LeafContainer]]:
    return list(iter_container_paths(document))


def clamp_point(document: Document, point: Point) -> Point:
    """
    Move a point to the nearest valid leaf boundary.

    A path past the end of a level snaps to the end of the last leaf
    below that level; a path that
    stops above leaf level descends to the first leaf; offsets are clamped
    to the leaf's length.
    """
    node: Document | Node = document
    node_path: list[int] = []
    past_end = False
    while not isinstance(node, TextLeaf):
        depth = len(node_path)
        if past_end:
            index = len(node.children) - 1
        else:
            wanted = point.path[depth] if depth < len(point.path) else 0
            index = max(0, min(wanted, len(node.children) - 1))
            past_end = wanted > index
        node_path.append(index)
        node = node.children[index]

    if past_end:
        offset = len(node.text)
    elif len(point.path) < len(node_path):
        offset = 0
    else:
        offset = max(0, min(point.offset, len(node.text)))
    return Point(tuple(node_path), offset)


def clamp_selection(document: Document, selection: Selection) -> Selection:
    """Clamp both ends of a selection to valid boundaries."""
    return Selection(
        clamp_point(document, selection.anchor),
        clamp_point(document, selection.focus),
    )


# --- Container coordinates ---


def locate(document: Document, point: Point) -> tuple[int, int]:
    """
    Convert a point into (container ordinal, offset in container text).
    """
    point = clamp_point(document, point)
    container_path, leaf_index = point.path[:-1], point.path[-1]
    for ordinal, (path, container) in enumerate(_containers(document)):
        if path == container_path:
            before = sum(len(leaf.text) for leaf in container.children[:leaf_index])
            return ordinal, before + point.offset
    raise AssertionError(f"Clamped point {point} does not address a leaf container")


def point_at(document: Document, ordinal: int, offset: int) -> Point:
    """
    Convert (container ordinal, offset) back into a leaf point.

    Offsets falling on a leaf boundary resolve to the end of the left
    leaf, except offset 0 which is the start of the first leaf.
    """
    containers = _containers(document)
    ordinal = max(0, min(ordinal, len(containers) - 1))
    path, container = containers[ordinal]
    if isinstance(container, ImageBlock):
        return Point(path + (0,), 0)
    remaining = max(0, offset)
    for index, leaf in enumerate(container.children):
        if remaining <= len(leaf.text):
            return Point(path + (index,), remaining)
        remaining -= len(leaf.text)
    last = len(container.children) - 1
    return Point(path + (last,), len(container.children[last].text))


def remap_selection(before: Document, after: Document, selection: Selection) -> Selection:
    """
    Carry a selection over an edit that keeps the container sequence.

    Leaf paths change when an edit splits or merges leaves; the container
    coordinates of both ends do not.
    """
    anchor = locate(before, selection.anchor)
    focus = locate(before, selection.focus)
    return Selection(point_at(after, *anchor), point_at(after, *focus))


def container_ranges(document: Document, selection: Selection) -> list[ContainerRange]:
    """
    List every leaf container touched by a selection with the covered span.

    A collapsed selection touches the single container holding the caret,
    with an empty span.
    """
    start_ord, start_off = locate(document, selection.start)
    end_ord, end_off = locate(document, selection.end)
    if (end_ord, end_off) < (start_ord, start_off):
        start_ord, start_off, end_ord, end_off = end_ord, end_off, start_ord, start_off

    ranges = []
    for ordinal, (path, container) in enumerate(_containers(document)):
        if ordinal < start_ord or ordinal > end_ord:
            continue
        length = len(container.text)
        lo = start_off if ordinal == start_ord else 0
        hi = end_off if ordinal == end_ord else length
        ranges.append(ContainerRange(ordinal, path, container, lo, hi))
    return ranges
