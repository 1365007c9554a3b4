"""
Tree visitor and text editing tests.

Covers the building blocks behind toggle_block (find_matching,
unwrap_with_split, wrap_children, unwrap_matching) and the text entry
operations used by the editor session.
"""

from __future__ import annotations

import pytest

from contentdesk.components.richtext import (
    delete_range,
    find_matching,
    insert_text,
    is_list,
    unwrap_matching,
    unwrap_with_split,
    wrap_children,
)
from contentdesk.domain.document import (
    BlockType,
    Document,
    ImageBlock,
    InvariantError,
    ListBlock,
    Mark,
    TextBlock,
    TextLeaf,
)
from contentdesk.domain.selection import Point, Selection

BOLD = frozenset([Mark.BOLD])


def block(text: str, block_type: BlockType = BlockType.PARAGRAPH) -> TextBlock:
    return TextBlock(block_type, (TextLeaf(text),))


def item(text: str) -> TextBlock:
    return block(text, BlockType.LIST_ITEM)


# --- Visitors ---


class TestFindMatching:
    """Test ancestor lookup."""

    def test_finds_list_ancestors(self, mixed_doc: Document) -> None:
        """Items of one list share one ancestor; top-level blocks have none."""
        paths = [(0,), (1, 0), (1, 1), (3,)]
        assert find_matching(mixed_doc, paths, is_list) == [(1,)]

    def test_no_match(self, mixed_doc: Document) -> None:
        assert find_matching(mixed_doc, [(1, 0)], lambda node: False) == []


class TestUnwrapWithSplit:
    """Test removing a container around selected children."""

    def test_split_around_lifted(self) -> None:
        """Unlifted children stay in containers before and after."""
        numbered = ListBlock(BlockType.NUMBERED_LIST, (item("a"), item("b"), item("c")))
        document = Document(children=(numbered,))
        result = unwrap_with_split(document, (0,), lift={1})
        assert result.children == (
            ListBlock(BlockType.NUMBERED_LIST, (item("a"),)),
            item("b"),
            ListBlock(BlockType.NUMBERED_LIST, (item("c"),)),
        )

    def test_lift_all(self, mixed_doc: Document) -> None:
        """Without lift, every child is lifted."""
        result = unwrap_with_split(mixed_doc, (1,))
        assert result.children[1:3] == (item("one"), item("two"))
        assert len(result.children) == 5

    def test_rejects_non_container(self, mixed_doc: Document) -> None:
        with pytest.raises(ValueError, match="not a container"):
            unwrap_with_split(mixed_doc, (0,))
        with pytest.raises(ValueError, match="top-level"):
            unwrap_with_split(mixed_doc, (1, 0))


class TestWrapChildren:
    """Test wrapping top-level list items in a container."""

    def test_wrap(self) -> None:
        document = Document(children=(block("x"), item("a"), item("b")))
        result = wrap_children(document, 1, 3, BlockType.BULLETED_LIST)
        assert result.children == (
            block("x"),
            ListBlock(BlockType.BULLETED_LIST, (item("a"), item("b"))),
        )

    def test_wrap_non_item_is_invariant_error(self) -> None:
        document = Document(children=(block("x"),))
        with pytest.raises(InvariantError):
            wrap_children(document, 0, 1, BlockType.BULLETED_LIST)

    def test_wrap_requires_list_type(self) -> None:
        document = Document(children=(item("a"),))
        with pytest.raises(ValueError):
            wrap_children(document, 0, 1, BlockType.BLOCK_QUOTE)


class TestUnwrapMatching:
    """Test lifting selected blocks out of their list."""

    def test_lift_one_item(self, mixed_doc: Document) -> None:
        """The lifted item becomes a paragraph after its list."""
        result = unwrap_matching(mixed_doc, Selection.at((1, 1, 0)))
        assert result.children[1:3] == (
            ListBlock(BlockType.BULLETED_LIST, (item("one"),)),
            block("two"),
        )

    def test_nothing_to_unwrap(self, mixed_doc: Document) -> None:
        assert unwrap_matching(mixed_doc, Selection.at((0, 0))) == mixed_doc


# --- Text editing ---


class TestDeleteRange:
    """Test removal of selected content."""

    def test_within_block(self) -> None:
        document = Document(children=(block("hello"),))
        selection = Selection(Point((0, 0), 1), Point((0, 0), 4))
        assert delete_range(document, selection) == Document(children=(block("ho"),))

    def test_across_blocks_merges(self) -> None:
        """The tail of the last block joins the first block."""
        document = Document(children=(block("ab", BlockType.HEADING_2), block("cd"), block("ef")))
        selection = Selection(Point((0, 0), 1), Point((2, 0), 1))
        result = delete_range(document, selection)
        assert result == Document(children=(block("af", BlockType.HEADING_2),))

    def test_across_list_items(self) -> None:
        bulleted = ListBlock(BlockType.BULLETED_LIST, (item("ab"), item("cd")))
        document = Document(children=(bulleted,))
        selection = Selection(Point((0, 0, 0), 1), Point((0, 1, 0), 1))
        result = delete_range(document, selection)
        assert result == Document(children=(ListBlock(BlockType.BULLETED_LIST, (item("ad"),)),))

    def test_image_at_start_removed(self) -> None:
        document = Document(children=(ImageBlock(url="/a.png"), block("cd")))
        selection = Selection(Point((0, 0), 0), Point((1, 0), 1))
        assert delete_range(document, selection) == Document(children=(block("d"),))

    def test_image_at_end_removed(self) -> None:
        document = Document(children=(block("ab"), ImageBlock(url="/a.png")))
        selection = Selection(Point((0, 0), 1), Point((1, 0), 0))
        assert delete_range(document, selection) == Document(children=(block("a"),))

    def test_everything(self, mixed_doc: Document) -> None:
        """Deleting all content leaves the first block, empty."""
        selection = Selection(Point((0, 0), 0), Point((3, 0), 3))
        result = delete_range(mixed_doc, selection)
        assert result == Document(children=(TextBlock(BlockType.HEADING_1),))

    def test_caret_is_noop(self, mixed_doc: Document) -> None:
        assert delete_range(mixed_doc, Selection.at((0, 0), 2)) == mixed_doc


class TestInsertText:
    """Test typing into the document."""

    def test_inherits_marks(self) -> None:
        document = Document(children=(TextBlock(BlockType.PARAGRAPH, (TextLeaf("ab", BOLD),)),))
        result = insert_text(document, Selection.at((0, 0), 2), "c")
        assert result.children[0].children == (TextLeaf("abc", BOLD),)

    def test_explicit_marks(self) -> None:
        document = Document(children=(TextBlock(BlockType.PARAGRAPH, (TextLeaf("ab", BOLD),)),))
        result = insert_text(document, Selection.at((0, 0), 2), "c", marks=())
        assert result.children[0].children == (TextLeaf("ab", BOLD), TextLeaf("c"))

    def test_replaces_selection(self) -> None:
        document = Document(children=(block("hello"), block("world")))
        selection = Selection(Point((0, 0), 2), Point((1, 0), 3))
        assert insert_text(document, selection, "y") == Document(children=(block("heyld"),))

    def test_on_image_opens_paragraph(self) -> None:
        document = Document(children=(ImageBlock(url="/a.png"),))
        result = insert_text(document, Selection.at((0, 0)), "x")
        assert result == Document(children=(ImageBlock(url="/a.png"), block("x")))

    def test_empty_text_only_deletes(self) -> None:
        document = Document(children=(block("abc"),))
        selection = Selection(Point((0, 0), 0), Point((0, 0), 1))
        assert insert_text(document, selection, "") == Document(children=(block("bc"),))
