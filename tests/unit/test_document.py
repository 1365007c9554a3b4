import pytest

from contentdesk.domain.document import (
    EMPTY_LEAF,
    BlockType,
    Document,
    ImageBlock,
    InvariantError,
    ListBlock,
    Mark,
    TextBlock,
    TextLeaf,
    check_invariants,
    iter_container_paths,
    merge_leaves,
    normalize,
)

BOLD = frozenset([Mark.BOLD])


def test_empty_document_has_one_paragraph():
    document = Document.empty()
    assert document.children == (TextBlock(BlockType.PARAGRAPH, (EMPTY_LEAF,)),)
    assert Document() == document


def test_merge_adjacent_same_marks():
    leaves = (TextLeaf("a", BOLD), TextLeaf("b", BOLD), TextLeaf("c"))
    assert merge_leaves(leaves) == (TextLeaf("ab", BOLD), TextLeaf("c"))


def test_merge_drops_empty_leaves():
    leaves = (TextLeaf("", BOLD), TextLeaf("a"), TextLeaf(""), TextLeaf("b"))
    assert merge_leaves(leaves) == (TextLeaf("ab"),)


def test_merge_keeps_one_unmarked_empty_leaf():
    assert merge_leaves([TextLeaf("", BOLD)]) == (EMPTY_LEAF,)
    assert merge_leaves([]) == (EMPTY_LEAF,)


def test_normalize_fills_empty_blocks():
    document = Document(children=(TextBlock(BlockType.PARAGRAPH, ()),))
    assert normalize(document) == Document.empty()


def test_normalize_drops_empty_lists():
    document = Document(
        children=(
            ListBlock(BlockType.BULLETED_LIST, ()),
            TextBlock(BlockType.PARAGRAPH, (TextLeaf("x"),)),
        )
    )
    assert normalize(document).children == (TextBlock(BlockType.PARAGRAPH, (TextLeaf("x"),)),)


def test_normalize_empty_document():
    assert normalize(Document(children=())) == Document.empty()


def test_normalize_resets_image_placeholder():
    image = ImageBlock(url="/a.png", children=(TextLeaf("junk", BOLD),))
    assert normalize(Document(children=(image,))).children == (ImageBlock(url="/a.png"),)


def test_normalize_is_idempotent(mixed_doc):
    once = normalize(mixed_doc)
    assert normalize(once) == once
    check_invariants(once)


def test_list_item_outside_list_rejected():
    document = Document(children=(TextBlock(BlockType.LIST_ITEM, (TextLeaf("x"),)),))
    with pytest.raises(InvariantError, match="outside a list"):
        normalize(document)


def test_paragraph_inside_list_rejected():
    bad = ListBlock(BlockType.NUMBERED_LIST, (TextBlock(BlockType.PARAGRAPH),))
    with pytest.raises(InvariantError):
        normalize(Document(children=(bad,)))


def test_image_inside_list_rejected():
    bad = ListBlock(BlockType.BULLETED_LIST, (ImageBlock(url="/a.png"),))  # type: ignore[arg-type]
    with pytest.raises(InvariantError):
        normalize(Document(children=(bad,)))


def test_invariant_error_is_assertion_error():
    assert issubclass(InvariantError, AssertionError)


def test_check_invariants_detects_unmerged_leaves():
    document = Document(
        children=(TextBlock(BlockType.PARAGRAPH, (TextLeaf("a"), TextLeaf("b"))),)
    )
    with pytest.raises(InvariantError):
        check_invariants(document)


def test_container_paths_in_document_order(mixed_doc):
    paths = [path for path, _ in iter_container_paths(mixed_doc)]
    assert paths == [(0,), (1, 0), (1, 1), (2,), (3,)]


def test_document_text(mixed_doc):
    assert mixed_doc.text == "Title\none\ntwo\n\nend"


def test_node_lookup(mixed_doc):
    assert mixed_doc.node((1, 1, 0)) == TextLeaf("two")
    assert mixed_doc.node((2,)) == ImageBlock(url="/media/a.png", alt="A")
    with pytest.raises(IndexError):
        mixed_doc.node((3, 0, 0))
    with pytest.raises(IndexError):
        mixed_doc.node(())


def test_dict_round_trip(mixed_doc):
    data = mixed_doc.to_dict()
    assert data["type"] == "document"
    assert data["children"][1]["type"] == "bulleted-list"
    assert data["children"][2] == {
        "type": "image",
        "url": "/media/a.png",
        "alt": "A",
        "children": [{"text": ""}],
    }
    assert Document.from_dict(data) == mixed_doc


def test_leaf_marks_serialized_in_order():
    leaf = TextLeaf("x", frozenset([Mark.CODE, Mark.BOLD]))
    assert leaf.to_dict() == {"text": "x", "marks": ["bold", "code"]}


def test_from_dict_rejects_bad_list_child():
    data = {
        "type": "document",
        "children": [{"type": "bulleted-list", "children": [{"type": "image", "url": "/a"}]}],
    }
    with pytest.raises(ValueError, match="list item"):
        Document.from_dict(data)


def test_from_dict_normalizes():
    data = {"children": [{"type": "paragraph", "children": [{"text": "a"}, {"text": "b"}]}]}
    assert Document.from_dict(data).children[0].children == (TextLeaf("ab"),)
