from pathlib import Path

import pytest

from contentdesk.domain.document import (
    BlockType,
    Document,
    ImageBlock,
    ListBlock,
    TextBlock,
    TextLeaf,
)


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def rules_path(project_root: Path) -> Path:
    """Path to the project rules.yaml file."""
    return project_root / "rules.yaml"


@pytest.fixture
def mixed_doc() -> Document:
    """
    Heading, two-item bulleted list, image, paragraph.

    Leaf containers in document order: (0,), (1, 0), (1, 1), (2,), (3,).
    """
    return Document(
        children=(
            TextBlock(BlockType.HEADING_1, (TextLeaf("Title"),)),
            ListBlock(
                BlockType.BULLETED_LIST,
                (
                    TextBlock(BlockType.LIST_ITEM, (TextLeaf("one"),)),
                    TextBlock(BlockType.LIST_ITEM, (TextLeaf("two"),)),
                ),
            ),
            ImageBlock(url="/media/a.png", alt="A"),
            TextBlock(BlockType.PARAGRAPH, (TextLeaf("end"),)),
        )
    )
