"""
Rules file loading and validation tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from contentdesk.components.richtext.component import _build_config
from contentdesk.rules import EditorRules, ProjectRules, Rules, RulesAdapter, load_rules


class TestRulesLoading:
    """Test rules file loading."""

    def test_load_project_rules_file(self, rules_path: Path) -> None:
        """The shipped rules.yaml loads and matches the defaults."""
        rules = load_rules(rules_path)
        assert rules.project.slug == "contentdesk"
        assert rules.editor.tab_text == "  "
        assert rules.editor.max_html_bytes == 400_000
        assert "javascript:" in rules.security.forbidden_url_protocols

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_rules(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text("invalid: yaml: content: [")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_rules(path)

    def test_invalid_schema(self, tmp_path: Path) -> None:
        """A missing project section fails validation."""
        path = tmp_path / "rules.yaml"
        path.write_text("editor:\n  tab_text: '\\t'\n")
        with pytest.raises(ValueError, match="validation failed"):
            load_rules(path)

    def test_non_positive_size_limit(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text(
            "project: {slug: x, rules_version: '1'}\neditor:\n  max_html_bytes: 0\n"
        )
        with pytest.raises(ValueError):
            load_rules(path)

    def test_fenced_markdown(self, tmp_path: Path) -> None:
        """A ```yaml block inside Markdown is extracted."""
        path = tmp_path / "rules.md"
        path.write_text(
            "# Rules\n\nSome prose.\n\n```yaml\n"
            "project:\n  slug: docs\n  rules_version: '2'\n"
            "editor:\n  tab_text: '    '\n"
            "```\n\nMore prose.\n"
        )
        rules = load_rules(path)
        assert rules.project.slug == "docs"
        assert rules.editor.tab_text == "    "

    def test_defaults(self, tmp_path: Path) -> None:
        """Sections other than project are optional."""
        path = tmp_path / "rules.yaml"
        path.write_text("project:\n  slug: minimal\n  rules_version: '1'\n")
        rules = load_rules(path)
        assert rules.editor == EditorRules()
        assert rules.editor.parser.drop_tags == ["script", "style", "template", "head", "noscript"]


class TestRulesAdapter:
    """Test the richtext RulesPort adapter."""

    @pytest.fixture
    def adapter(self) -> RulesAdapter:
        rules = Rules.model_validate(
            {
                "project": {"slug": "x", "rules_version": "1"},
                "security": {"forbidden_url_protocols": ["JavaScript:", "file:"]},
                "editor": {
                    "tab_text": "\t",
                    "max_html_bytes": 1024,
                    "parser": {"drop_tags": ["SCRIPT", "aside"]},
                },
            }
        )
        return RulesAdapter(rules)

    def test_values(self, adapter: RulesAdapter) -> None:
        """Protocols and tag names are lowercased."""
        assert adapter.get_forbidden_protocols() == frozenset(["javascript:", "file:"])
        assert adapter.get_drop_tags() == frozenset(["script", "aside"])
        assert adapter.get_tab_text() == "\t"
        assert adapter.get_max_html_bytes() == 1024

    def test_builds_richtext_config(self, adapter: RulesAdapter) -> None:
        config = _build_config(adapter)
        assert config.forbid_protocols == frozenset(["javascript:", "file:"])
        assert config.max_html_bytes == 1024

    def test_project_rules_model(self) -> None:
        assert ProjectRules(slug="a", rules_version="1").slug == "a"
